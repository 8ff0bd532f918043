"""Client-side access to the backend's /chat and /resume-review endpoints."""

from __future__ import annotations

from typing import Optional

from portfolio_core.agents.persona_chat import CONNECTION_ERROR_TEXT, EMPTY_REPLY_TEXT
from portfolio_core.agents.resume_review import EMPTY_REVIEW_TEXT, REVIEW_FAILED_TEXT, ResumeInput
from portfolio_core.domain.exceptions import Unreachable
from portfolio_core.domain.models import AIMode, FileInput
from portfolio_core.infrastructure.http.remote_client import BoundedRemoteClient
from portfolio_core.infrastructure.logging.logger import logger


class RemoteChatGateway:
    """Never raises on backend failure; returns a user-facing text instead."""

    def __init__(self, client: Optional[BoundedRemoteClient] = None):
        self._client = client or BoundedRemoteClient()

    def send_message(self, message: str, mode: AIMode) -> str:
        try:
            data = self._client.request("/chat", method="POST", body={"message": message, "mode": mode})
        except Unreachable as e:
            logger.error("gateway.chat_failed", extra={"extra": {"mode": mode, "error": e.message}})
            return CONNECTION_ERROR_TEXT
        return (data or {}).get("response") or EMPTY_REPLY_TEXT

    def review_resume(self, resume: ResumeInput) -> str:
        wire = resume.to_dict() if isinstance(resume, FileInput) else resume
        try:
            data = self._client.request("/resume-review", method="POST", body={"input": wire})
        except Unreachable as e:
            logger.error("gateway.resume_review_failed", extra={"extra": {"error": e.message}})
            return REVIEW_FAILED_TEXT
        return (data or {}).get("response") or EMPTY_REVIEW_TEXT
