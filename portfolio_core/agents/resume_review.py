"""一次性简历评审。

无会话、无重试：每次调用构造一个多模态请求（简历内容 + 评审任务说明），
系统提示词为基础人设 + 评审角色前言。
"""

import base64
from typing import Any, Mapping, Optional, Union

from portfolio_core.config.settings import settings
from portfolio_core.domain.exceptions import BusinessError, ValidationError
from portfolio_core.domain.models import CompletionRequest, ContentPart, FileInput, ProfileData, Turn
from portfolio_core.domain.profile import default_profile
from portfolio_core.infrastructure.logging.logger import logger
from portfolio_core.prompts import build_base_persona, load_prompt
from portfolio_core.providers import create_provider
from portfolio_core.providers.base import CompletionProvider
from portfolio_core.providers.registry import RESUME_REVIEW_MODEL


REVIEW_FAILED_TEXT = "Error analyzing resume. Please try again with a different file format (PDF/Image/Text)."
EMPTY_REVIEW_TEXT = "I couldn't analyze the resume. Please ensure the file is legible."

ResumeInput = Union[str, FileInput, Mapping[str, Any]]


def is_binary_mime(mime_type: str) -> bool:
    """图片与 PDF 作为二进制发送，其余按文本读取。"""
    return mime_type.startswith("image/") or mime_type == "application/pdf"


def file_input_from_upload(mime_type: str, raw: bytes) -> Union[str, FileInput]:
    """把上传的文件字节转换成评审输入。"""
    if is_binary_mime(mime_type):
        return FileInput(mime_type=mime_type, data=base64.b64encode(raw).decode("ascii"))
    return raw.decode("utf-8", errors="replace")


class ResumeReviewInvoker:
    def __init__(
        self,
        provider: Optional[CompletionProvider] = None,
        profile: Optional[ProfileData] = None,
        model: Optional[str] = None,
        max_chars: Optional[int] = None,
    ):
        self._provider = provider or create_provider()
        self._profile = profile or default_profile()
        self._model = model or RESUME_REVIEW_MODEL
        self._max_chars = max_chars if max_chars is not None else settings.resume_max_chars

    @property
    def system_instruction(self) -> str:
        return f"{build_base_persona(self._profile)}\n\n{load_prompt('resume_reviewer')}"

    def classify(self, resume: ResumeInput) -> ContentPart:
        """纯文本截断到 max_chars；二进制原样携带 MIME 类型与 base64 数据。"""
        if isinstance(resume, str):
            return ContentPart(text=resume[: self._max_chars])
        if isinstance(resume, Mapping):
            try:
                resume = FileInput.from_dict(resume)
            except KeyError as e:
                raise ValidationError(code="INVALID_RESUME_INPUT", message=f"missing field {e}")
        if isinstance(resume, FileInput):
            return ContentPart(mime_type=resume.mime_type, data=resume.data)
        raise ValidationError(code="INVALID_RESUME_INPUT", message=f"unsupported input: {type(resume).__name__}")

    def build_request(self, resume: ResumeInput) -> CompletionRequest:
        parts = [self.classify(resume), ContentPart(text=load_prompt("resume_review_task"))]
        return CompletionRequest(
            model=self._model,
            system_instruction=self.system_instruction,
            contents=[Turn(role="user", parts=parts)],
        )

    def review(self, resume: ResumeInput) -> str:
        req = self.build_request(resume)
        try:
            result = self._provider.generate(req)
        except BusinessError as e:
            logger.error("resume_review.failed", extra={"extra": {"code": e.code, "error": e.message}})
            return REVIEW_FAILED_TEXT
        return result.text or EMPTY_REVIEW_TEXT
