"""人设对话的会话管理。

会话状态由调用方持有并在每次调用时传回（None 表示尚无会话）：

    NoSession --send(mode)--> Active(mode, handle)
    Active(m1) --send(m2 != m1)--> Active(m2, new handle)

切换人设时会创建新的会话句柄，Provider 侧累积的历史随旧句柄一起丢弃，
而 UI 仍展示完整的消息列表，两者在切换后不再一致。
"""

from datetime import datetime, timezone
from typing import List, Optional, Tuple
from uuid import uuid4

from portfolio_core.domain.exceptions import BusinessError, ValidationError
from portfolio_core.domain.models import AI_MODES, AIMode, ChatMessage, ChatSession, ProfileData
from portfolio_core.domain.profile import default_profile
from portfolio_core.infrastructure.logging.logger import logger
from portfolio_core.prompts import build_base_persona, load_mode_prompt
from portfolio_core.providers import create_provider
from portfolio_core.providers.base import CompletionProvider
from portfolio_core.providers.registry import PERSONA_CHAT_MODEL


CONNECTION_ERROR_TEXT = "Sorry, I encountered a connection error. Please try again later."
EMPTY_REPLY_TEXT = "I'm having trouble thinking of a response right now."


class ChatSessionManager:
    """按人设模式创建/替换会话句柄并转发消息。"""

    def __init__(
        self,
        provider: Optional[CompletionProvider] = None,
        profile: Optional[ProfileData] = None,
        model: Optional[str] = None,
    ):
        self._provider = provider or create_provider()
        self._profile = profile or default_profile()
        self._model = model or PERSONA_CHAT_MODEL
        self._base_persona = build_base_persona(self._profile)

    def build_system_instruction(self, mode: AIMode) -> str:
        return f"{self._base_persona}\n\n{load_mode_prompt(mode)}"

    def open_session(self, mode: AIMode) -> ChatSession:
        system_instruction = self.build_system_instruction(mode)
        handle = self._provider.start_chat(system_instruction, self._model)
        return ChatSession(mode=mode, handle=handle, system_instruction=system_instruction)

    def send(
        self,
        session: Optional[ChatSession],
        message: str,
        mode: AIMode,
        history: Optional[List[ChatMessage]] = None,
    ) -> Tuple[ChatSession, ChatMessage]:
        """发送一条消息。

        Args:
            session: 当前会话；None 表示尚未建立会话。
            message: 用户输入。
            mode: 本次请求的人设模式，与 session.mode 不同时会新建会话。
            history: 可选，UI 持有的消息列表，用户消息和模型回复会被追加进去。

        Returns:
            (可能是新建的会话, 带 mode 标记的模型消息)

        Completion 调用失败时返回通用的连接错误文本，会话保留，下一次发送会重用同一句柄。
        """

        if mode not in AI_MODES:
            raise ValidationError(code="INVALID_MODE", message=f"Unknown mode: {mode!r}")
        if session is None or session.mode != mode:
            previous = session.mode if session else None
            session = self.open_session(mode)
            logger.info("chat.session_opened", extra={"extra": {"mode": mode, "previous_mode": previous}})

        if history is not None:
            history.append(_message("user", message))

        try:
            text = session.handle.send_message(message) or EMPTY_REPLY_TEXT
        except BusinessError as e:
            logger.error(
                "chat.send_failed",
                extra={"extra": {"mode": mode, "code": e.code, "error": e.message}},
            )
            text = CONNECTION_ERROR_TEXT

        reply = _message("model", text, mode)
        if history is not None:
            history.append(reply)
        return session, reply

    def greeting(self, now: Optional[datetime] = None) -> ChatMessage:
        """按时间段生成欢迎语（默认 developer 模式）。"""

        hour = (now or datetime.now()).hour
        time_of_day = "Good morning" if hour < 12 else "Good afternoon" if hour < 18 else "Good evening"
        first_name = self._profile.name.split(" ")[0] if self._profile.name else "the owner"
        text = (
            f"{time_of_day}! I'm {first_name}'s AI Persona.\n\n"
            "Ask me about my projects, my experience, or why I'd be a great fit for your team!"
        )
        return ChatMessage(id="welcome", role="model", text=text, mode="developer")


def _message(role, text: str, mode: Optional[AIMode] = None) -> ChatMessage:
    return ChatMessage(id=uuid4().hex, role=role, text=text, timestamp=datetime.now(timezone.utc), mode=mode)
