"""对外 API 服务模块。

提供简化的函数接口供上层应用（页面渲染层、后端路由）调用。
数据访问层与评审器是无会话状态的，按需懒加载为单例；
人设对话的会话对象由调用方持有并在每次调用时传回。
"""

from typing import Dict, List, Optional, Tuple

import httpx

from portfolio_core.agents.persona_chat import ChatSessionManager
from portfolio_core.agents.resume_review import ResumeInput, ResumeReviewInvoker
from portfolio_core.config.settings import settings
from portfolio_core.domain.exceptions import Unreachable
from portfolio_core.domain.models import AIMode, ChatMessage, ChatSession
from portfolio_core.infrastructure.http.remote_client import BoundedRemoteClient
from portfolio_core.infrastructure.logging.logger import logger
from portfolio_core.infrastructure.storage.fallback_store import JsonFallbackStore
from portfolio_core.services.data_access import DataAccessFacade


_facade: Optional[DataAccessFacade] = None
_chat: Optional[ChatSessionManager] = None
_reviewer: Optional[ResumeReviewInvoker] = None


def get_default_facade() -> DataAccessFacade:
    """获取默认的数据访问层实例（单例）。"""
    global _facade
    if _facade is None:
        _facade = DataAccessFacade(
            client=BoundedRemoteClient(settings),
            store=JsonFallbackStore(root=settings.storage_root),
        )
    return _facade


def get_default_chat_manager() -> ChatSessionManager:
    global _chat
    if _chat is None:
        _chat = ChatSessionManager()
    return _chat


def get_default_reviewer() -> ResumeReviewInvoker:
    global _reviewer
    if _reviewer is None:
        _reviewer = ResumeReviewInvoker()
    return _reviewer


def send_chat(
    message: str,
    mode: AIMode,
    session: Optional[ChatSession] = None,
    history: Optional[List[ChatMessage]] = None,
) -> Tuple[ChatSession, ChatMessage]:
    """发送一条人设对话消息。

    Args:
        message: 用户输入内容
        mode: 人设模式（developer/designer/mentor）
        session: 上一次调用返回的会话（可选，不提供则新建）
        history: UI 持有的消息列表（可选）

    Returns:
        (会话, 模型消息)。调用方应保存会话并在下一次调用时传回。
    """
    return get_default_chat_manager().send(session, message, mode, history=history)


def review_resume(resume: ResumeInput) -> str:
    return get_default_reviewer().review(resume)


def verify_deployment(base_url: str) -> Dict[str, bool]:
    """检查已部署后端的健康状况，只报告可达性，不走 fallback。

    Args:
        base_url: 后端根地址，如 https://my-app.onrender.com（不含 /api）

    Returns:
        {"health": ..., "projects": ..., "visitors": ...}
    """
    root = base_url.rstrip("/")
    results = {"health": _check_root(root)}
    client = BoundedRemoteClient(settings, base_url=f"{root}/api")
    for name, path in (("projects", "/projects"), ("visitors", "/visitors")):
        try:
            client.request(path)
            results[name] = True
        except Unreachable:
            results[name] = False
    logger.info("deployment.verified", extra={"extra": {"base_url": root, **results}})
    return results


def _check_root(root: str) -> bool:
    # 健康检查返回纯文本，不经过 BoundedRemoteClient 的 JSON 解析
    try:
        with httpx.Client(timeout=settings.http_timeout, trust_env=False) as client:
            return client.get(f"{root}/").status_code == 200
    except httpx.RequestError:
        return False
