"""Portfolio Core 顶层包。

该包提供作品集站点的核心实现：
带本地 fallback 的双路径数据访问层、按人设切换的对话会话管理、
一次性多模态简历评审，以及配置加载、日志与持久化存储等基础能力。
"""

from portfolio_core.agents.persona_chat import ChatSessionManager
from portfolio_core.agents.resume_review import ResumeReviewInvoker
from portfolio_core.services.data_access import DataAccessFacade

__all__ = ["ChatSessionManager", "DataAccessFacade", "ResumeReviewInvoker"]
