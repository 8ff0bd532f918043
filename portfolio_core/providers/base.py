"""Provider 抽象接口。

人设对话与简历评审不直接依赖具体厂商的 HTTP 接口，而是依赖此协议：

- 每个厂商实现一个 CompletionProvider（如 GeminiClient）。
- start_chat 返回一个有状态的会话句柄，句柄内部累积多轮历史。
- generate 执行一次无状态的多模态补全。
"""

from typing import List, Protocol

from portfolio_core.domain.models import CompletionRequest, CompletionResult, Turn


class ConversationHandle(Protocol):
    """不透明的多轮会话句柄。"""

    system_instruction: str
    history: List[Turn]

    def send_message(self, text: str) -> str:
        ...


class CompletionProvider(Protocol):
    """LLM Provider 客户端协议。

    实现者需要提供：
    - name: Provider 名称，用于日志/统计。
    - start_chat(system_instruction, model): 创建新的会话句柄（不发网络请求）。
    - generate(req): 执行一次非流式调用，返回统一的 CompletionResult。
    """

    name: str

    def start_chat(self, system_instruction: str, model: str) -> ConversationHandle:
        ...

    def generate(self, req: CompletionRequest) -> CompletionResult:
        ...
