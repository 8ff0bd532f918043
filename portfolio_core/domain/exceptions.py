"""统一业务异常模型。

所有跨模块抛出的业务级错误都应该继承自 BusinessError，
便于在服务层或 UI 层做统一捕获与降级处理。
"""

from typing import Any, Optional


class BusinessError(Exception):
    """业务异常基类。

    Attributes:
        code: 机器可读错误码（如 "STORE_WRITE_ERROR"）。
        message: 用户可读错误信息。
        http_status: 映射到 HTTP 时可用的状态码，默认 400。
        extra: 其他补充字段（例如 path、provider 等）。
    """

    def __init__(self, code: str, message: str, http_status: int = 400, **extra):
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra = extra
        super().__init__(message)


class NetworkError(BusinessError):
    """网络层错误，例如连接失败、超时等。"""


class Unreachable(NetworkError):
    """远端后端不可用：网络异常、超时或非 2xx 响应。

    DataAccessFacade 捕获该异常后走本地 fallback 路径，
    因此它几乎不会冒泡到调用方。

    Attributes:
        body: 后端有响应但状态码非 2xx 时，解析出的响应体（可能为 None）。
    """

    def __init__(
        self,
        code: str,
        message: str,
        http_status: int = 503,
        body: Optional[Any] = None,
        **extra,
    ):
        super().__init__(code, message, http_status=http_status, **extra)
        self.body = body


class ApiError(BusinessError):
    """第三方 API 返回非 2xx/429 错误时抛出。"""


class RateLimitError(BusinessError):
    """Provider 限流错误，本项目不做重试。"""


class ValidationError(BusinessError):
    """参数或配置校验失败。"""


class NotFoundError(BusinessError):
    """本地 fallback 存储中找不到目标记录。"""

    def __init__(self, code: str, message: str, http_status: int = 404, **extra):
        super().__init__(code, message, http_status=http_status, **extra)
