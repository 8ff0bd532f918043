"""作品集后端的有界 HTTP 客户端。

每次调用只发出一次请求，不做重试：

1. 拼接 `{api_base_url}{path}`，按调用方给出的期限设置超时。
2. 网络异常、超时、非 2xx 状态码、响应体不是 JSON，统一抛出 Unreachable。
3. 成功时返回解析后的 JSON。

调用方（DataAccessFacade、RemoteChatGateway）捕获 Unreachable 后走各自的降级路径。
"""

import json
from typing import Any, Optional

import httpx

from portfolio_core.config.settings import settings as default_settings
from portfolio_core.domain.exceptions import Unreachable
from portfolio_core.infrastructure.logging.logger import logger


# 期限档位（秒），与 poll_timeout / first_load_timeout 的默认值一致；写操作传 None 交给传输层默认超时
POLL_DEADLINE = 0.5
FIRST_LOAD_DEADLINE = 1.0


class BoundedRemoteClient:
    """单次尝试的 REST 客户端。"""

    def __init__(self, settings=None, base_url: Optional[str] = None):
        self._settings = settings or default_settings
        self._base_url = (base_url or getattr(self._settings, "api_base_url", "")).rstrip("/")

    @property
    def base_url(self) -> str:
        return self._base_url

    def request(
        self,
        path: str,
        method: str = "GET",
        body: Optional[Any] = None,
        timeout: Optional[float] = None,
    ) -> Any:
        """发出一次请求并返回解析后的响应体。

        Args:
            path: 资源路径，如 "/projects"。
            method: HTTP 方法。
            body: 可选 JSON 请求体。
            timeout: 期限（秒）；None 表示使用 settings.http_timeout。

        Raises:
            Unreachable: 网络异常、超时、非 2xx 或响应体无法解析。
        """

        url = f"{self._base_url}{path}"
        deadline = timeout if timeout is not None else self._settings.http_timeout
        log_ctx = {"method": method, "path": path, "timeout": deadline}
        try:
            with httpx.Client(timeout=deadline, trust_env=False) as client:
                kwargs = {}
                if body is not None:
                    kwargs["json"] = body
                resp = client.request(method, url, **kwargs)
        except httpx.RequestError as e:
            # 超时（httpx.TimeoutException）也是 RequestError 的子类
            logger.warning("remote.unreachable", extra={"extra": {**log_ctx, "error": str(e)}})
            raise Unreachable(code="UNREACHABLE", message=str(e), path=path)

        if not 200 <= resp.status_code < 300:
            logger.warning("remote.bad_status", extra={"extra": {**log_ctx, "status": resp.status_code}})
            raise Unreachable(
                code="BAD_STATUS",
                message=f"{method} {path} returned {resp.status_code}",
                http_status=resp.status_code,
                body=_safe_json(resp),
                path=path,
            )
        try:
            return resp.json()
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning("remote.bad_body", extra={"extra": {**log_ctx, "status": resp.status_code}})
            raise Unreachable(code="BAD_BODY", message=str(e), http_status=resp.status_code, path=path)


def _safe_json(resp) -> Optional[Any]:
    try:
        return resp.json()
    except (json.JSONDecodeError, ValueError):
        return None
