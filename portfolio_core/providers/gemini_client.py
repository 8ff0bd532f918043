"""Gemini Provider 适配器。

本模块负责：

1. 接收统一的 CompletionRequest。
2. 将其转换为 Gemini generateContent 的 HTTP 请求格式：
   - URL: {base_url}/models/{model}:generateContent
   - 认证: x-goog-api-key 头
3. 调用 HTTP 接口并处理网络/API 异常。
4. 将响应 JSON 解析为统一的 CompletionResult。

REST 接口本身是无状态的，多轮会话由 GeminiChatHandle 在本地保存历史，
每次发送时连同 systemInstruction 一起带上。
"""

from typing import Any, Dict, List

import httpx

from portfolio_core.domain.exceptions import ApiError, NetworkError, RateLimitError, ValidationError
from portfolio_core.domain.models import (
    CompletionRequest,
    CompletionResult,
    CompletionUsage,
    ContentPart,
    Turn,
)
from portfolio_core.infrastructure.logging.logger import logger
from portfolio_core.providers.registry import ModelConfig, get_provider_config


class GeminiChatHandle:
    """Gemini 多轮会话句柄。

    - system_instruction: 创建时固定，之后不会改变。
    - history: 已完成的轮次（user/model 交替）。
    """

    def __init__(self, client: "GeminiClient", model: str, system_instruction: str):
        self._client = client
        self.model = model
        self.system_instruction = system_instruction
        self.history: List[Turn] = []

    def send_message(self, text: str) -> str:
        """发送一条用户消息并返回模型回复。

        调用失败时撤回本轮用户消息后重新抛出，句柄保持可用；
        空回复同样撤回本轮，下一次发送仍基于之前的历史。
        """

        self.history.append(Turn(role="user", parts=[ContentPart(text=text)]))
        req = CompletionRequest(
            model=self.model,
            system_instruction=self.system_instruction,
            contents=list(self.history),
        )
        try:
            result = self._client.generate(req)
        except Exception:
            self.history.pop()
            raise
        if not result.text:
            # 空回复（如被安全策略拦截）不入历史，否则后续请求会带上空 text part
            self.history.pop()
            return result.text
        self.history.append(Turn(role="model", parts=[ContentPart(text=result.text)]))
        return result.text


class GeminiClient:
    """Gemini 提供方客户端实现。

    - name: Provider 名称（供日志/调试使用）。
    - generate: 对外统一调用入口，返回 CompletionResult。
    """

    name = "gemini"

    def __init__(self, settings):
        # Settings 里包含 base_url、api_key、超时等配置
        self._settings = settings
        self._config = get_provider_config(self.name)

    def start_chat(self, system_instruction: str, model: str) -> GeminiChatHandle:
        return GeminiChatHandle(self, model, system_instruction)

    def generate(self, req: CompletionRequest) -> CompletionResult:
        """执行一次非流式补全调用。

        步骤：
        1. 读取模型配置（logical model -> provider model）。
        2. 构造 HTTP 请求 payload。
        3. 发送请求并捕获网络错误/限流/服务端错误。
        4. 使用统一的解析函数构造 CompletionResult。
        """

        api_key = getattr(self._settings, "gemini_api_key", None)
        if not api_key:
            # 配置缺失走 ValidationError，方便上层统一处理
            raise ValidationError(code="MISSING_API_KEY", message="GEMINI_API_KEY not set")
        model_cfg = self._config.models.get(req.model)
        if model_cfg is None:
            raise ValidationError(code="UNKNOWN_MODEL", message=f"Unknown model: {req.model!r}")
        payload = self._build_payload(req, model_cfg)
        base = getattr(self._settings, "gemini_base_url", None) or self._config.base_url
        try:
            with httpx.Client(timeout=self._settings.http_timeout, trust_env=False) as client:
                resp = client.post(
                    f"{base}/models/{model_cfg.provider_model}:generateContent",
                    json=payload,
                    headers={
                        "x-goog-api-key": api_key,
                        "Content-Type": "application/json",
                    },
                )
        except httpx.RequestError as e:
            # 网络错误：DNS 失败、连接超时等
            raise NetworkError(code="NETWORK_ERROR", message=str(e))
        if resp.status_code == 429:
            raise RateLimitError(code="RATE_LIMIT", message="Gemini rate limit", http_status=429)
        if resp.status_code >= 400:
            # 其他 HTTP 错误统一包装为 ApiError
            raise ApiError(code="API_ERROR", message=resp.text, http_status=resp.status_code)
        try:
            data = resp.json()
        except ValueError:
            # 代理或网关返回的 HTML 错误页等
            raise ApiError(code="BAD_RESPONSE", message=resp.text[:200], http_status=resp.status_code)
        if not isinstance(data, dict):
            raise ApiError(code="BAD_RESPONSE", message="Unexpected response body", http_status=resp.status_code)
        result = self._parse_response(data, req)
        logger.info(
            "gemini.generate",
            extra={"extra": {
                "model": req.model,
                "turns": len(req.contents),
                "total_tokens": result.usage.total_tokens if result.usage else None,
            }},
        )
        return result

    def _build_payload(self, req: CompletionRequest, model_cfg: ModelConfig) -> dict:
        """将 CompletionRequest 转成 Gemini 所需的请求 JSON。"""

        payload: Dict[str, Any] = {
            "contents": [self._turn_to_payload(t) for t in req.contents],
            "generationConfig": {
                "temperature": req.temperature if req.temperature is not None else model_cfg.default_temperature,
                "maxOutputTokens": req.max_output_tokens or model_cfg.max_tokens,
            },
        }
        if req.system_instruction:
            payload["systemInstruction"] = {"parts": [{"text": req.system_instruction}]}
        return payload

    @staticmethod
    def _turn_to_payload(turn: Turn) -> Dict[str, Any]:
        parts: List[Dict[str, Any]] = []
        for part in turn.parts:
            if part.is_inline:
                parts.append({"inlineData": {"mimeType": part.mime_type, "data": part.data}})
            else:
                parts.append({"text": part.text or ""})
        return {"role": turn.role, "parts": parts}

    def _parse_response(self, data: dict, req: CompletionRequest) -> CompletionResult:
        """将 Gemini 的原始响应 JSON 解析为统一的 CompletionResult。

        只取第一个候选；被安全策略拦截时 candidates 可能为空，此时 text 为空字符串。
        """

        candidates = data.get("candidates") or []
        text = ""
        if candidates:
            content = candidates[0].get("content") or {}
            text = "".join(p.get("text", "") for p in content.get("parts") or [])
        usage_raw = data.get("usageMetadata") or {}
        usage = CompletionUsage(
            prompt_tokens=usage_raw.get("promptTokenCount", 0),
            completion_tokens=usage_raw.get("candidatesTokenCount", 0),
            total_tokens=usage_raw.get("totalTokenCount", 0),
        )
        return CompletionResult(provider="gemini", model=req.model, text=text, usage=usage, raw=data)
