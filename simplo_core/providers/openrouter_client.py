"""OpenRouter（OpenAI 兼容 chat/completions）Provider 适配器。

本模块负责：

1. 接收编排器构造好的 UpstreamRequest。
2. 发送一次同步 HTTP POST，不做任何重试。
3. 把网络错误、上游错误、响应格式错误分别归类为
   TransportError / UpstreamError / ContractViolationError。
4. 将成功响应解析为 ChatCompletion（assistant 文本 + usage 透传）。
"""

import json
from typing import Any, Dict, Optional

import httpx

from simplo_core.domain.models import ChatCompletion, ChatUsage, UpstreamRequest
from simplo_core.domain.exceptions import ContractViolationError, TransportError, UpstreamError
from simplo_core.providers.registry import OPENROUTER_CONFIG


class OpenRouterClient:
    """OpenRouter 客户端实现。

    实例只保存不可变配置（密钥、base_url、超时），不缓存任何会话状态，
    可以被多个会话并发复用。
    """

    name = "openrouter"

    def __init__(self, settings, api_key: Optional[str] = None):
        # 密钥在启动期由 require_api_key 校验后传入
        self._settings = settings
        self._api_key = api_key or getattr(settings, "openrouter_api_key", None)

    def chat(self, req: UpstreamRequest) -> ChatCompletion:
        """执行一次非流式对话调用。"""

        payload = req.to_payload()
        try:
            with httpx.Client(**self._client_kwargs()) as client:
                resp = client.post(
                    f"{self._base_url()}/chat/completions",
                    json=payload,
                    headers=self._headers(),
                )
        except httpx.RequestError as e:
            # DNS 失败、连接被拒、超时等
            raise TransportError(code="NETWORK_ERROR", message=str(e) or type(e).__name__, http_status=503)
        if not 200 <= resp.status_code < 300:
            error_payload = self._error_payload(resp)
            raise UpstreamError(
                code="UPSTREAM_ERROR",
                message=error_payload if isinstance(error_payload, str) else json.dumps(error_payload, ensure_ascii=False),
                http_status=resp.status_code,
                payload=error_payload,
            )
        try:
            data = resp.json()
        except ValueError:
            raise ContractViolationError(
                code="INVALID_RESPONSE",
                message="Response body from upstream is not valid JSON",
                http_status=502,
            )
        return self._parse_response(data)

    def _client_kwargs(self) -> Dict[str, Any]:
        timeout = getattr(self._settings, "http_timeout", None)
        kwargs: Dict[str, Any] = {"trust_env": False}
        if timeout:
            kwargs["timeout"] = timeout
        return kwargs

    def _base_url(self) -> str:
        base = getattr(self._settings, "openrouter_base_url", None) or OPENROUTER_CONFIG.base_url
        return base.rstrip("/")

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
        }
        # OpenRouter 的可选归属头
        referer = getattr(self._settings, "app_referer", None)
        title = getattr(self._settings, "app_title", None)
        if referer:
            headers["HTTP-Referer"] = referer
        if title:
            headers["X-Title"] = title
        return headers

    @staticmethod
    def _error_payload(resp: httpx.Response) -> Any:
        """优先按 JSON 解析错误体，失败时退回原始文本，保证上游细节不丢失。"""

        try:
            return resp.json()
        except ValueError:
            return resp.text

    @staticmethod
    def _parse_response(data: Any) -> ChatCompletion:
        """校验 choices[0].message 并解析为 ChatCompletion。"""

        choices = data.get("choices") if isinstance(data, dict) else None
        if not isinstance(choices, list) or not choices:
            raise ContractViolationError(
                code="INVALID_RESPONSE",
                message="Invalid response format from upstream: missing choices",
                http_status=502,
            )
        first = choices[0]
        message = first.get("message") if isinstance(first, dict) else None
        if not isinstance(message, dict):
            raise ContractViolationError(
                code="INVALID_RESPONSE",
                message="Invalid response format from upstream: missing choices[0].message",
                http_status=502,
            )
        content = message.get("content")
        if content is not None and not isinstance(content, str):
            raise ContractViolationError(
                code="INVALID_RESPONSE",
                message="Invalid response format from upstream: message content is not text",
                http_status=502,
            )
        usage_raw = data.get("usage")
        return ChatCompletion(
            content=content or "",
            usage=ChatUsage(raw=usage_raw) if isinstance(usage_raw, dict) else None,
            model=data.get("model"),
            raw=data,
        )
