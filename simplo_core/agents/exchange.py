"""会话交换编排器。

把一份会话快照变成恰好一次上游调用和一个规范化结果：

1. 模型选择：扫描整个快照（不仅是最新一轮），只要任意一轮带图片，
   就使用视觉模型与视觉系统提示词；否则使用默认文本模型。
2. 请求构造：把每条 Message 翻译为上游的 content 表示，前置 system 轮次，
   附加固定的 temperature / max_tokens。
3. 调用 Provider，并把成功结果折叠为 ExchangeResult。

编排器在两次调用之间不保留任何状态，可以被并发调用。
"""

import logging
import time
from typing import Any, Dict, Iterable, Optional, Sequence, Tuple
from uuid import uuid4

from simplo_core.domain.exceptions import BusinessError, InputError
from simplo_core.domain.models import ExchangeResult, Message, UpstreamRequest
from simplo_core.infrastructure.logging.logger import logger
from simplo_core.prompts import load_system_prompt
from simplo_core.providers.base import ProviderClient
from simplo_core.providers.registry import (
    CHAT_MODEL,
    OPENROUTER_CONFIG,
    VISION_MODEL,
    ProviderConfig,
)


# 图片消息没有文本时替换为该指令，保证上游总能收到非空的文本部分
IMAGE_PLACEHOLDER_TEXT = "Please describe this image."


def conversation_has_image(snapshot: Iterable[Message]) -> bool:
    """会话中任意一轮带图片即返回 True。"""

    return any(m.has_image for m in snapshot)


def message_to_payload(message: Message) -> Dict[str, Any]:
    """将单条 Message 翻译为上游 chat/completions 的消息格式。

    无图片时 content 为纯文本；有图片时 content 为 [文本, 图片] 两段，
    文本在前。
    """

    if not message.has_image:
        return {"role": message.role, "content": message.text}
    return {
        "role": message.role,
        "content": [
            {"type": "text", "text": message.text or IMAGE_PLACEHOLDER_TEXT},
            {"type": "image_url", "image_url": {"url": message.image}},
        ],
    }


class ExchangeOrchestrator:
    def __init__(
        self,
        provider_client: ProviderClient,
        provider_config: Optional[ProviderConfig] = None,
        locale: str = "en",
    ):
        self._provider_client = provider_client
        self._provider_config = provider_config or OPENROUTER_CONFIG
        self._locale = locale

    def select_model(self, snapshot: Sequence[Message]) -> Tuple[str, str, bool]:
        """返回 (逻辑模型名, 系统提示词, 是否视觉模式)。每次调用都重新判断。"""

        vision = conversation_has_image(snapshot)
        kind = VISION_MODEL if vision else CHAT_MODEL
        return kind, load_system_prompt(kind, self._locale), vision

    def build_request(self, snapshot: Sequence[Message]) -> UpstreamRequest:
        """根据快照构造一次全新的 UpstreamRequest。"""

        history = self._validate(snapshot)
        logical_model, system_prompt, vision = self.select_model(history)
        model_cfg = self._provider_config.model(logical_model)
        return UpstreamRequest(
            model=model_cfg.provider_model,
            system_prompt=system_prompt,
            messages=tuple(message_to_payload(m) for m in history),
            temperature=model_cfg.default_temperature,
            max_tokens=model_cfg.max_tokens,
            vision=vision,
        )

    def exchange(self, snapshot: Sequence[Message]) -> ExchangeResult:
        """执行一次完整交换。

        Returns:
            成功时为 ExchangeResult.success(...)

        Raises:
            InputError: 快照为空或包含非 Message 元素（在网络调用之前）。
            TransportError / UpstreamError / ContractViolationError: 由 Provider 抛出。
        """
        start_time = time.time()
        log_ctx: Dict[str, Any] = {
            "trace_id": f"tr-{uuid4().hex}",
            "provider": self._provider_client.name,
        }

        req = self.build_request(snapshot)
        self._log(
            logging.INFO,
            "Calling provider",
            log_ctx,
            model=req.model,
            vision=req.vision,
            message_count=len(req.messages),
        )

        try:
            completion = self._provider_client.chat(req)
        except BusinessError as e:
            self._log(
                logging.ERROR,
                "Exchange failed",
                log_ctx,
                model=req.model,
                error_kind=e.error_kind,
                code=e.code,
                http_status=e.http_status,
                elapsed_seconds=round(time.time() - start_time, 2),
            )
            raise

        usage = completion.usage.raw if completion.usage else None
        if completion.usage:
            self._log(logging.INFO, "Token usage", log_ctx, total_tokens=completion.usage.total_tokens)
        self._log(
            logging.INFO,
            "Completed exchange",
            log_ctx,
            model=completion.model or req.model,
            elapsed_seconds=round(time.time() - start_time, 2),
        )
        return ExchangeResult.success(
            assistant_text=completion.content,
            usage=usage,
            model=completion.model or req.model,
            raw=completion.raw,
        )

    @staticmethod
    def _validate(snapshot: Sequence[Message]) -> Tuple[Message, ...]:
        if snapshot is None:
            raise InputError(code="INVALID_INPUT", message="Messages array is required")
        history = tuple(snapshot)
        if not history:
            raise InputError(code="INVALID_INPUT", message="Conversation history is empty")
        for idx, m in enumerate(history):
            if not isinstance(m, Message):
                raise InputError(
                    code="INVALID_INPUT",
                    message=f"History item {idx} is not a Message: {type(m).__name__}",
                )
        return history

    @staticmethod
    def _log(level: int, message: str, log_ctx: Dict[str, Any], **fields: Any) -> None:
        payload = dict(log_ctx)
        payload.update(fields)
        logger.log(level, message, extra={"extra": payload})
