"""Simplo Core 顶层包。

该包提供与 OpenAI 兼容 LLM 服务进行多轮对话（可附带图片）的核心实现，
包括配置加载、领域模型、Provider 适配、会话交换编排与回复文本规范化。
"""

from simplo_core.domain.models import ExchangeResult, Message
from simplo_core.rendering.normalizer import normalize_text

__all__ = ["ExchangeResult", "Message", "normalize_text"]
