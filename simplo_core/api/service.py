"""对外 API 服务模块。

提供简化的函数接口供上层应用（UI / CLI）调用。

进程启动时先调用 init()：API 密钥只在这里检查一次，缺失即抛出
ConfigurationError；之后的 run_chat 不会再因为配置问题失败。
"""

import threading
from typing import Optional, Dict, Any, List

from simplo_core.config.settings import settings
from simplo_core.agents.exchange import ExchangeOrchestrator
from simplo_core.agents.session import ChatSession
from simplo_core.providers import create_provider
from simplo_core.providers.registry import provider_config_from_settings
from simplo_core.rendering.normalizer import normalize_text
from simplo_core.infrastructure.logging.logger import logger


_orchestrator: Optional[ExchangeOrchestrator] = None
_session: Optional[ChatSession] = None
_session_lock = threading.Lock()


def create_orchestrator(cfg=None) -> ExchangeOrchestrator:
    """按配置组装编排器；密钥缺失时抛出 ConfigurationError。"""

    cfg = cfg or settings
    provider = create_provider(cfg)
    return ExchangeOrchestrator(
        provider_client=provider,
        provider_config=provider_config_from_settings(cfg),
    )


def init(cfg=None) -> None:
    """服务启动入口：校验配置并创建编排器。

    Raises:
        ConfigurationError: 缺少 API 密钥（启动期致命错误）。
    """
    global _orchestrator, _session
    orchestrator = create_orchestrator(cfg)
    with _session_lock:
        _orchestrator = orchestrator
        _session = None
    logger.info("Chat service initialized")


def shutdown() -> None:
    """丢弃编排器与当前会话，回到未初始化状态。"""
    global _orchestrator, _session
    with _session_lock:
        _orchestrator = None
        _session = None


def get_default_session() -> ChatSession:
    """获取默认会话实例（单例）。

    Raises:
        RuntimeError: 尚未调用 init()。
    """
    global _session
    with _session_lock:
        if _orchestrator is None:
            raise RuntimeError("Chat service is not initialized; call init() at startup")
        if _session is None:
            _session = ChatSession(orchestrator=_orchestrator)
        return _session


def reset_session() -> None:
    """丢弃当前会话，下次调用时用同一个编排器重新创建。"""
    global _session
    with _session_lock:
        _session = None


def run_chat(user_input: str, image: Optional[str] = None) -> Dict[str, Any]:
    """运行一轮对话。

    Args:
        user_input: 用户输入内容
        image: 可选的图片 data URI

    Returns:
        成功时包含 content（原始文本）、display（规范化文本）、usage、model；
        失败时 ok=False，error 中包含 kind、detail、status。

    Raises:
        RuntimeError: 尚未调用 init()。
    """
    session = get_default_session()
    result = session.send(user_input, image=image)
    if not result.ok:
        logger.error("Chat failed", extra={"extra": {
            "error_kind": result.error_kind,
            "http_status": result.http_status,
        }})
        return {
            "ok": False,
            "error": {
                "kind": result.error_kind,
                "detail": result.detail,
                "status": result.http_status,
            },
        }
    return {
        "ok": True,
        "content": result.assistant_text,
        "display": normalize_text(result.assistant_text),
        "usage": result.usage,
        "model": result.model,
    }


def get_messages() -> List[Dict[str, Any]]:
    """获取当前会话的所有消息（展示用）。

    Returns:
        消息列表
    """
    session = get_default_session()
    return [
        {
            "role": m.role,
            "text": m.text,
            "has_image": m.has_image,
            "time": m.time_label,
            "created_at": m.created_at.isoformat(),
        }
        for m in session.display_messages()
    ]
