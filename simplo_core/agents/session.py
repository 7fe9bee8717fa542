"""聊天会话：调用方一侧的会话边界。

负责：
- 构造并追加用户消息；
- 对调用时刻的快照执行一次交换；
- 成功时追加 assistant 消息，失败时返回已分类的失败结果，不写入任何消息。

失败提示以“合成 assistant 消息”的形式只用于展示，永远不会进入会话存储。
"""

import json
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional, Tuple

from simplo_core.agents.exchange import ExchangeOrchestrator
from simplo_core.domain.conversation import ConversationStore
from simplo_core.domain.exceptions import BusinessError
from simplo_core.domain.models import ExchangeResult, Message, Role
from simplo_core.infrastructure.logging.logger import logger
from simplo_core.infrastructure.storage.memory_store import InMemoryConversationStore
from simplo_core.rendering.normalizer import normalize_text


@dataclass(frozen=True)
class DisplayMessage:
    """交给渲染层的纯数据。assistant 文本已规范化。"""

    role: Role
    text: str
    has_image: bool
    created_at: datetime
    synthetic: bool = False

    @property
    def time_label(self) -> str:
        return self.created_at.astimezone().strftime("%H:%M")


def format_error_detail(detail: Any) -> str:
    """字符串原样返回，结构化错误体格式化为缩进 JSON。"""

    if isinstance(detail, str):
        return detail
    if detail is None:
        return "Unknown error"
    return json.dumps(detail, ensure_ascii=False, indent=2)


class ChatSession:
    """单个交互会话。

    send 在整个“追加用户消息 -> 交换 -> 追加回复”期间持有会话锁，
    上一次交换返回之前，下一条用户消息不会进入存储。
    """

    def __init__(
        self,
        orchestrator: ExchangeOrchestrator,
        store: Optional[ConversationStore] = None,
    ):
        self._orchestrator = orchestrator
        self._store = store if store is not None else InMemoryConversationStore()
        self._send_lock = threading.Lock()

    @property
    def store(self) -> ConversationStore:
        return self._store

    def send(self, text: str, image: Optional[str] = None) -> ExchangeResult:
        """发送一轮用户消息。

        消息不合法时直接返回 input 类失败且不追加任何内容；
        交换失败时用户消息保留，assistant 消息不追加。
        """
        try:
            user_msg = Message(role="user", text=text, image=image)
        except BusinessError as e:
            logger.warning(f"Rejected user message: {e.message}")
            return ExchangeResult.failure(e)

        with self._send_lock:
            self._store.append(user_msg)
            snapshot = self._store.snapshot()
            try:
                result = self._orchestrator.exchange(snapshot)
            except BusinessError as e:
                return ExchangeResult.failure(e)

            if result.assistant_text and result.assistant_text.strip():
                self._store.append(Message(role="assistant", text=result.assistant_text))
            else:
                # 空回复不构成合法 Message，不写入历史
                logger.warning("Upstream returned empty assistant content")
            return result

    def messages(self) -> Tuple[Message, ...]:
        return self._store.snapshot()

    def display_messages(self) -> List[DisplayMessage]:
        return [to_display(m) for m in self._store.snapshot()]

    @staticmethod
    def error_message(result: ExchangeResult) -> DisplayMessage:
        """把失败结果转换为合成的 assistant 展示消息（不写入存储）。"""

        return DisplayMessage(
            role="assistant",
            text=f"⚠️ {format_error_detail(result.detail)}",
            has_image=False,
            created_at=datetime.now().astimezone(),
            synthetic=True,
        )


def to_display(message: Message) -> DisplayMessage:
    text = normalize_text(message.text) if message.role == "assistant" else message.text
    return DisplayMessage(
        role=message.role,
        text=text,
        has_image=message.has_image,
        created_at=message.created_at,
    )
