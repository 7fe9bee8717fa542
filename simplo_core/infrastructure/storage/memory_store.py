import threading
from typing import List, Tuple

from simplo_core.domain.conversation import ConversationStore
from simplo_core.domain.exceptions import InputError
from simplo_core.domain.models import Message


class InMemoryConversationStore(ConversationStore):
    """进程内的会话存储，会话结束即丢弃，不做持久化。"""

    def __init__(self) -> None:
        self._messages: List[Message] = []
        self._lock = threading.Lock()

    def append(self, message: Message) -> None:
        if not isinstance(message, Message):
            raise InputError(code="INVALID_MESSAGE", message=f"Expected Message, got {type(message).__name__}")
        with self._lock:
            self._messages.append(message)

    def snapshot(self) -> Tuple[Message, ...]:
        with self._lock:
            return tuple(self._messages)

    def has_image(self) -> bool:
        return any(m.has_image for m in self.snapshot())

    def __len__(self) -> int:
        with self._lock:
            return len(self._messages)
