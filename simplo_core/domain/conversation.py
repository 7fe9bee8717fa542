from typing import Protocol, Tuple

from .models import Message


class ConversationStore(Protocol):
    """单个会话的只追加消息序列。

    写入方（会话层）负责串行化 append；snapshot 返回调用时刻的冻结副本，
    编排器只读取快照，永远不会观察到并发修改。
    """

    def append(self, message: Message) -> None:
        ...

    def snapshot(self) -> Tuple[Message, ...]:
        ...

    def has_image(self) -> bool:
        ...

    def __len__(self) -> int:
        ...
