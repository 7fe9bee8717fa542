"""统一的对话与结果数据模型。

本模块定义了会话层、编排器与 Provider 之间共享的标准数据结构：

- Message: 会话中的一轮（user/assistant），构造后不可变。
- UpstreamRequest: 由会话快照派生、发往上游的一次请求。
- ChatCompletion: Provider 解析后的原始完成结果。
- ExchangeResult: 编排器对调用方的最终输出（成功或已分类的失败）。

Provider 适配器只依赖这些模型，并负责在上游 JSON 与这些模型之间做转换。
"""

import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Literal, Optional, Tuple, TYPE_CHECKING

from simplo_core.domain.exceptions import InputError

if TYPE_CHECKING:
    from simplo_core.domain.exceptions import BusinessError


# 会话中允许出现的角色；system 轮次只在请求构造时由编排器插入
Role = Literal["user", "assistant"]
ROLES = ("user", "assistant")

# data:<mime>[;<param>=<value>]*;base64,<payload>，payload 允许 URL-safe 字母表
_DATA_URI_RE = re.compile(
    r"^data:(?P<mime>[\w.+-]+/[\w.+-]+)(?:;[^;,]+)*;base64,(?P<payload>[A-Za-z0-9+/=_\-\s]+)$"
)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_data_uri(value: str) -> bool:
    """判断字符串是否为自描述的 base64 data URI（含 MIME 类型）。"""

    return bool(_DATA_URI_RE.match(value))


@dataclass(frozen=True)
class Message:
    """会话中的一轮消息。

    - role: "user" 或 "assistant"。
    - text: 文本内容；仅当携带 image 时允许为空。
    - image: 可选的内联图片，data URI 格式。
    - created_at: 创建时间（UTC），只用于展示排序/格式化，不参与任何逻辑。
    """

    role: Role
    text: str
    image: Optional[str] = None
    created_at: datetime = field(default_factory=_utcnow)

    def __post_init__(self) -> None:
        if self.role not in ROLES:
            raise InputError(code="INVALID_ROLE", message=f"Unsupported role: {self.role!r}")
        if not isinstance(self.text, str):
            raise InputError(code="INVALID_TEXT", message="Message text must be a string")
        if self.image is not None:
            if not isinstance(self.image, str) or not is_data_uri(self.image):
                raise InputError(code="INVALID_IMAGE", message="Image must be a base64 data URI")
        elif not self.text.strip():
            raise InputError(code="EMPTY_MESSAGE", message="Message text may be empty only when an image is attached")

    @property
    def has_image(self) -> bool:
        return self.image is not None


@dataclass(frozen=True)
class UpstreamRequest:
    """一次发往上游的完整请求，每次调用全新构造，不复用也不修改。

    messages 只包含翻译后的历史；system 轮次在 to_payload 时放在最前面。
    """

    model: str  # 上游真实模型 ID
    system_prompt: str
    messages: Tuple[Dict[str, Any], ...]
    temperature: float
    max_tokens: int
    vision: bool = False

    def to_payload(self) -> Dict[str, Any]:
        """渲染为 chat/completions 请求 JSON。"""

        return {
            "model": self.model,
            "messages": [{"role": "system", "content": self.system_prompt}, *self.messages],
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
        }


@dataclass
class ChatUsage:
    """上游 usage 对象的透传包装，核心逻辑不依赖其内部结构。"""

    raw: Dict[str, Any]

    @property
    def total_tokens(self) -> Optional[int]:
        value = self.raw.get("total_tokens")
        return value if isinstance(value, int) else None


@dataclass
class ChatCompletion:
    """Provider 解析出的单次完成结果。

    - content: choices[0].message.content（null 视为空串）。
    - usage: 原样透传的 usage 对象，可能为 None。
    - model: 上游实际使用的模型 ID（若响应中给出）。
    - raw: 原始响应 JSON，用于调试。
    """

    content: str
    usage: Optional[ChatUsage] = None
    model: Optional[str] = None
    raw: Optional[dict] = None


@dataclass(frozen=True)
class ExchangeResult:
    """编排器输出：成功时带 assistant_text/usage，失败时带 error_kind/detail。"""

    assistant_text: Optional[str] = None
    usage: Optional[Dict[str, Any]] = None
    model: Optional[str] = None
    error_kind: Optional[str] = None
    detail: Any = None
    http_status: Optional[int] = None
    raw: Optional[dict] = None

    @property
    def ok(self) -> bool:
        return self.error_kind is None

    @classmethod
    def success(
        cls,
        assistant_text: str,
        usage: Optional[Dict[str, Any]] = None,
        model: Optional[str] = None,
        raw: Optional[dict] = None,
    ) -> "ExchangeResult":
        return cls(assistant_text=assistant_text, usage=usage, model=model, raw=raw)

    @classmethod
    def failure(cls, error: "BusinessError") -> "ExchangeResult":
        return cls(error_kind=error.error_kind, detail=error.detail, http_status=error.http_status)
