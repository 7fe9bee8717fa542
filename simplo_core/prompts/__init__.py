"""系统提示词加载工具。

按语言(locale) 从 prompts/<locale> 目录读取 system prompt 文本：
纯文本会话使用 chat_system.md，出现图片的会话使用 vision_system.md。
"""

from functools import lru_cache
from pathlib import Path


PROMPTS_DIR = Path(__file__).resolve().parent

_PROMPT_FILES = {
    "chat": "chat_system.md",
    "vision": "vision_system.md",
}


@lru_cache(maxsize=None)
def load_system_prompt(kind: str, locale: str = "en") -> str:
    """根据会话类型（"chat" / "vision"）和语言加载系统提示词文本。"""

    try:
        fname = PROMPTS_DIR / locale / _PROMPT_FILES[kind]
    except KeyError:
        raise KeyError(f"Unknown system prompt kind: {kind!r}") from None
    return fname.read_text(encoding="utf-8").strip()
