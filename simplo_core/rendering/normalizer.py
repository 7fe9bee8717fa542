"""把模型输出中的轻量标记去掉，得到适合纯文本展示的段落。

normalize_text 是纯函数：只看传入的文本，不关心角色、位置或网络状态。

每条规则要么不改变文本，要么让文本严格变短，因此反复应用整组规则
一定会在有限步内停在不动点上；返回值就是这个不动点，所以
normalize_text(normalize_text(x)) == normalize_text(x)。
"""

import re
from typing import Callable, List, Optional, Tuple


_Rule = Tuple[str, Callable[[str], str]]


def _sub(pattern: str, repl: str, flags: int = 0) -> Callable[[str], str]:
    compiled = re.compile(pattern, flags)
    return lambda text: compiled.sub(repl, text)


_RULES: List[_Rule] = [
    ("crlf", lambda text: text.replace("\r\n", "\n")),
    # 水平分割线（---、***、___）整行清空，需先于强调标记处理
    ("horizontal_rule", _sub(r"^[ \t]*([-*_])(?:[ \t]*\1){2,}[ \t]*$", "", re.MULTILINE)),
    ("heading", _sub(r"^[ \t]*#{1,6}[ \t]+(.+)$", r"\1", re.MULTILINE)),
    ("bold", _sub(r"\*\*(.*?)\*\*", r"\1")),
    ("italic", _sub(r"\*(.*?)\*", r"\1")),
    ("inline_code", _sub(r"`(.*?)`", r"\1")),
    ("link", _sub(r"\[([^\]]+)\]\([^)]+\)", r"\1")),
    # 三个及以上连续换行（中间可夹空白行）压缩为一个空行
    ("blank_lines", _sub(r"\n[^\S\n]*\n\s*\n", "\n\n")),
    ("trim", str.strip),
]


def _apply_rules(text: str) -> str:
    for _name, rule in _RULES:
        text = rule(text)
    return text


def normalize_text(text: Optional[str]) -> str:
    """去掉标题、粗体/斜体、行内代码、链接语法与分割线，并规整空行。"""

    if not text:
        return ""
    current = text
    while True:
        reduced = _apply_rules(current)
        if reduced == current:
            return current
        current = reduced


def split_paragraphs(text: Optional[str]) -> List[str]:
    """规范化后按空行拆分为段落，丢弃空段。"""

    return [p for p in normalize_text(text).split("\n\n") if p.strip()]
