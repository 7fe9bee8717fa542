"""终端交互客户端。

用法：
    simplo                     进入对话
    /image <path> [text]       附带一张本地图片发送
    /reset                     开始新会话
    /quit                      退出
"""

import argparse
import base64
import mimetypes
import sys
from pathlib import Path
from typing import Optional, Sequence, TextIO

from simplo_core.agents.session import ChatSession
from simplo_core.api.service import create_orchestrator
from simplo_core.domain.exceptions import ConfigurationError, InputError
from simplo_core.rendering.normalizer import split_paragraphs


def image_to_data_uri(path: str | Path) -> str:
    """读取本地图片并编码为 data URI。"""

    p = Path(path).expanduser()
    mime, _ = mimetypes.guess_type(p.name)
    if not mime or not mime.startswith("image/"):
        raise InputError(code="INVALID_IMAGE", message=f"Not an image file: {p}")
    try:
        data = p.read_bytes()
    except OSError as e:
        raise InputError(code="INVALID_IMAGE", message=f"Cannot read {p}: {e}")
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def _print_reply(session: ChatSession, out: TextIO) -> None:
    last = session.display_messages()[-1]
    out.write(f"[{last.time_label}] assistant:\n")
    for paragraph in split_paragraphs(last.text):
        out.write(paragraph + "\n\n")


def _send(session: ChatSession, text: str, image: Optional[str], out: TextIO) -> bool:
    result = session.send(text, image=image)
    if not result.ok:
        out.write(session.error_message(result).text + "\n")
        return False
    if result.assistant_text and result.assistant_text.strip():
        _print_reply(session, out)
    return True


def handle_line(session: ChatSession, line: str, out: TextIO) -> Optional[str]:
    """处理一行输入；返回 "quit" / "reset" 控制指令或 None。"""

    line = line.strip()
    if not line:
        return None
    if line in ("/quit", "/exit"):
        return "quit"
    if line == "/reset":
        return "reset"

    image = None
    text = line
    if line == "/image" or line.startswith("/image "):
        parts = line.split(maxsplit=2)
        if len(parts) < 2:
            out.write("usage: /image <path> [text]\n")
            return None
        try:
            image = image_to_data_uri(parts[1])
        except InputError as e:
            out.write(f"⚠️ {e.message}\n")
            return None
        text = parts[2] if len(parts) > 2 else ""

    _send(session, text, image, out)
    return None


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="simplo", description="Chat with an OpenAI-compatible LLM")
    parser.add_argument("message", nargs="?", help="send a single message and exit")
    parser.add_argument("--image", help="attach an image file to the single message")
    args = parser.parse_args(argv)

    try:
        orchestrator = create_orchestrator()
    except ConfigurationError as e:
        sys.stderr.write(f"{e.message}\n")
        return 2
    session = ChatSession(orchestrator)

    if args.message is not None or args.image:
        image = None
        if args.image:
            try:
                image = image_to_data_uri(args.image)
            except InputError as e:
                sys.stderr.write(f"{e.message}\n")
                return 1
        return 0 if _send(session, args.message or "", image, sys.stdout) else 1

    while True:
        try:
            line = input("you> ")
        except (EOFError, KeyboardInterrupt):
            sys.stdout.write("\n")
            return 0
        action = handle_line(session, line, sys.stdout)
        if action == "quit":
            return 0
        if action == "reset":
            session = ChatSession(orchestrator)


if __name__ == "__main__":
    sys.exit(main())
