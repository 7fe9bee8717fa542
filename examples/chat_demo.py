"""Minimal demonstration of a text turn followed by an image turn."""

from simplo_core.api.service import init, run_chat

if __name__ == "__main__":
    init()

    reply = run_chat("Hello! What can you do?")
    print("Assistant:", reply.get("display") or reply.get("error"))

    # 1x1 transparent PNG
    pixel = (
        "data:image/png;base64,"
        "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAQAAAC1HAwCAAAAC0lEQVR42mNkYAAAAAYAAjCB0C8AAAAASUVORK5CYII="
    )
    reply = run_chat("", image=pixel)
    print("Assistant:", reply.get("display") or reply.get("error"))
