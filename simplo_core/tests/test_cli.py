import base64
import io

import pytest

from simplo_core import cli
from simplo_core.agents.exchange import ExchangeOrchestrator
from simplo_core.agents.session import ChatSession
from simplo_core.domain.exceptions import ConfigurationError, InputError, TransportError
from simplo_core.domain.models import ChatCompletion


PNG_BYTES = b"\x89PNG\r\n\x1a\nfake"


class FakeProvider:
    name = "fake"

    def __init__(self, outcome=None):
        self.outcome = outcome or ChatCompletion(content="# Hello\n\nNice **picture**")
        self.requests = []

    def chat(self, req):
        self.requests.append(req)
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


def test_image_to_data_uri(tmp_path):
    img = tmp_path / "cat.png"
    img.write_bytes(PNG_BYTES)
    uri = cli.image_to_data_uri(img)
    assert uri == "data:image/png;base64," + base64.b64encode(PNG_BYTES).decode("ascii")


def test_image_to_data_uri_rejects_non_images(tmp_path):
    doc = tmp_path / "notes.txt"
    doc.write_text("hi", encoding="utf-8")
    with pytest.raises(InputError):
        cli.image_to_data_uri(doc)
    with pytest.raises(InputError):
        cli.image_to_data_uri(tmp_path / "missing.png")


def test_handle_line_sends_image_and_prints_plain_reply(tmp_path):
    img = tmp_path / "cat.png"
    img.write_bytes(PNG_BYTES)
    provider = FakeProvider()
    session = ChatSession(ExchangeOrchestrator(provider))
    out = io.StringIO()

    assert cli.handle_line(session, f"/image {img} what is this?", out) is None
    assert provider.requests[0].vision is True
    assert session.messages()[0].text == "what is this?"
    printed = out.getvalue()
    assert "Hello" in printed
    assert "Nice picture" in printed
    assert "**" not in printed


def test_handle_line_prints_synthetic_error():
    provider = FakeProvider(TransportError(code="NETWORK_ERROR", message="connection refused", http_status=503))
    session = ChatSession(ExchangeOrchestrator(provider))
    out = io.StringIO()
    cli.handle_line(session, "hi", out)
    assert out.getvalue() == "⚠️ connection refused\n"
    assert len(session.messages()) == 1


def test_handle_line_commands():
    session = ChatSession(ExchangeOrchestrator(FakeProvider()))
    out = io.StringIO()
    assert cli.handle_line(session, "/quit", out) == "quit"
    assert cli.handle_line(session, "/reset", out) == "reset"
    assert cli.handle_line(session, "   ", out) is None
    assert cli.handle_line(session, "/image", out) is None
    assert "usage" in out.getvalue()
    assert session.messages() == ()


def test_main_missing_credential_exits_with_2(monkeypatch, capsys):
    def boom():
        raise ConfigurationError(code="MISSING_API_KEY", message="OPENROUTER_API_KEY environment variable is not set")

    monkeypatch.setattr(cli, "create_orchestrator", boom)
    assert cli.main(["hello"]) == 2
    assert "OPENROUTER_API_KEY" in capsys.readouterr().err


def test_main_single_message(monkeypatch, capsys):
    provider = FakeProvider(ChatCompletion(content="Hi there"))
    monkeypatch.setattr(cli, "create_orchestrator", lambda: ExchangeOrchestrator(provider))
    assert cli.main(["hello"]) == 0
    assert "Hi there" in capsys.readouterr().out


def test_reset_keeps_startup_orchestrator(monkeypatch, capsys):
    provider = FakeProvider(ChatCompletion(content="ok"))
    calls = []

    def factory():
        calls.append(1)
        return ExchangeOrchestrator(provider)

    lines = iter(["first", "/reset", "second", "/quit"])
    monkeypatch.setattr(cli, "create_orchestrator", factory)
    monkeypatch.setattr("builtins.input", lambda prompt="": next(lines))

    assert cli.main([]) == 0
    assert len(calls) == 1
    # /reset 之后第二条消息不带上一会话的历史
    assert [m["content"] for m in provider.requests[1].messages] == ["second"]
