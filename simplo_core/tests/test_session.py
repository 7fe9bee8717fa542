"""测试 ChatSession 的追加语义：失败的交换不会产生 assistant 消息。"""

import threading

from simplo_core.agents.exchange import ExchangeOrchestrator
from simplo_core.agents.session import ChatSession, format_error_detail
from simplo_core.domain.exceptions import ContractViolationError, TransportError, UpstreamError
from simplo_core.domain.models import ChatCompletion, ChatUsage


IMAGE = "data:image/jpeg;base64,/9j/4AAQSkZJRg=="


class FakeProvider:
    """模拟的 Provider，按顺序返回预设结果或抛出预设异常。"""
    name = "fake"

    def __init__(self, *outcomes):
        self._outcomes = list(outcomes)
        self.requests = []

    def chat(self, req):
        self.requests.append(req)
        outcome = self._outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def make_session(*outcomes):
    provider = FakeProvider(*outcomes)
    return ChatSession(orchestrator=ExchangeOrchestrator(provider)), provider


def test_send_appends_user_and_assistant_messages():
    session, provider = make_session(
        ChatCompletion(content="**Hi** there", usage=ChatUsage(raw={"tokens": 12}))
    )
    result = session.send("Hello")

    assert result.ok
    assert result.usage == {"tokens": 12}
    msgs = session.messages()
    assert [m.role for m in msgs] == ["user", "assistant"]
    assert msgs[0].text == "Hello"
    # 存储原始文本，展示时再规范化
    assert msgs[1].text == "**Hi** there"
    assert session.display_messages()[1].text == "Hi there"
    assert session.display_messages()[0].text == "Hello"
    assert len(provider.requests) == 1


def test_upstream_rate_limit_does_not_append_assistant():
    err = UpstreamError(
        code="UPSTREAM_ERROR",
        message='{"error": "rate limited"}',
        http_status=429,
        payload={"error": "rate limited"},
    )
    session, _ = make_session(err)
    result = session.send("Hello")

    assert not result.ok
    assert result.error_kind == "upstream"
    assert result.http_status == 429
    assert "rate limited" in format_error_detail(result.detail)
    assert [m.role for m in session.messages()] == ["user"]


def test_contract_violation_is_distinct_from_upstream_error():
    session, _ = make_session(
        ContractViolationError(code="INVALID_RESPONSE", message="missing choices", http_status=502)
    )
    result = session.send("Hello")
    assert result.error_kind == "contract"
    assert result.detail == "missing choices"
    assert len(session.messages()) == 1


def test_invalid_input_appends_nothing_and_skips_network():
    session, provider = make_session()
    result = session.send("   ")
    assert result.error_kind == "input"
    assert session.messages() == ()
    assert provider.requests == []


def test_image_turn_then_text_follow_up_keeps_vision_model():
    session, provider = make_session(
        ChatCompletion(content="A cat on a sofa."),
        ChatCompletion(content="Orange."),
    )
    assert session.send("", image=IMAGE).ok
    assert session.send("What colour is it?").ok
    assert provider.requests[0].vision is True
    assert provider.requests[1].vision is True
    assert session.display_messages()[0].has_image


def test_session_recovers_after_failure():
    session, provider = make_session(
        TransportError(code="NETWORK_ERROR", message="timed out", http_status=503),
        ChatCompletion(content="Back online"),
    )
    assert session.send("first").error_kind == "transport"
    assert session.send("second").ok
    assert [m.text for m in session.messages()] == ["first", "second", "Back online"]
    # 第二次请求包含两条用户消息
    assert len(provider.requests[1].messages) == 2


def test_empty_assistant_content_is_not_stored():
    session, _ = make_session(ChatCompletion(content=""))
    result = session.send("Hello")
    assert result.ok
    assert [m.role for m in session.messages()] == ["user"]


def test_error_message_is_synthetic_and_not_stored():
    err = UpstreamError(code="UPSTREAM_ERROR", message="x", http_status=401, payload={"error": {"code": 401}})
    session, _ = make_session(err)
    result = session.send("Hello")
    display = session.error_message(result)
    assert display.role == "assistant"
    assert display.synthetic is True
    assert display.text.startswith("⚠️ ")
    assert '"code": 401' in display.text
    assert len(session.messages()) == 1


def test_format_error_detail():
    assert format_error_detail("plain") == "plain"
    assert format_error_detail(None) == "Unknown error"
    assert format_error_detail({"error": "x"}) == '{\n  "error": "x"\n}'


def test_concurrent_sends_are_serialized():
    entered = threading.Event()
    release = threading.Event()
    snapshots = []

    class BlockingProvider:
        name = "blocking"

        def chat(self, req):
            snapshots.append([m["content"] for m in req.messages])
            if len(snapshots) == 1:
                entered.set()
                assert release.wait(timeout=5)
            return ChatCompletion(content="reply")

    session = ChatSession(orchestrator=ExchangeOrchestrator(BlockingProvider()))
    first = threading.Thread(target=session.send, args=("first",))
    second = threading.Thread(target=session.send, args=("second",))

    first.start()
    assert entered.wait(timeout=5)
    second.start()
    second.join(timeout=0.2)
    # 第一轮交换未返回前，第二条用户消息不能进入存储
    assert second.is_alive()
    assert [m.text for m in session.messages()] == ["first"]

    release.set()
    first.join(timeout=5)
    second.join(timeout=5)

    assert [m.text for m in session.messages()] == ["first", "reply", "second", "reply"]
    assert snapshots == [["first"], ["first", "reply", "second"]]
