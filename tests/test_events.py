# Tests for stream events: wire shapes and ordering rules.
# Created: 2026-09-06

import json

import pytest

from anythingai.errors import ErrorKind
from anythingai.llm.events import (
    ConversationEvent,
    DoneEvent,
    ErrorEvent,
    EventOrderError,
    EventSequence,
    MetaEvent,
    TokenEvent,
    Usage,
    WebResult,
    encode_sse,
)


class TestWireShapes:
    def test_conversation(self):
        event = ConversationEvent(conversation_id="c1", title="Hello")
        assert event.to_dict() == {"type": "conversation", "conversationId": "c1", "title": "Hello"}

    def test_meta_omits_missing_fields(self):
        assert MetaEvent().to_dict() == {"type": "meta"}

    def test_meta_with_web_results(self):
        event = MetaEvent(
            web_results=(WebResult("Title", "https://example.com", "snip"),),
            last_updated="2026-09-06T10:00:00+00:00",
        )
        assert event.to_dict() == {
            "type": "meta",
            "webResults": [{"title": "Title", "link": "https://example.com", "snippet": "snip"}],
            "lastUpdated": "2026-09-06T10:00:00+00:00",
        }

    def test_done_usage(self):
        event = DoneEvent(usage=Usage(input_tokens=10, output_tokens=5))
        assert event.to_dict() == {
            "type": "done",
            "usage": {"inputTokens": 10, "outputTokens": 5},
        }

    def test_error_uses_error_body(self):
        event = ErrorEvent(code=ErrorKind.QUOTA_EXCEEDED, message="slow down")
        assert event.to_dict() == {"error": True, "code": "QUOTA_EXCEEDED", "message": "slow down"}

    def test_encode_sse_framing(self):
        frame = encode_sse(TokenEvent(text="héllo"))
        assert frame.startswith("data: ")
        assert frame.endswith("\n\n")
        assert json.loads(frame[len("data: ") :]) == {"type": "token", "text": "héllo"}


class TestEventSequence:
    """Per-request ordering: [conversation] [meta] token* terminal."""

    def test_full_sequence(self):
        seq = EventSequence()
        for event in (
            ConversationEvent("c1", "t"),
            MetaEvent(),
            TokenEvent("a"),
            TokenEvent("b"),
            DoneEvent(),
        ):
            seq.check(event)
        assert seq.finished
        assert seq.emitted == ["conversation", "meta", "token", "token", "done"]

    def test_error_without_tokens_is_terminal(self):
        seq = EventSequence()
        seq.check(ErrorEvent(ErrorKind.SERVER_ERROR, "x"))
        assert seq.finished

    def test_meta_after_token_rejected(self):
        seq = EventSequence()
        seq.check(TokenEvent("a"))
        with pytest.raises(EventOrderError):
            seq.check(MetaEvent())

    def test_duplicate_meta_rejected(self):
        seq = EventSequence()
        seq.check(MetaEvent())
        with pytest.raises(EventOrderError):
            seq.check(MetaEvent())

    def test_nothing_after_terminal(self):
        seq = EventSequence()
        seq.check(DoneEvent())
        with pytest.raises(EventOrderError):
            seq.check(TokenEvent("late"))
        with pytest.raises(EventOrderError):
            seq.check(ErrorEvent(ErrorKind.SERVER_ERROR, "late"))

    def test_conversation_must_be_first(self):
        seq = EventSequence()
        seq.check(MetaEvent())
        with pytest.raises(EventOrderError):
            seq.check(ConversationEvent("c1", "t"))
