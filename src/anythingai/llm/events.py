# Stream events relayed to the browser over SSE.
# Created: 2026-09-02
#
# One chat request yields: [conversation] [meta] token* (done | error).
# Each variant knows its own wire shape; nothing downstream sniffs dict keys.

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, ClassVar

from anythingai.errors import ChatError, ErrorKind, error_body


@dataclass(frozen=True)
class WebResult:
    title: str
    link: str
    snippet: str = ""
    source: str | None = None
    content: str | None = None  # page excerpt, top results only

    def to_dict(self) -> dict[str, str]:
        data = {"title": self.title, "link": self.link, "snippet": self.snippet}
        if self.source:
            data["source"] = self.source
        if self.content:
            data["content"] = self.content
        return data


@dataclass(frozen=True)
class Usage:
    input_tokens: int = 0
    output_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    def to_dict(self) -> dict[str, int]:
        return {"inputTokens": self.input_tokens, "outputTokens": self.output_tokens}


@dataclass(frozen=True)
class ConversationEvent:
    """Sent first, and only when the request created a new conversation."""

    kind: ClassVar[str] = "conversation"
    terminal: ClassVar[bool] = False

    conversation_id: str
    title: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.kind, "conversationId": self.conversation_id, "title": self.title}


@dataclass(frozen=True)
class MetaEvent:
    """Context that grounded the answer. Always precedes the first token."""

    kind: ClassVar[str] = "meta"
    terminal: ClassVar[bool] = False

    web_results: tuple[WebResult, ...] | None = None
    last_updated: str | None = None
    weather: dict[str, Any] | None = None
    time: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.kind}
        if self.web_results is not None:
            data["webResults"] = [r.to_dict() for r in self.web_results]
        if self.last_updated is not None:
            data["lastUpdated"] = self.last_updated
        if self.weather is not None:
            data["weather"] = self.weather
        if self.time is not None:
            data["time"] = self.time
        return data


@dataclass(frozen=True)
class TokenEvent:
    kind: ClassVar[str] = "token"
    terminal: ClassVar[bool] = False

    text: str

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.kind, "text": self.text}


@dataclass(frozen=True)
class DoneEvent:
    kind: ClassVar[str] = "done"
    terminal: ClassVar[bool] = True

    usage: Usage | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"type": self.kind}
        if self.usage is not None:
            data["usage"] = self.usage.to_dict()
        return data


@dataclass(frozen=True)
class ErrorEvent:
    kind: ClassVar[str] = "error"
    terminal: ClassVar[bool] = True

    code: ErrorKind
    message: str

    @classmethod
    def from_error(cls, err: ChatError) -> ErrorEvent:
        return cls(code=err.kind, message=err.message)

    def to_dict(self) -> dict[str, Any]:
        return error_body(self.code, self.message)


StreamEvent = ConversationEvent | MetaEvent | TokenEvent | DoneEvent | ErrorEvent


def encode_sse(event: StreamEvent) -> str:
    """Frame one event as ``data: <json>\\n\\n``."""
    return f"data: {json.dumps(event.to_dict(), ensure_ascii=False)}\n\n"


class EventOrderError(RuntimeError):
    """Raised when an event would break the per-request ordering rules."""


@dataclass
class EventSequence:
    """Tracks what has been emitted for one request and rejects illegal events.

    Rules: a conversation event can only come first, a single meta event must
    precede every token, and exactly one terminal event closes the sequence.
    """

    emitted: list[str] = field(default_factory=list)

    @property
    def finished(self) -> bool:
        return bool(self.emitted) and self.emitted[-1] in (DoneEvent.kind, ErrorEvent.kind)

    def check(self, event: StreamEvent) -> None:
        if self.finished:
            raise EventOrderError(f"{event.kind} event after terminal event")
        if isinstance(event, ConversationEvent) and self.emitted:
            raise EventOrderError("conversation event must be first")
        if isinstance(event, MetaEvent):
            if MetaEvent.kind in self.emitted:
                raise EventOrderError("duplicate meta event")
            if TokenEvent.kind in self.emitted:
                raise EventOrderError("meta event after token")
        self.emitted.append(event.kind)
