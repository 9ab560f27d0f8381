# Prompt assembly for the upstream model.
# Created: 2026-09-03
#
# Turn order: [history...] [context turn] final user turn.
# History roles are "user"/"model" on our side and "user"/"assistant" upstream.

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Literal

from anythingai.context.clock import TimeData, format_time_context
from anythingai.context.search import format_web_context
from anythingai.context.weather import WeatherData, format_weather_context
from anythingai.llm.events import MetaEvent, WebResult

Role = Literal["user", "model"]

UPSTREAM_ROLES: dict[str, str] = {"user": "user", "model": "assistant"}

PromptContents = str | list[dict[str, Any]]

_FOLLOW_UP_MAX_WORDS = 8
_FOLLOW_UP_LEAD = re.compile(
    r"^(and|also|but|so|then|or|what about|how about|what else|why|how come|"
    r"it|its|it's|that|this|those|these|they|them|he|she|more|continue|go on|"
    r"elaborate|explain|again|same|tell me more|can you|could you|ok|okay)\b",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class HistoryTurn:
    role: Role
    text: str


@dataclass(frozen=True)
class ImageData:
    data: str  # base64, no data: prefix
    mime_type: str


@dataclass(frozen=True)
class ChatRequest:
    message: str
    system_instruction: str | None = None
    history: tuple[HistoryTurn, ...] = ()
    image: ImageData | None = None


@dataclass(frozen=True)
class WebContext:
    results: tuple[WebResult, ...]
    last_updated: str


@dataclass
class PromptContext:
    """Optional enrichments resolved for one request."""

    time: TimeData | None = None
    weather: WeatherData | None = None
    web: WebContext | None = None

    @property
    def is_empty(self) -> bool:
        return self.time is None and self.weather is None and self.web is None

    def render(self) -> str | None:
        blocks: list[str] = []
        if self.time is not None:
            blocks.append(format_time_context(self.time))
        if self.weather is not None:
            blocks.append(format_weather_context(self.weather))
        if self.web is not None:
            blocks.append(format_web_context(list(self.web.results), self.web.last_updated))
        return "\n\n".join(blocks) if blocks else None

    def to_meta(self) -> MetaEvent | None:
        if self.is_empty:
            return None
        return MetaEvent(
            web_results=self.web.results if self.web else None,
            last_updated=self.web.last_updated if self.web else None,
            weather=self.weather.to_dict() if self.weather else None,
            time=self.time.to_dict() if self.time else None,
        )


def is_follow_up(message: str) -> bool:
    """Lexical guess at whether *message* continues the previous exchange.

    Short messages, and messages opening with a connective or a pronoun,
    count as follow-ups.
    """
    text = message.strip()
    if not text:
        return True
    if len(text.split()) <= _FOLLOW_UP_MAX_WORDS:
        return True
    return bool(_FOLLOW_UP_LEAD.match(text))


def select_history(
    request: ChatRequest, *, window: int = 20, gate: bool = True
) -> list[HistoryTurn]:
    """History turns to send: gated by the follow-up heuristic, trimmed to *window*."""
    if not request.history or window <= 0:
        return []
    if gate and not is_follow_up(request.message):
        return []

    turns = [t for t in request.history if t.text.strip()][-window:]
    # Upstream conversations must open with a user turn.
    while turns and turns[0].role != "user":
        turns.pop(0)
    return turns


def build_prompt_contents(
    request: ChatRequest,
    context: PromptContext | None = None,
    *,
    history_window: int = 20,
    history_gate: bool = True,
) -> PromptContents:
    """Assemble upstream message contents for *request*.

    Collapses to the bare message string when there is no history, no image
    and no context.
    """
    history = select_history(request, window=history_window, gate=history_gate)
    context_text = context.render() if context else None

    if not history and request.image is None and not context_text:
        return request.message

    contents: list[dict[str, Any]] = [
        {"role": UPSTREAM_ROLES[turn.role], "content": turn.text} for turn in history
    ]

    if context_text:
        contents.append({"role": "user", "content": context_text})

    final: str | list[dict[str, Any]] = request.message
    if request.image is not None:
        blocks: list[dict[str, Any]] = []
        if request.message:
            blocks.append({"type": "text", "text": request.message})
        blocks.append(
            {
                "type": "image",
                "source": {
                    "type": "base64",
                    "media_type": request.image.mime_type,
                    "data": request.image.data,
                },
            }
        )
        final = blocks
    contents.append({"role": "user", "content": final})
    return contents


def as_messages(contents: PromptContents) -> list[dict[str, Any]]:
    """Normalise contents into the upstream ``messages`` list."""
    if isinstance(contents, str):
        return [{"role": "user", "content": contents}]
    return contents
