"""Upstream generation client.

Turns a ``ChatRequest`` into an ordered stream of events::

    [MetaEvent] TokenEvent* DoneEvent

Context providers (clock, weather, web search) are resolved concurrently
before the upstream call, so the meta event always precedes the first token.
Rate-limited upstream calls are retried by ``with_backoff``; every other
failure propagates to the caller, which turns it into a terminal error event.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from datetime import UTC, datetime
from typing import Any, TypeVar

import anthropic
import httpx

from anythingai.config import Settings
from anythingai.context.clock import get_time_data
from anythingai.context.search import enrich_results, is_time_sensitive_query, search_web
from anythingai.context.weather import get_weather_data
from anythingai.errors import ChatError, ErrorKind, is_rate_limit_error, normalize_error
from anythingai.llm.client import LLMClient
from anythingai.llm.events import DoneEvent, StreamEvent, TokenEvent, Usage
from anythingai.llm.prompt import (
    ChatRequest,
    PromptContents,
    PromptContext,
    WebContext,
    as_messages,
    build_prompt_contents,
)
from anythingai.llm.usage import UsageLogger, UsageRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")

WEB_SEARCH_TOOL: dict[str, Any] = {
    "name": "web_search",
    "description": "Search the web for realtime information.",
    "input_schema": {
        "type": "object",
        "properties": {
            "query": {"type": "string", "description": "Search query"},
        },
        "required": ["query"],
    },
}

_SEARCH_PLANNER_PROMPT = (
    "Always call web_search for every user query. Use a short, precise search query."
)


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class GenerationClient:
    """Streams completions from the hosted model for chat requests."""

    def __init__(
        self,
        llm: LLMClient,
        settings: Settings,
        *,
        usage_logger: UsageLogger | None = None,
        client: Any = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self._llm = llm
        self._settings = settings
        self._client = client
        self._usage_logger = usage_logger
        self._sleep = sleep
        self.max_retries = settings.upstream_max_retries
        self.initial_backoff = settings.upstream_initial_backoff

    @property
    def model(self) -> str:
        return self._llm.model

    @property
    def client(self):
        if self._client is None:
            self._client = self._llm.create_anthropic_client()
        return self._client

    # ------------------------------------------------------------------
    # Retry
    # ------------------------------------------------------------------

    async def with_backoff(self, fn: Callable[[], Awaitable[T]]) -> T:
        """Call *fn*, retrying rate-limit failures with exponential backoff.

        Delays are ``initial_backoff * 2**attempt`` (1s, 2s, 4s, 8s by default).
        Once ``max_retries`` retries are spent the last error is raised.
        """
        attempt = 0
        while True:
            try:
                return await fn()
            except Exception as e:
                if not is_rate_limit_error(e) or attempt >= self.max_retries:
                    raise
                delay = self.initial_backoff * (2**attempt)
                attempt += 1
                logger.warning(
                    "Upstream rate limited (attempt %d/%d). Retrying in %.1fs: %s",
                    attempt,
                    self.max_retries,
                    delay,
                    e,
                )
                await self._sleep(delay)

    # ------------------------------------------------------------------
    # Context
    # ------------------------------------------------------------------

    async def resolve_web_context(self, message: str) -> WebContext | None:
        """Search the web for *message*, or return None.

        Never raises: a failed search only means the answer is not grounded.
        """
        mode = self._settings.web_search_mode
        if mode == "off" or not message.strip():
            return None
        if mode == "auto" and not is_time_sensitive_query(message):
            return None

        try:
            query = await self._plan_search_query(message)
            results = await search_web(query, self._settings)
        except Exception as e:
            logger.warning("Web search unavailable, continuing without it: %s", e)
            return None

        if not results:
            logger.info("Web search returned nothing for %r", message)
            return None
        results = await enrich_results(
            results, snippet_only=self._settings.search_snippet_only
        )
        return WebContext(results=tuple(results), last_updated=_now_iso())

    async def _plan_search_query(self, message: str) -> str:
        """Ask the model for a concise search query via a forced tool call."""
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=256,
            system=_SEARCH_PLANNER_PROMPT,
            tools=[WEB_SEARCH_TOOL],
            tool_choice={"type": "tool", "name": WEB_SEARCH_TOOL["name"]},
            messages=[{"role": "user", "content": message}],
        )
        for block in response.content:
            if getattr(block, "type", None) == "tool_use" and block.name == WEB_SEARCH_TOOL["name"]:
                query = str((block.input or {}).get("query", "")).strip()
                if query:
                    return query
        return message

    async def gather_context(self, request: ChatRequest) -> PromptContext:
        message = request.message
        weather, web = await asyncio.gather(
            get_weather_data(message),
            self.resolve_web_context(message),
            return_exceptions=True,
        )
        if isinstance(weather, BaseException):
            logger.warning("Weather context failed: %s", weather)
            weather = None
        if isinstance(web, BaseException):
            logger.warning("Web context failed: %s", web)
            web = None
        return PromptContext(time=get_time_data(message), weather=weather, web=web)

    def build_prompt_contents(
        self, request: ChatRequest, context: PromptContext | None = None
    ) -> PromptContents:
        return build_prompt_contents(
            request,
            context,
            history_window=self._settings.history_window,
            history_gate=self._settings.history_gate,
        )

    @staticmethod
    def system_instruction(request: ChatRequest, context: PromptContext) -> str | None:
        if context.web is None:
            return request.system_instruction or None
        return (
            f"{request.system_instruction or ''}\n\n"
            "Use the realtime web results if provided and end the response with "
            f'"Last updated: {context.web.last_updated}".'
        ).strip()

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    async def count_tokens(self, contents: PromptContents, system: str | None = None) -> int:
        """Count input tokens for *contents*; 0 when counting fails."""
        params: dict[str, Any] = {"model": self.model, "messages": as_messages(contents)}
        if system:
            params["system"] = system
        try:
            result = await self.client.messages.count_tokens(**params)
            return int(getattr(result, "input_tokens", 0) or 0)
        except Exception as e:
            logger.debug("Token count failed: %s", e)
            return 0

    # ------------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------------

    async def stream(self, request: ChatRequest) -> AsyncIterator[StreamEvent]:
        context = await self.gather_context(request)
        meta = context.to_meta()
        if meta is not None:
            yield meta

        system = self.system_instruction(request, context)
        contents = self.build_prompt_contents(request, context)

        params: dict[str, Any] = {
            "model": self.model,
            "max_tokens": self._settings.max_output_tokens,
            "temperature": self._settings.temperature,
            "messages": as_messages(contents),
            "stream": True,
        }
        if system:
            params["system"] = system

        started = time.monotonic()
        counted_input = await self.count_tokens(contents, system)
        upstream = await self.with_backoff(lambda: self.client.messages.create(**params))

        full_text: list[str] = []
        stream_input: int | None = None
        stream_output: int | None = None
        try:
            async for event in upstream:
                kind = getattr(event, "type", None)
                if kind == "message_start":
                    usage = getattr(event.message, "usage", None)
                    if usage is not None and usage.input_tokens is not None:
                        stream_input = usage.input_tokens
                elif kind == "content_block_delta":
                    delta = event.delta
                    text = getattr(delta, "text", None)
                    if getattr(delta, "type", None) == "text_delta" and text:
                        full_text.append(text)
                        yield TokenEvent(text=text)
                elif kind == "message_delta":
                    usage = getattr(event, "usage", None)
                    if usage is not None and getattr(usage, "output_tokens", None) is not None:
                        stream_output = usage.output_tokens
        except (anthropic.APIConnectionError, httpx.TransportError) as e:
            logger.warning("Upstream closed the stream early: %s", e)

        input_tokens = stream_input if stream_input is not None else counted_input
        if stream_output is not None:
            output_tokens = stream_output
        elif full_text:
            output_tokens = await self.count_tokens("".join(full_text))
        else:
            output_tokens = 0

        self._log_usage(input_tokens, output_tokens, started)
        yield DoneEvent(usage=Usage(input_tokens=input_tokens, output_tokens=output_tokens))

    def _log_usage(self, input_tokens: int, output_tokens: int, started: float) -> None:
        if self._usage_logger is None:
            return
        self._usage_logger.log(
            UsageRecord(
                timestamp=_now_iso(),
                model=self.model,
                inputTokens=input_tokens,
                outputTokens=output_tokens,
                totalTokens=input_tokens + output_tokens,
                durationMs=int((time.monotonic() - started) * 1000),
            )
        )

    def describe_error(self, err: BaseException) -> ChatError:
        """Client-facing error for a failed generation."""
        chat_err = normalize_error(err)
        if chat_err.kind is ErrorKind.SERVER_ERROR and isinstance(err, anthropic.APIError):
            return ChatError(ErrorKind.SERVER_ERROR, self._llm.format_api_error(err))
        return chat_err
