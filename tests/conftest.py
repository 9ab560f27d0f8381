# Shared fixtures: isolated settings, a seeded store and a fake upstream model.
# Created: 2026-09-06

import asyncio
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from anythingai.api.serve import create_app
from anythingai.config import Settings
from anythingai.llm.client import LLMClient
from anythingai.llm.generation import GenerationClient
from anythingai.llm.usage import UsageLogger
from anythingai.store.file_store import FileChatStore
from anythingai.store.seed import seed_departments


class FakeStream:
    """Async-iterable stand-in for an upstream message stream."""

    def __init__(self, events, error=None):
        self.events = list(events)
        self.error = error

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for event in self.events:
            yield event
        if self.error is not None:
            raise self.error


def text_events(*chunks, input_tokens=12, output_tokens=7, with_usage=True):
    """Raw stream events for a plain text reply."""
    events = []
    if with_usage:
        events.append(
            SimpleNamespace(
                type="message_start",
                message=SimpleNamespace(
                    usage=SimpleNamespace(input_tokens=input_tokens, output_tokens=1)
                ),
            )
        )
    for chunk in chunks:
        events.append(
            SimpleNamespace(
                type="content_block_delta",
                index=0,
                delta=SimpleNamespace(type="text_delta", text=chunk),
            )
        )
    if with_usage:
        events.append(
            SimpleNamespace(
                type="message_delta", usage=SimpleNamespace(output_tokens=output_tokens)
            )
        )
    events.append(SimpleNamespace(type="message_stop"))
    return events


@pytest.fixture
def settings(tmp_path):
    return Settings(
        anthropic_api_key="test-key",
        anthropic_model="test-model",
        data_dir=tmp_path / "data",
        token_secret="test-secret",
        password_hash_rounds=4,
        web_search_mode="off",
        web_search_provider="duckduckgo",
        search_snippet_only=True,
        rate_limit_max=1000,
    )


@pytest.fixture
def store(settings):
    s = FileChatStore(settings.store_path)
    asyncio.run(seed_departments(s))
    return s


@pytest.fixture
def fake_upstream():
    """A MagicMock shaped like ``AsyncAnthropic``.

    ``messages.create`` streams "Hello" + " world" by default;
    ``messages.count_tokens`` reports 42 input tokens.
    """
    client = MagicMock()
    client.messages.create = AsyncMock(
        side_effect=lambda **kwargs: FakeStream(text_events("Hello", " world"))
    )
    client.messages.count_tokens = AsyncMock(return_value=SimpleNamespace(input_tokens=42))
    return client


@pytest.fixture
def generation(settings, fake_upstream):
    return GenerationClient(
        LLMClient(model="test-model", api_key="test-key"),
        settings,
        usage_logger=UsageLogger(settings.usage_log_path),
        client=fake_upstream,
        sleep=AsyncMock(),
    )


@pytest.fixture
def app(settings, store, generation):
    return create_app(settings, store=store, generation=generation)


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def register(client):
    """Register a user and return ``(auth_headers, user_payload)``."""

    def _register(
        email: str = "ada@example.com",
        password: str = "correct horse",
        department: str = "Ask Anything",
    ):
        resp = client.post(
            "/api/auth/register",
            json={"email": email, "password": password, "departmentName": department},
        )
        assert resp.status_code == 201, resp.text
        body = resp.json()
        return {"Authorization": f"Bearer {body['token']}"}, body["user"]

    return _register


def sse_frames(text: str) -> list[dict]:
    """Decode every ``data:`` frame of an SSE body."""
    return [
        json.loads(chunk[len("data: ") :])
        for chunk in text.split("\n\n")
        if chunk.startswith("data: ")
    ]
