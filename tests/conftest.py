"""Pytest configuration and shared fixtures."""
import os
from typing import Any

import pytest

from lmchat.llm import ChatMessage, LLMProvider, LLMResponse
from lmchat.sessions import SessionStore
from lmchat.settings import SettingsStore
from lmchat.storage import InMemoryStorage

START_MS = 1_700_000_000_000


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: int = START_MS):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int = 1000) -> int:
        self.now += ms
        return self.now


class FakeProvider(LLMProvider):
    """LLM provider that records calls instead of talking to a server."""

    def __init__(
        self,
        reply: str = "Hello from the model",
        error: Exception | None = None,
        models: list[str] | None = None,
        models_error: Exception | None = None,
    ):
        self.reply = reply
        self.error = error
        self.models = models if models is not None else ["mistralai/ministral-3-3b"]
        self.models_error = models_error
        self.calls: list[dict[str, Any]] = []
        self.list_calls = 0
        self.closed = False

    async def chat_completion(
        self,
        messages: list[ChatMessage],
        model: str | None = None,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        **kwargs: Any
    ) -> LLMResponse:
        self.calls.append({
            "messages": messages,
            "model": model,
            "temperature": temperature,
            "max_tokens": max_tokens,
        })
        if self.error is not None:
            raise self.error
        return LLMResponse(content=self.reply, model=model or "fake")

    async def list_models(self) -> list[str]:
        self.list_calls += 1
        if self.models_error is not None:
            raise self.models_error
        return list(self.models)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def storage():
    """Return an empty in-memory storage backend."""
    return InMemoryStorage()


@pytest.fixture
def clock():
    """Return a manually advanced clock."""
    return FakeClock()


@pytest.fixture
def store(storage, clock):
    """Return a loaded session store on empty storage."""
    session_store = SessionStore(storage, clock=clock)
    session_store.load()
    return session_store


@pytest.fixture
def settings_store(storage):
    """Return a loaded settings store."""
    settings = SettingsStore(storage)
    settings.load()
    return settings


@pytest.fixture
def provider():
    """Return a fake LLM provider."""
    return FakeProvider()


@pytest.fixture(scope="session")
def model_server():
    """Return the base URL of a running model server, if configured."""
    return os.getenv("LMCHAT_TEST_BASE_URL")
