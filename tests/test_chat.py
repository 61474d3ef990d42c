"""Unit tests for the chat service."""
import logging

import pytest

from lmchat.chat import DIAGNOSTIC_MESSAGE, ChatService
from lmchat.exceptions import SessionNotFoundError, UpstreamError
from lmchat.sessions import DEFAULT_TITLE, Role, SessionStore

from .conftest import FakeProvider


@pytest.fixture
def service(store, settings_store, provider):
    """Return a chat service over loaded in-memory stores."""
    return ChatService(store, settings_store, provider)


class ReentrantProvider(FakeProvider):
    """Provider that tries to send again while a reply is pending."""

    def __init__(self):
        super().__init__(reply="done")
        self.service: ChatService | None = None
        self.nested_result = "unset"

    async def chat_completion(self, messages, model=None, temperature=0.7, max_tokens=None, **kwargs):
        self.nested_result = await self.service.send("second message")
        return await super().chat_completion(messages, model, temperature, max_tokens, **kwargs)


class TestSend:
    """Tests for sending a user turn."""

    @pytest.mark.asyncio
    async def test_send_records_both_turns(self, service, store, provider):
        """Test that send records the user turn and the reply."""
        reply = await service.send("  What is the capital of Norway?  ")

        session = store.current
        assert reply is not None
        assert reply.role is Role.ASSISTANT
        assert reply.content == provider.reply
        assert [m.role for m in session.messages] == [Role.USER, Role.ASSISTANT]
        assert session.messages[0].content == "What is the capital of Norway?"
        assert session.title == "What is the capital of Norway?"

    @pytest.mark.asyncio
    async def test_request_has_system_prompt_then_history(self, service, store, settings_store, provider):
        """Test that the system prompt comes before the history."""
        settings_store.update(model_id="qwen/qwen3-8b", temperature="0.2", max_tokens="128")

        await service.send("first")
        await service.send("second")

        call = provider.calls[-1]
        assert call["model"] == "qwen/qwen3-8b"
        assert call["temperature"] == 0.2
        assert call["max_tokens"] == 128
        assert [(m.role, m.content) for m in call["messages"]] == [
            ("system", settings_store.settings.system_prompt),
            ("user", "first"),
            ("assistant", provider.reply),
            ("user", "second"),
        ]

    @pytest.mark.asyncio
    async def test_upstream_failure_appends_diagnostic(self, store, settings_store, storage, caplog):
        """Test that a failed request records the diagnostic reply."""
        failing = FakeProvider(error=ConnectionError("connection refused"))
        service = ChatService(store, settings_store, failing)

        with caplog.at_level(logging.WARNING, logger="lmchat"):
            reply = await service.send("hello")

        assert reply is not None
        assert reply.content == DIAGNOSTIC_MESSAGE
        assert not service.is_sending
        assert "connection refused" in caplog.text

        reloaded = SessionStore(storage)
        reloaded.load()
        contents = [m.content for m in reloaded.get(store.current_id).messages]
        assert contents == ["hello", DIAGNOSTIC_MESSAGE]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    async def test_blank_input_is_ignored(self, service, store, provider, text: str):
        """Test that blank input sends nothing."""
        assert await service.send(text) is None
        assert store.current.messages == []
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_send_to_explicit_session(self, service, store):
        """Test sending to a session other than the current one."""
        other = store.create("Other")

        await service.send("hi", session_id=other.id)

        assert len(other.messages) == 2
        assert store.current.messages == []

    @pytest.mark.asyncio
    async def test_send_to_unknown_session_raises(self, service, provider):
        """Test that sending to an unknown session raises."""
        with pytest.raises(SessionNotFoundError):
            await service.send("hi", session_id="missing")
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_send_while_pending_is_ignored(self, store, settings_store):
        """Test that a second send during a pending reply is ignored."""
        provider = ReentrantProvider()
        service = ChatService(store, settings_store, provider)
        provider.service = service

        reply = await service.send("first message")

        assert provider.nested_result is None
        assert reply is not None
        assert [m.content for m in store.current.messages] == ["first message", "done"]

    @pytest.mark.asyncio
    async def test_send_creates_session_when_none_is_current(self, storage, settings_store, provider):
        """Test that send creates a session when none is selected."""
        store = SessionStore(storage)
        service = ChatService(store, settings_store, provider)

        reply = await service.send("hello")

        assert reply is not None
        assert len(store) == 1
        assert store.current.messages[-1] == reply


class TestCompleteChat:
    """Tests for the reply-generation call."""

    @pytest.mark.asyncio
    async def test_returns_reply_text(self, service):
        """Test that complete_chat returns the reply text."""
        text = await service.complete_chat("sys", [], "m", 0.5, None)

        assert text == "Hello from the model"

    @pytest.mark.asyncio
    async def test_wraps_provider_errors(self, store, settings_store):
        """Test that provider errors become UpstreamError."""
        service = ChatService(store, settings_store, FakeProvider(error=RuntimeError("HTTP 500")))

        with pytest.raises(UpstreamError, match="HTTP 500") as exc_info:
            await service.complete_chat("sys", [], "m", 0.5, None)
        assert isinstance(exc_info.value.__cause__, RuntimeError)


class TestModelsAndConnection:
    """Tests for model listing and connection checks."""

    @pytest.mark.asyncio
    async def test_model_list_is_cached(self, service, provider):
        """Test that a non-empty model list is fetched once."""
        assert await service.list_models() == ["mistralai/ministral-3-3b"]
        assert await service.list_models() == ["mistralai/ministral-3-3b"]
        assert provider.list_calls == 1

    @pytest.mark.asyncio
    async def test_empty_list_is_not_cached(self, store, settings_store):
        """Test that an empty model list is fetched again."""
        provider = FakeProvider(models=[])
        service = ChatService(store, settings_store, provider)

        await service.list_models()
        await service.list_models()

        assert provider.list_calls == 2

    @pytest.mark.asyncio
    async def test_list_failure_gives_empty_list(self, store, settings_store):
        """Test that a failed model listing gives an empty list."""
        service = ChatService(store, settings_store, FakeProvider(models_error=OSError("down")))

        assert await service.list_models() == []
        assert await service.check_connection() is False

    @pytest.mark.asyncio
    async def test_check_connection(self, service):
        """Test the connection check."""
        assert await service.check_connection() is True


class TestNewSession:
    """Tests for starting a new chat."""

    def test_new_session_is_selected(self, service, store):
        """Test that new_session selects the created session."""
        session = service.new_session()

        assert store.current_id == session.id
        assert session.title == DEFAULT_TITLE
