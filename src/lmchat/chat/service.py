"""Chat orchestration: one user turn through the model server.

Hidden design decisions:
- Assembly of the request (system prompt first, then the session history)
- Recovery from upstream failures with a fixed diagnostic reply
- Caching of the server's model list
"""

import logging

from ..exceptions import UpstreamError
from ..llm import ChatMessage, LLMProvider
from ..sessions import DEFAULT_TITLE, Message, Role, Session, SessionStore
from ..settings import SettingsStore

logger = logging.getLogger(__name__)

DIAGNOSTIC_MESSAGE = (
    "The request to the model server failed.\n"
    "- Is the server (e.g. LM Studio) running?\n"
    "- Is its local API server enabled?\n"
    "- Are the API base URL and model ID correct?\n"
    "Please check these settings and try again."
)


class ChatService:
    """Sends user messages and records replies in the session store.

    Both stores must already be loaded.
    """

    def __init__(
        self,
        sessions: SessionStore,
        settings: SettingsStore,
        provider: LLMProvider,
    ):
        self._sessions = sessions
        self._settings = settings
        self._provider = provider
        self._sending = False
        self._models: list[str] = []

    @property
    def is_sending(self) -> bool:
        return self._sending

    @property
    def sessions(self) -> SessionStore:
        return self._sessions

    def new_session(self, title: str = DEFAULT_TITLE) -> Session:
        """Create a session and make it current."""
        session = self._sessions.create(title)
        self._sessions.select(session.id)
        return session

    async def complete_chat(
        self,
        system_prompt: str,
        history: list[Message],
        model_id: str,
        temperature: float,
        max_tokens: int | None,
    ) -> str:
        """Ask the model server for the next assistant reply.

        Args:
            system_prompt: Instruction sent ahead of the history
            history: Conversation so far, oldest first
            model_id: Model to use
            temperature: Sampling temperature
            max_tokens: Generation limit, None for no limit

        Returns:
            Assistant reply text

        Raises:
            UpstreamError: If the provider call fails
        """
        messages = [ChatMessage(role="system", content=system_prompt)]
        messages.extend(ChatMessage(role=m.role.value, content=m.content) for m in history)

        try:
            response = await self._provider.chat_completion(
                messages,
                model=model_id,
                temperature=temperature,
                max_tokens=max_tokens,
            )
        except Exception as e:
            raise UpstreamError(f"{type(e).__name__}: {e}") from e
        return response.content

    async def send(self, text: str, session_id: str | None = None) -> Message | None:
        """Send one user message and record the reply.

        If the model server fails, a diagnostic assistant message is
        recorded instead so the user's turn is never lost.

        Args:
            text: User input
            session_id: Target session, defaults to the current one

        Returns:
            The recorded assistant message, or None if the input was
            blank or another send is still in flight

        Raises:
            SessionNotFoundError: If session_id is unknown
        """
        if self._sending:
            logger.debug("Ignoring send while a reply is pending")
            return None

        content = text.strip()
        if not content:
            return None

        target = session_id or self._sessions.current_id
        if target is None:
            target = self.new_session().id
        session = self._sessions.get(target)

        self._sessions.append_message(session.id, Role.USER, content)

        settings = self._settings.settings
        self._sending = True
        try:
            reply = await self.complete_chat(
                settings.system_prompt,
                list(session.messages),
                settings.model_id,
                settings.temperature,
                settings.max_tokens,
            )
        except UpstreamError as e:
            logger.warning("Model server request failed: %s", e)
            reply = DIAGNOSTIC_MESSAGE
        finally:
            self._sending = False

        return self._sessions.append_message(session.id, Role.ASSISTANT, reply)

    async def list_models(self) -> list[str]:
        """Model ids offered by the server, cached after the first success.

        Failures are logged and give an empty list.
        """
        if self._models:
            return self._models
        try:
            self._models = await self._provider.list_models()
        except Exception as e:
            logger.warning("Could not fetch model list: %s", e)
            self._models = []
        return self._models

    async def check_connection(self) -> bool:
        """True if the server answers with at least one model."""
        return bool(await self.list_models())
