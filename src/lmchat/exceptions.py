"""Exception types shared across lmchat.

Only ``SessionNotFoundError`` is meant to reach callers. Persistence and
upstream failures are recovered inside the stores and the chat service.
"""


class LMChatError(Exception):
    """Base class for all lmchat errors."""


class SessionNotFoundError(LMChatError, KeyError):
    """Raised when an operation references an unknown session id."""

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Session not found: {session_id}")

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message.
        return self.args[0]


class PersistenceCorruptError(LMChatError):
    """Raised when a persisted snapshot cannot be decoded.

    Stores catch this in ``load()`` and fall back to defaults.
    """


class UpstreamError(LMChatError):
    """Raised when the model server fails to produce a reply."""
