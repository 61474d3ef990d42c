"""Chat session store for lmchat.

Provides an ordered, searchable, persisted collection of conversations.
"""

from .models import Message, Role, Session
from .store import DEFAULT_TITLE, SESSIONS_KEY, TITLE_MAX_LENGTH, SessionStore, derive_title

__all__ = [
    "DEFAULT_TITLE",
    "Message",
    "Role",
    "SESSIONS_KEY",
    "Session",
    "SessionStore",
    "TITLE_MAX_LENGTH",
    "derive_title",
]
