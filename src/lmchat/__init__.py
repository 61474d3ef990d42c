"""
lmchat: a local chat client for OpenAI-compatible model servers.

Conversations are kept in a persistent session store and assistant replies
are split into prose and table segments for terminal rendering. Each
subpackage hides one design decision behind a small interface.
"""

__version__ = "0.1.0"

from .content import ProseSegment, Segment, TableSegment, segment
from .exceptions import (
    LMChatError,
    PersistenceCorruptError,
    SessionNotFoundError,
    UpstreamError,
)
from .sessions import Message, Role, Session, SessionStore
from .storage import KeyValueStorage, create_storage

__all__ = [
    "KeyValueStorage",
    "LMChatError",
    "Message",
    "PersistenceCorruptError",
    "ProseSegment",
    "Role",
    "Segment",
    "Session",
    "SessionNotFoundError",
    "SessionStore",
    "TableSegment",
    "UpstreamError",
    "create_storage",
    "segment",
]
