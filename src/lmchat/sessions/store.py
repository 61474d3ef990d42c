"""Session store: ordered, searchable, persisted collection of chats.

Hidden design decisions:
- In-memory ordering (newest-created first) and the stable recency sort
- Title derivation from the first message
- Snapshot format and the fallback taken when it cannot be read
- Which session becomes current after a deletion

The store assumes a single caller. Every structural change is flushed to
the injected storage as one complete snapshot.
"""

import logging
import re
from collections.abc import Callable, Iterator

from pydantic import TypeAdapter, ValidationError

from ..exceptions import PersistenceCorruptError, SessionNotFoundError
from ..storage import KeyValueStorage
from .models import Message, Role, Session, now_ms

logger = logging.getLogger(__name__)

SESSIONS_KEY = "lmchat_sessions_v1"
DEFAULT_TITLE = "New chat"
TITLE_MAX_LENGTH = 30

_WHITESPACE_RUN = re.compile(r"\s+")
_SESSION_LIST = TypeAdapter(list[Session])


def derive_title(content: str) -> str:
    """Build a session title from the first message of a chat.

    Whitespace runs collapse to single spaces and the result is cut to
    ``TITLE_MAX_LENGTH`` characters.

    Args:
        content: Raw message text

    Returns:
        Derived title, or ``DEFAULT_TITLE`` if nothing is left
    """
    title = _WHITESPACE_RUN.sub(" ", content.strip())[:TITLE_MAX_LENGTH]
    return title or DEFAULT_TITLE


def decode_sessions(raw: str | None) -> list[Session]:
    """Decode a persisted snapshot.

    Args:
        raw: JSON array of sessions, or None if nothing was stored

    Returns:
        Decoded sessions (empty when ``raw`` is None)

    Raises:
        PersistenceCorruptError: If the snapshot is not a valid session list
    """
    if raw is None:
        return []
    try:
        return _SESSION_LIST.validate_json(raw)
    except ValidationError as e:
        raise PersistenceCorruptError(
            f"Invalid session snapshot ({e.error_count()} errors)"
        ) from e


def encode_sessions(sessions: list[Session]) -> str:
    """Encode sessions into a single JSON snapshot."""
    return _SESSION_LIST.dump_json(sessions, by_alias=True).decode("utf-8")


class SessionStore:
    """Collection of chat sessions with a current selection.

    Call ``load()`` once before use. After loading, the store is never
    empty and ``current_id`` always names one of its sessions.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        clock: Callable[[], int] | None = None,
    ):
        """Initialize the store.

        Args:
            storage: Key-value backend holding the session snapshot
            clock: Millisecond clock, defaults to wall-clock time
        """
        self._storage = storage
        self._clock = clock or now_ms
        self._sessions: list[Session] = []
        self._current_id: str | None = None

    # -- lifecycle --------------------------------------------------------

    def load(self) -> None:
        """Load the persisted collection, falling back to an empty one.

        Missing or invalid snapshots are discarded. If the storage cannot
        be read at all, the blank fallback session is kept in memory only,
        so the stored snapshot is not overwritten by the load itself.
        Afterwards the store holds at least one session and the most
        recently updated one is current.
        """
        readable = True
        try:
            sessions = decode_sessions(self._storage.get(SESSIONS_KEY))
        except PersistenceCorruptError as e:
            logger.warning("Discarding unreadable session data: %s", e)
            sessions = []
        except OSError as e:
            logger.warning("Could not read session data: %s", e)
            readable = False
            sessions = []

        self._sessions = []
        seen: set[str] = set()
        for session in sessions:
            if session.id in seen:
                logger.warning("Dropping duplicate session id %s", session.id)
                continue
            seen.add(session.id)
            self._sessions.append(session)

        self._current_id = None
        if not self._sessions:
            self._current_id = self._insert_blank(DEFAULT_TITLE).id
            if readable:
                self.save()
        else:
            self._current_id = self.list_by_recency()[0].id
        logger.debug("Loaded %d sessions", len(self._sessions))

    def save(self) -> None:
        """Write the whole collection as one snapshot."""
        self._storage.set(SESSIONS_KEY, encode_sessions(self._sessions))

    # -- selection --------------------------------------------------------

    @property
    def current_id(self) -> str | None:
        return self._current_id

    @property
    def current(self) -> Session | None:
        """The active session, if any."""
        if self._current_id is None:
            return None
        return self._find(self._current_id)

    def select(self, session_id: str) -> Session:
        """Make a session the current one.

        Raises:
            SessionNotFoundError: If no session has that id
        """
        session = self.get(session_id)
        self._current_id = session.id
        return session

    # -- CRUD -------------------------------------------------------------

    def get(self, session_id: str) -> Session:
        """Look up a session by id.

        Raises:
            SessionNotFoundError: If no session has that id
        """
        session = self._find(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def create(self, title: str = DEFAULT_TITLE) -> Session:
        """Create an empty session at the front of the collection.

        The new session only becomes current when nothing else is.

        Args:
            title: Initial display title

        Returns:
            The created session
        """
        session = self._insert_blank(title)
        if self._current_id is None:
            self._current_id = session.id
        self.save()
        logger.debug("Created session %s", session.id)
        return session

    def delete(self, session_id: str) -> None:
        """Delete a session. Unknown ids are ignored.

        If the current session is deleted, the most recently updated
        remaining session becomes current. Deleting the last session
        replaces it with a fresh blank one.
        """
        session = self._find(session_id)
        if session is None:
            return

        self._sessions.remove(session)
        logger.debug("Deleted session %s", session_id)

        if not self._sessions:
            self._current_id = None
            self.create(DEFAULT_TITLE)
            return

        if self._current_id == session_id:
            self._current_id = self.list_by_recency()[0].id
        self.save()

    def rename(self, session_id: str, title: str) -> Session:
        """Change the title of a session.

        Raises:
            SessionNotFoundError: If no session has that id
        """
        session = self.get(session_id)
        session.title = title
        self.save()
        return session

    def append_message(
        self,
        session_id: str,
        role: Role | str,
        content: str,
        now: int | None = None,
    ) -> Message:
        """Append a message to a session.

        The first message of a session also sets its title. The session's
        ``updated_at`` never drops below its ``created_at``.

        Args:
            session_id: Target session
            role: Message author
            content: Raw message text
            now: Timestamp in epoch milliseconds, defaults to the clock

        Returns:
            The appended message

        Raises:
            SessionNotFoundError: If no session has that id
            ValueError: If role is not a known role
        """
        session = self.get(session_id)
        timestamp = self._clock() if now is None else now

        message = Message(role=Role(role), content=content, created_at=timestamp)
        if not session.messages:
            session.title = derive_title(content)
        session.messages.append(message)
        session.updated_at = max(timestamp, session.created_at)

        self.save()
        return message

    # -- queries ----------------------------------------------------------

    def list_by_recency(self) -> list[Session]:
        """All sessions, most recently updated first.

        Sessions with equal ``updated_at`` keep their collection order.
        """
        return sorted(self._sessions, key=lambda s: s.updated_at, reverse=True)

    def search(self, query: str) -> list[Session]:
        """Find sessions whose title or messages contain ``query``.

        Matching is case-insensitive. A blank query matches nothing.

        Returns:
            Matching sessions in recency order
        """
        needle = query.strip().lower()
        if not needle:
            return []
        return [s for s in self.list_by_recency() if s.matches(needle)]

    def _insert_blank(self, title: str) -> Session:
        now = self._clock()
        session = Session(title=title, created_at=now, updated_at=now)
        self._sessions.insert(0, session)
        return session

    def _find(self, session_id: str) -> Session | None:
        for session in self._sessions:
            if session.id == session_id:
                return session
        return None

    def __len__(self) -> int:
        return len(self._sessions)

    def __iter__(self) -> Iterator[Session]:
        return iter(list(self._sessions))

    def __contains__(self, session_id: object) -> bool:
        return any(s.id == session_id for s in self._sessions)
