"""Abstract base class for key-value storage backends.

This module defines the persistence interface used by the session and
settings stores. The abstraction hides:
- Where snapshots live (memory, files on disk)
- How a write is made atomic
- Encoding of keys into file names
"""

from abc import ABC, abstractmethod


class KeyValueStorage(ABC):
    """Abstract key-value storage backend.

    Each key holds one complete serialized snapshot. A ``set`` either
    replaces the whole blob or leaves the previous one untouched.
    """

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the blob stored under ``key``, or None if absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Replace the blob stored under ``key``.

        Args:
            key: Logical storage key
            value: Complete serialized snapshot

        Raises:
            OSError: If the backend cannot write the snapshot
        """

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key``. Missing keys are ignored."""

    @property
    @abstractmethod
    def backend_type(self) -> str:
        """Get the backend type identifier."""
