"""Factory for creating key-value storage backends."""

from typing import Any

from .base import KeyValueStorage


def create_storage(backend: str = "memory", **kwargs: Any) -> KeyValueStorage:
    """Create a key-value storage backend.

    Args:
        backend: Backend type ("memory" or "json")
        **kwargs: Backend-specific configuration
            For json:
                - directory: str | Path (default: '~/.lmchat')

    Returns:
        KeyValueStorage instance

    Raises:
        ValueError: If backend type is not supported
    """
    if backend == "memory":
        from .in_memory import InMemoryStorage
        return InMemoryStorage(**kwargs)

    elif backend == "json":
        from .json_file import JsonFileStorage
        return JsonFileStorage(**kwargs)

    raise ValueError(
        f"Unsupported storage backend: {backend}. "
        f"Supported backends: memory, json"
    )
