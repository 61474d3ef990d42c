"""Key-value persistence layer for lmchat."""

from .base import KeyValueStorage
from .factory import create_storage
from .in_memory import InMemoryStorage
from .json_file import JsonFileStorage

__all__ = [
    "InMemoryStorage",
    "JsonFileStorage",
    "KeyValueStorage",
    "create_storage",
]
