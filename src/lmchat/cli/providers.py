"""Factory functions for CLI collaborators.

Centralizes creation of storage, stores and the LLM provider from
environment variables. Hides configuration details from command
implementations.
"""

import os
from pathlib import Path

from ..llm import LLMProvider, create_llm_provider
from ..llm.providers.openai import DEFAULT_API_KEY
from ..sessions import SessionStore
from ..settings import ChatSettings, SettingsStore
from ..storage import KeyValueStorage, create_storage

DEFAULT_DATA_DIR = "~/.lmchat"


def get_data_dir() -> Path:
    """Directory holding persisted sessions and settings.

    Environment variables:
        LMCHAT_DATA_DIR: Data directory (default: ~/.lmchat)
    """
    return Path(os.getenv("LMCHAT_DATA_DIR", DEFAULT_DATA_DIR)).expanduser()


def get_storage() -> KeyValueStorage:
    """Create the JSON file storage backend."""
    return create_storage("json", directory=get_data_dir())


def get_stores() -> tuple[SessionStore, SettingsStore]:
    """Create and load the session and settings stores.

    Both stores share one storage backend under different keys.
    """
    storage = get_storage()

    sessions = SessionStore(storage)
    sessions.load()

    settings = SettingsStore(storage)
    settings.load()

    return sessions, settings


def get_llm(settings: ChatSettings) -> LLMProvider:
    """Create the LLM provider for the configured server.

    Args:
        settings: Current client settings (base URL and model)

    Returns:
        LLM provider instance

    Environment variables:
        LMCHAT_PROVIDER: Provider type (lmstudio or openai; default: lmstudio)
        LMCHAT_API_KEY: API key (default: lm-studio)
    """
    return create_llm_provider(
        os.getenv("LMCHAT_PROVIDER", "lmstudio"),
        api_key=os.getenv("LMCHAT_API_KEY", DEFAULT_API_KEY),
        base_url=settings.api_base_url,
        model=settings.model_id,
    )
