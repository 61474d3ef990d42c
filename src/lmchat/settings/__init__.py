"""Persisted client settings for lmchat."""

from .models import ChatSettings, model_display_name
from .store import SETTINGS_KEY, SettingsStore

__all__ = [
    "ChatSettings",
    "SETTINGS_KEY",
    "SettingsStore",
    "model_display_name",
]
