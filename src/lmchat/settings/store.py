"""Persisted settings store.

Hidden design decisions:
- Merge of a partial snapshot over the defaults
- Normalisation of raw user input (blank fields, clamping, parsing)
"""

import json
import logging
import math
from typing import Any

from pydantic import ValidationError

from ..exceptions import PersistenceCorruptError
from ..storage import KeyValueStorage
from .models import MAX_TEMPERATURE, MIN_TEMPERATURE, ChatSettings

logger = logging.getLogger(__name__)

SETTINGS_KEY = "lmchat_settings_v1"

_DEFAULTS = ChatSettings()


def decode_settings(raw: str | None) -> ChatSettings:
    """Decode a settings snapshot, filling missing fields with defaults.

    Raises:
        PersistenceCorruptError: If the snapshot is not a valid settings object
    """
    if raw is None:
        return ChatSettings()
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise PersistenceCorruptError(f"Settings are not valid JSON: {e}") from e
    if not isinstance(data, dict):
        raise PersistenceCorruptError("Settings snapshot is not an object")
    merged = _DEFAULTS.model_dump(by_alias=True)
    merged.update(data)
    try:
        return ChatSettings.model_validate(merged)
    except ValidationError as e:
        raise PersistenceCorruptError(f"Invalid settings ({e.error_count()} errors)") from e


def _text_or_default(value: Any, default: str) -> str:
    text = str(value).strip() if value is not None else ""
    return text or default


def _parse_temperature(value: Any) -> float:
    try:
        temperature = float(value)
    except (TypeError, ValueError):
        return _DEFAULTS.temperature
    if math.isnan(temperature):
        return _DEFAULTS.temperature
    return max(MIN_TEMPERATURE, min(MAX_TEMPERATURE, temperature))


def _parse_max_tokens(value: Any) -> int | None:
    if value is None:
        return None
    if isinstance(value, int) and not isinstance(value, bool):
        number = value
    else:
        raw = str(value).strip()
        if not raw:
            return None
        try:
            number = int(raw)
        except ValueError:
            return None
    return number if number > 0 else None


class SettingsStore:
    """Holds the current settings and persists them to storage."""

    def __init__(self, storage: KeyValueStorage):
        self._storage = storage
        self._settings = ChatSettings()

    @property
    def settings(self) -> ChatSettings:
        return self._settings

    def load(self) -> ChatSettings:
        """Load persisted settings, falling back to defaults on bad data."""
        try:
            self._settings = decode_settings(self._storage.get(SETTINGS_KEY))
        except (PersistenceCorruptError, OSError) as e:
            logger.warning("Using default settings: %s", e)
            self._settings = ChatSettings()
        return self._settings

    def save(self) -> None:
        self._storage.set(SETTINGS_KEY, self._settings.model_dump_json(by_alias=True))

    def update(
        self,
        *,
        api_base_url: Any = None,
        model_id: Any = None,
        system_prompt: Any = None,
        temperature: Any = None,
        max_tokens: Any = None,
        clear_max_tokens: bool = False,
    ) -> ChatSettings:
        """Apply raw user input and persist the result.

        Arguments left as None keep their current value. Blank text falls
        back to the default; temperature is clamped to [0, 2] and reset to
        the default when it is not a number; max tokens that are blank,
        non-integer or not positive mean "no limit".

        Returns:
            The updated settings
        """
        changes: dict[str, Any] = {}
        if api_base_url is not None:
            changes["api_base_url"] = _text_or_default(api_base_url, _DEFAULTS.api_base_url)
        if model_id is not None:
            changes["model_id"] = _text_or_default(model_id, _DEFAULTS.model_id)
        if system_prompt is not None:
            changes["system_prompt"] = _text_or_default(system_prompt, _DEFAULTS.system_prompt)
        if temperature is not None:
            changes["temperature"] = _parse_temperature(temperature)
        if clear_max_tokens:
            changes["max_tokens"] = None
        elif max_tokens is not None:
            changes["max_tokens"] = _parse_max_tokens(max_tokens)

        self._settings = self._settings.model_copy(update=changes)
        self.save()
        return self._settings
