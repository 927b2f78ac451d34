"""User preference store.

Holds the user's UI preferences, including the favorites list that drives
the engine's watch list. Values are persisted to a JSON file and pushed to
subscribers as immutable snapshots: immediately on subscribe, then after
every change.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Literal

import orjson
from pydantic import BaseModel, ConfigDict, ValidationError

logger = logging.getLogger(__name__)


class UserPreferences(BaseModel):
    """User preferences snapshot."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    theme: Literal["dark", "light"] = "dark"
    left_panel_width: int = 300
    right_panel_width: int = 300
    favorites: tuple[str, ...] = ()
    selected_timeframe: str = "1h"
    selected_indicators: tuple[str, ...] = ("MA", "RSI")


PreferencesListener = Callable[[UserPreferences], None]


class PreferenceStore:
    """Subscribable, file-backed preference store."""

    def __init__(self, path: Path | str | None = None):
        self.path = Path(path) if path is not None else None
        self._value = self._load()
        self._listeners: list[PreferencesListener] = []

    def _load(self) -> UserPreferences:
        """Load stored preferences merged over defaults."""
        if self.path is None or not self.path.exists():
            return UserPreferences()

        try:
            stored = orjson.loads(self.path.read_bytes())
            if not isinstance(stored, dict):
                raise ValueError("preferences file must contain an object")
            return UserPreferences(**stored)
        except (OSError, ValueError, ValidationError) as e:
            logger.error(f"Failed to load preferences from {self.path}: {e}")
            return UserPreferences()

    def _save(self) -> None:
        if self.path is None:
            return
        try:
            self.path.write_bytes(orjson.dumps(self._value.model_dump(mode="json")))
        except OSError as e:
            logger.error(f"Failed to save preferences to {self.path}: {e}")

    @property
    def value(self) -> UserPreferences:
        return self._value

    def subscribe(self, listener: PreferencesListener) -> Callable[[], None]:
        """Register a listener; it is called with the current value right away.

        Returns:
            A callable that unsubscribes the listener.
        """
        self._listeners.append(listener)
        self._notify_one(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def update_preference(self, key: str, value: Any) -> UserPreferences:
        """Update one field, persist, and notify subscribers.

        Raises:
            KeyError: If ``key`` is not a preference field.
            ValidationError: If ``value`` is invalid for the field.
        """
        return self.update_preferences({key: value})

    def update_preferences(self, updates: dict[str, Any]) -> UserPreferences:
        """Apply several fields as one change.

        All fields are validated before anything is stored or notified.
        Subscribers receive a single snapshot carrying every change.

        Raises:
            KeyError: If any key is not a preference field.
            ValidationError: If any value is invalid for its field.
        """
        unknown = [key for key in updates if key not in UserPreferences.model_fields]
        if unknown:
            raise KeyError(f"Unknown preferences: {unknown}")

        value = UserPreferences(**{**self._value.model_dump(), **updates})
        self._set(value)
        self._save()
        return self._value

    def reset(self) -> UserPreferences:
        """Restore defaults and remove the stored file."""
        self._set(UserPreferences())
        if self.path is not None:
            try:
                self.path.unlink(missing_ok=True)
            except OSError as e:
                logger.error(f"Failed to remove {self.path}: {e}")
        return self._value

    def _set(self, value: UserPreferences) -> None:
        self._value = value
        for listener in list(self._listeners):
            self._notify_one(listener)

    def _notify_one(self, listener: PreferencesListener) -> None:
        try:
            listener(self._value)
        except Exception as e:
            logger.error(f"Preferences listener error: {e}")
