"""Key-value configuration store and the plugin's typed view over it."""

from __future__ import annotations

import json
import logging
import os
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from tzhaar.session import StoredSession

LOGGER = logging.getLogger(__name__)

CONFIG_GROUP = "tzhaartimers"
CONFIG_TIME = "time"
CONFIG_STARTED = "started"
CONFIG_LASTTIME = "lastTime"
CONFIG_TOGGLE = "tzhaarTimers"


def _to_string(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _from_string(raw: str, kind: type) -> Any:
    if kind is str:
        return raw
    if kind is bool:
        lowered = raw.strip().lower()
        if lowered in ("true", "false"):
            return lowered == "true"
        return None
    if kind is datetime:
        try:
            value = datetime.fromisoformat(raw)
        except ValueError:
            return None
        # Stored times without an offset are taken as UTC.
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        return value
    if kind in (int, float):
        try:
            return kind(raw)
        except ValueError:
            return None
    raise TypeError(f"unsupported config type {kind!r}")


class ConfigStore:
    """String-valued settings grouped by plugin name.

    With a ``path`` the store mirrors a JSON file of ``{"group.key": value}``
    entries and rewrites it after every change; without one it lives in memory.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path is not None else None
        self._values: dict[str, str] = self._load() if self.path is not None else {}

    @staticmethod
    def _key(group: str, key: str) -> str:
        return f"{group}.{key}"

    def _load(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as error:
            LOGGER.warning("Ignoring unreadable config file %s (%s)", self.path, error)
            return {}
        if not isinstance(raw, dict):
            LOGGER.warning("Ignoring malformed config file %s: expected object", self.path)
            return {}
        return {str(key): str(value) for key, value in raw.items()}

    def _write(self) -> None:
        if self.path is None:
            return
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(f".tmp-{self.path.name}-{uuid.uuid4().hex}")
        try:
            tmp_path.write_text(json.dumps(self._values, indent=2, sort_keys=True), encoding="utf-8")
            os.replace(tmp_path, self.path)
        finally:
            if tmp_path.exists():
                tmp_path.unlink()

    def get_configuration(self, group: str, key: str, kind: type = str) -> Any:
        """Return the stored value converted to ``kind``, or ``None``."""
        raw = self._values.get(self._key(group, key))
        if raw is None:
            return None
        value = _from_string(raw, kind)
        if value is None:
            LOGGER.warning("Unparseable value for %s.%s: %r", group, key, raw)
        return value

    def set_configuration(self, group: str, key: str, value: Any) -> None:
        self._values[self._key(group, key)] = _to_string(value)
        self._write()

    def unset_configuration(self, group: str, key: str) -> None:
        if self._values.pop(self._key(group, key), None) is not None:
            self._write()


class TzhaarTimersConfig:
    """Typed access to the timer toggle and the saved session."""

    def __init__(self, store: ConfigStore) -> None:
        self.store = store

    @property
    def tzhaar_timers(self) -> bool:
        value = self.store.get_configuration(CONFIG_GROUP, CONFIG_TOGGLE, bool)
        return True if value is None else value

    @tzhaar_timers.setter
    def tzhaar_timers(self, enabled: bool) -> None:
        self.store.set_configuration(CONFIG_GROUP, CONFIG_TOGGLE, enabled)

    def load_session(self) -> StoredSession:
        return StoredSession(
            start_time=self.store.get_configuration(CONFIG_GROUP, CONFIG_TIME, datetime),
            started=self.store.get_configuration(CONFIG_GROUP, CONFIG_STARTED, bool),
            last_time=self.store.get_configuration(CONFIG_GROUP, CONFIG_LASTTIME, datetime),
        )

    def save_session(self, start_time: datetime, started: bool, last_time: datetime) -> None:
        self.store.set_configuration(CONFIG_GROUP, CONFIG_TIME, start_time)
        self.store.set_configuration(CONFIG_GROUP, CONFIG_STARTED, started)
        self.store.set_configuration(CONFIG_GROUP, CONFIG_LASTTIME, last_time)

    def reset_session(self) -> None:
        self.store.unset_configuration(CONFIG_GROUP, CONFIG_TIME)
        self.store.unset_configuration(CONFIG_GROUP, CONFIG_STARTED)
        self.store.unset_configuration(CONFIG_GROUP, CONFIG_LASTTIME)
