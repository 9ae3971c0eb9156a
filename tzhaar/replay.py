"""Scripted host events for running the plugin without a game client."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from tzhaar.config import CONFIG_GROUP, CONFIG_TOGGLE, TzhaarTimersConfig
from tzhaar.plugin import TzhaarTimersPlugin
from tzhaar.session import ChatMessageType, GameState

LOGGER = logging.getLogger(__name__)

EVENT_KINDS = ("chat", "state", "regions", "timer_enabled")


@dataclass(frozen=True)
class ReplayEvent:
    """One host event, due ``at`` seconds into the replay."""

    at: float
    kind: str
    value: Any
    message_type: ChatMessageType = ChatMessageType.GAMEMESSAGE


@dataclass(frozen=True)
class Replay:
    regions: tuple[int, ...]
    timer_enabled: bool
    events: tuple[ReplayEvent, ...]


def _parse_regions(raw: Any) -> tuple[int, ...] | None:
    if raw is None:
        return ()
    if not isinstance(raw, list) or any(isinstance(item, bool) or not isinstance(item, int) for item in raw):
        return None
    return tuple(raw)


def _parse_event_entry(entry: Any, index: int) -> ReplayEvent | None:
    """Convert a raw JSON entry into a validated :class:`ReplayEvent`."""
    if not isinstance(entry, dict):
        LOGGER.warning("Skipping event[%d]: entry is not an object", index)
        return None

    try:
        at = float(entry["at"])
    except (KeyError, TypeError, ValueError):
        LOGGER.warning("Skipping event[%d]: missing or invalid 'at'", index)
        return None
    if at < 0.0:
        LOGGER.warning("Skipping event[%d]: 'at' must be >= 0", index)
        return None

    kinds = [kind for kind in EVENT_KINDS if kind in entry]
    if len(kinds) != 1:
        LOGGER.warning("Skipping event[%d]: expected exactly one of %s", index, ", ".join(EVENT_KINDS))
        return None
    kind = kinds[0]
    raw_value = entry[kind]

    if kind == "chat":
        if not isinstance(raw_value, str):
            LOGGER.warning("Skipping event[%d]: chat must be a string", index)
            return None
        try:
            message_type = ChatMessageType(str(entry.get("type", "GAMEMESSAGE")))
        except ValueError:
            LOGGER.warning("Skipping event[%d]: unknown chat type %r", index, entry.get("type"))
            return None
        return ReplayEvent(at=at, kind=kind, value=raw_value, message_type=message_type)

    if kind == "state":
        try:
            return ReplayEvent(at=at, kind=kind, value=GameState(str(raw_value)))
        except ValueError:
            LOGGER.warning("Skipping event[%d]: unknown game state %r", index, raw_value)
            return None

    if kind == "regions":
        regions = _parse_regions(raw_value)
        if regions is None:
            LOGGER.warning("Skipping event[%d]: regions must be a list of integers", index)
            return None
        return ReplayEvent(at=at, kind=kind, value=regions)

    if not isinstance(raw_value, bool):
        LOGGER.warning("Skipping event[%d]: timer_enabled must be a boolean", index)
        return None
    return ReplayEvent(at=at, kind=kind, value=raw_value)


def parse_replay(raw_data: Any, source: str = "<replay>") -> Replay:
    if not isinstance(raw_data, dict):
        LOGGER.warning("Ignoring malformed replay %s: expected object", source)
        return Replay(regions=(), timer_enabled=True, events=())

    regions = _parse_regions(raw_data.get("regions"))
    if regions is None:
        LOGGER.warning("Ignoring malformed initial regions in %s", source)
        regions = ()

    timer_enabled = raw_data.get("timer_enabled", True)
    if not isinstance(timer_enabled, bool):
        LOGGER.warning("Ignoring malformed timer_enabled in %s", source)
        timer_enabled = True

    raw_events = raw_data.get("events", [])
    if not isinstance(raw_events, list):
        LOGGER.warning("Ignoring malformed event list in %s", source)
        raw_events = []

    events: list[ReplayEvent] = []
    for index, entry in enumerate(raw_events):
        event = _parse_event_entry(entry, index)
        if event is not None:
            events.append(event)

    events.sort(key=lambda event: event.at)
    return Replay(regions=regions, timer_enabled=timer_enabled, events=tuple(events))


def load_replay(replay_file: str | Path) -> Replay:
    """Load and validate a replay script from JSON."""
    raw_data = json.loads(Path(replay_file).read_text(encoding="utf-8"))
    return parse_replay(raw_data, str(replay_file))


class ReplayClient:
    """Minimal client exposing the currently loaded map regions."""

    def __init__(self, regions: tuple[int, ...] = ()) -> None:
        self.regions = regions

    def get_map_regions(self) -> tuple[int, ...] | None:
        return self.regions or None


class ReplayDriver:
    """Dispatch replay events to the plugin once their time has come."""

    def __init__(
        self,
        replay: Replay,
        plugin: TzhaarTimersPlugin,
        client: ReplayClient,
        config: TzhaarTimersConfig,
    ) -> None:
        self.replay = replay
        self.plugin = plugin
        self.client = client
        self.config = config
        self._next_index = 0

        self.client.regions = replay.regions
        if self.config.tzhaar_timers != replay.timer_enabled:
            self.config.tzhaar_timers = replay.timer_enabled

    @property
    def finished(self) -> bool:
        return self._next_index >= len(self.replay.events)

    def update(self, session_time: float) -> int:
        """Dispatch every event due by ``session_time``; return how many ran."""
        dispatched = 0
        events = self.replay.events
        while self._next_index < len(events) and events[self._next_index].at <= session_time:
            self._dispatch(events[self._next_index])
            self._next_index += 1
            dispatched += 1
        return dispatched

    def _dispatch(self, event: ReplayEvent) -> None:
        LOGGER.debug("replay t=%.2f %s=%r", event.at, event.kind, event.value)
        if event.kind == "chat":
            self.plugin.on_chat_message(event.value, event.message_type)
        elif event.kind == "state":
            self.plugin.on_game_state_changed(event.value)
        elif event.kind == "regions":
            self.client.regions = event.value
        else:
            self.config.tzhaar_timers = event.value
            self.plugin.on_config_changed(CONFIG_GROUP, CONFIG_TOGGLE)
