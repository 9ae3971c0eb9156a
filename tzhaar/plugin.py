"""Host adapter that feeds client events to the tracker and carries out its actions."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Callable, Iterable, Protocol

from tzhaar.config import CONFIG_GROUP, CONFIG_TOGGLE, TzhaarTimersConfig
from tzhaar.session import (
    Action,
    ChatMessageType,
    ClearSavedSession,
    Context,
    GameState,
    RemoveOverlay,
    SaveSession,
    ShowOverlay,
    location_from_regions,
)
from tzhaar.timer import TimerInfoBox, WallClock
from tzhaar.tracker import SessionTracker

LOGGER = logging.getLogger(__name__)


class Client(Protocol):
    def get_map_regions(self) -> Iterable[int] | None: ...


class InfoBoxHost(Protocol):
    def add_infobox(self, infobox: TimerInfoBox) -> None: ...

    def remove_infobox(self, infobox: TimerInfoBox | None) -> None: ...


class ImageLookup(Protocol):
    def get_image(self, item_id: int) -> Any: ...


class TzhaarTimersPlugin:
    """Display elapsed time in the Fight Caves and Inferno.

    Collaborators are passed in explicitly; every event is turned into a
    :class:`Context` snapshot, run through :class:`SessionTracker`, and the
    returned actions are applied in order.
    """

    def __init__(
        self,
        client: Client,
        config: TzhaarTimersConfig,
        infoboxes: InfoBoxHost,
        images: ImageLookup,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.client = client
        self.config = config
        self.infoboxes = infoboxes
        self.images = images
        self.clock = clock if clock is not None else WallClock()
        self.tracker = SessionTracker()
        self.timer: TimerInfoBox | None = None

    def _context(self) -> Context:
        return Context(
            now=self.clock(),
            timer_enabled=self.config.tzhaar_timers,
            location=location_from_regions(self.client.get_map_regions()),
        )

    def on_chat_message(self, message: str, message_type: ChatMessageType) -> None:
        self._run(self.tracker.on_chat(message, message_type, self._context()))

    def on_config_changed(self, group: str, key: str) -> None:
        if group != CONFIG_GROUP or key != CONFIG_TOGGLE:
            return
        self.refresh()

    def on_game_state_changed(self, game_state: GameState) -> None:
        LOGGER.info("%s", game_state.name)
        stored = None
        if game_state is GameState.LOGGED_IN and self.tracker.logging_in:
            stored = self.config.load_session()
        self._run(self.tracker.on_game_state_transition(game_state, self._context(), stored))

    def refresh(self) -> None:
        """Re-check whether the overlay should still be visible."""
        self._run(self.tracker.on_location_or_config_change(self._context()))

    def shut_down(self) -> None:
        self._run(self.tracker.shut_down())

    def _run(self, actions: tuple[Action, ...]) -> None:
        for action in actions:
            self._apply(action)

    def _apply(self, action: Action) -> None:
        if isinstance(action, ShowOverlay):
            overlay = action.overlay
            self.infoboxes.remove_infobox(self.timer)
            self.timer = TimerInfoBox(
                image=self.images.get_image(overlay.challenge.item_id),
                start_time=overlay.start_time,
                freeze_time=overlay.freeze_time,
            )
            self.infoboxes.add_infobox(self.timer)
        elif isinstance(action, RemoveOverlay):
            self.infoboxes.remove_infobox(self.timer)
            self.timer = None
        elif isinstance(action, SaveSession):
            self.config.save_session(action.start_time, action.started, action.last_time)
        elif isinstance(action, ClearSavedSession):
            self.config.reset_session()
        else:
            raise TypeError(f"unknown action {action!r}")
