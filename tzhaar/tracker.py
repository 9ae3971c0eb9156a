"""Stateful wrapper around the pure session transitions."""

from __future__ import annotations

import logging

from tzhaar import session as transitions
from tzhaar.session import Action, ChatMessageType, Context, GameState, StoredSession, Transition, TrackerState

LOGGER = logging.getLogger(__name__)


class SessionTracker:
    """Hold the latest :class:`TrackerState` and return the actions each event produces."""

    def __init__(self, state: TrackerState | None = None) -> None:
        self.state = state if state is not None else TrackerState()

    def _apply(self, transition: Transition) -> tuple[Action, ...]:
        self.state, actions = transition
        if actions:
            LOGGER.debug("session=%s actions=%s", self.state.session, actions)
        return actions

    def on_chat(self, text: str, message_type: ChatMessageType, ctx: Context) -> tuple[Action, ...]:
        return self._apply(transitions.on_chat(self.state, text, message_type, ctx))

    def on_location_or_config_change(self, ctx: Context) -> tuple[Action, ...]:
        return self._apply(transitions.on_location_or_config_change(self.state, ctx))

    def on_game_state_transition(
        self,
        game_state: GameState,
        ctx: Context,
        stored: StoredSession | None = None,
    ) -> tuple[Action, ...]:
        return self._apply(transitions.on_game_state_transition(self.state, game_state, ctx, stored))

    def shut_down(self) -> tuple[Action, ...]:
        return self._apply(transitions.shut_down(self.state))

    @property
    def active(self) -> bool:
        return self.state.session.active

    @property
    def logging_in(self) -> bool:
        return self.state.logging_in
