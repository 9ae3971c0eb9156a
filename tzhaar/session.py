"""Session state and pure transitions for the Fight Caves and Inferno timers."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Iterable, Union

START_MESSAGE = "Wave: 1"
WAVE_MESSAGE = "Wave:"
DEFEATED_MESSAGE = "You have been defeated!"
INFERNO_COMPLETE_MESSAGE = "Your TzKal-Zuk kill count is:"
FIGHT_CAVES_COMPLETE_MESSAGE = "Your TzTok-Jad kill count is:"
INFERNO_PAUSED_MESSAGE = "The Inferno has been paused. You may now log out."
FIGHT_CAVE_PAUSED_MESSAGE = "The Fight Cave has been paused. You may now log out."

PAUSED_MESSAGES = (FIGHT_CAVE_PAUSED_MESSAGE, INFERNO_PAUSED_MESSAGE)
FINISHED_MESSAGES = (DEFEATED_MESSAGE, INFERNO_COMPLETE_MESSAGE, FIGHT_CAVES_COMPLETE_MESSAGE)

_TAG_PATTERN = re.compile(r"<[^>]*>")


class Challenge(Enum):
    """Timed challenge, keyed by map region id and reward cape item id."""

    FIGHT_CAVES = (9551, 6570)
    INFERNO = (9043, 21295)

    @property
    def region_id(self) -> int:
        return self.value[0]

    @property
    def item_id(self) -> int:
        return self.value[1]


class GameState(Enum):
    UNKNOWN = "UNKNOWN"
    STARTING = "STARTING"
    LOGIN_SCREEN = "LOGIN_SCREEN"
    LOGGING_IN = "LOGGING_IN"
    LOADING = "LOADING"
    LOGGED_IN = "LOGGED_IN"
    CONNECTION_LOST = "CONNECTION_LOST"
    HOPPING = "HOPPING"


class ChatMessageType(Enum):
    GAMEMESSAGE = "GAMEMESSAGE"
    SPAM = "SPAM"
    PUBLICCHAT = "PUBLICCHAT"
    PRIVATECHAT = "PRIVATECHAT"
    CLAN_CHAT = "CLAN_CHAT"
    TRADE = "TRADE"
    CONSOLE = "CONSOLE"


TRACKED_MESSAGE_TYPES = frozenset({ChatMessageType.GAMEMESSAGE, ChatMessageType.SPAM})

Location = Union[Challenge, None]


@dataclass(frozen=True)
class Session:
    """A tracked run.

    ``start_time`` anchors the displayed elapsed time and is moved forward
    whenever a pause interval is folded out. ``pause_time`` is only set between
    a pause message and the next wave message.
    """

    active: bool = False
    start_time: datetime | None = None
    pause_time: datetime | None = None


@dataclass(frozen=True)
class OverlaySpec:
    """What the on-screen timer shows: a challenge icon anchored at a time."""

    challenge: Challenge
    start_time: datetime
    freeze_time: datetime | None = None


@dataclass(frozen=True)
class TrackerState:
    session: Session = Session()
    overlay: OverlaySpec | None = None
    logging_in: bool = False


@dataclass(frozen=True)
class Context:
    """Host view sampled once per incoming event."""

    now: datetime
    timer_enabled: bool
    location: Location = None


@dataclass(frozen=True)
class StoredSession:
    """Session values as read back from the config store; any may be absent."""

    start_time: datetime | None = None
    started: bool | None = None
    last_time: datetime | None = None


@dataclass(frozen=True)
class ShowOverlay:
    """Create the overlay, replacing any existing one."""

    overlay: OverlaySpec


@dataclass(frozen=True)
class RemoveOverlay:
    pass


@dataclass(frozen=True)
class SaveSession:
    start_time: datetime
    started: bool
    last_time: datetime


@dataclass(frozen=True)
class ClearSavedSession:
    pass


Action = Union[ShowOverlay, RemoveOverlay, SaveSession, ClearSavedSession]
Transition = tuple[TrackerState, tuple[Action, ...]]


def strip_tags(text: str) -> str:
    """Remove chat markup such as ``<col=ef1020>`` and decode ``<lt>``/``<gt>``."""
    return _TAG_PATTERN.sub(
        lambda match: {"<lt>": "<", "<gt>": ">"}.get(match.group(0), ""),
        text,
    )


def location_from_regions(regions: Iterable[int] | None) -> Location:
    """Map the client's loaded region ids onto a challenge, if any."""
    if not regions:
        return None
    loaded = set(regions)
    for challenge in Challenge:
        if challenge.region_id in loaded:
            return challenge
    return None


def _reset(state: TrackerState) -> TrackerState:
    return replace(state, session=Session(), overlay=None)


def _show(state: TrackerState, ctx: Context, start_time: datetime, freeze_time: datetime | None) -> Transition:
    if ctx.location is None:
        return state, ()
    overlay = OverlaySpec(challenge=ctx.location, start_time=start_time, freeze_time=freeze_time)
    return replace(state, overlay=overlay), (ShowOverlay(overlay),)


def on_chat(state: TrackerState, text: str, message_type: ChatMessageType, ctx: Context) -> Transition:
    """Advance the session from a single chat line."""
    if not ctx.timer_enabled or message_type not in TRACKED_MESSAGE_TYPES:
        return state, ()

    message = strip_tags(text)
    now = ctx.now
    session = state.session

    if not session.active:
        if START_MESSAGE not in message:
            return state, ()
        state = replace(state, session=Session(active=True, start_time=now))
        return _show(state, ctx, now, None)

    actions: list[Action] = []

    if WAVE_MESSAGE in message:
        if session.pause_time is not None:
            # Folds the paused interval out of the anchor.
            start_time = session.start_time + (now - session.start_time) - (session.pause_time - session.start_time)
            session = replace(session, start_time=start_time, pause_time=None)
            state = replace(state, session=session)
        state, shown = _show(state, ctx, session.start_time, session.pause_time)
        actions.extend(shown)

    if any(paused in message for paused in PAUSED_MESSAGES):
        state, shown = _show(state, ctx, session.start_time, now)
        actions.extend(shown)
        session = replace(session, pause_time=now)
        state = replace(state, session=session)

    if any(finished in message for finished in FINISHED_MESSAGES):
        state = _reset(state)
        actions.append(RemoveOverlay())
        actions.append(ClearSavedSession())

    return state, tuple(actions)


def on_location_or_config_change(state: TrackerState, ctx: Context) -> Transition:
    """Drop the overlay and session once the player leaves or disables the timer."""
    if state.overlay is None:
        return state, ()
    if ctx.location is not None and ctx.timer_enabled:
        return state, ()
    return _reset(state), (RemoveOverlay(),)


def _restore(state: TrackerState, stored: StoredSession | None) -> TrackerState:
    if stored is None or stored.start_time is None or not stored.started:
        return replace(state, session=Session())
    return replace(
        state,
        session=Session(active=True, start_time=stored.start_time, pause_time=stored.last_time),
    )


def _save(state: TrackerState, ctx: Context) -> Transition:
    actions: list[Action] = [RemoveOverlay()]
    state = replace(state, overlay=None)
    session = state.session
    if session.start_time is not None:
        last_time = session.pause_time if session.pause_time is not None else ctx.now
        actions.append(ClearSavedSession())
        actions.append(SaveSession(start_time=session.start_time, started=session.active, last_time=last_time))
        state = replace(state, session=Session())
    return state, tuple(actions)


def on_game_state_transition(
    state: TrackerState,
    game_state: GameState,
    ctx: Context,
    stored: StoredSession | None = None,
) -> Transition:
    """React to a client state change.

    A logout (or world hop) saves the running session and a following login
    restores it once, clearing the saved copy.
    """
    if game_state is GameState.LOGGING_IN:
        return replace(state, logging_in=True), ()

    if game_state is GameState.LOGGED_IN:
        if not state.logging_in:
            return state, ()
        state = _restore(replace(state, logging_in=False), stored)
        return state, (ClearSavedSession(),)

    if game_state is GameState.LOADING:
        if state.logging_in:
            return state, ()
        return on_location_or_config_change(state, ctx)

    if game_state is GameState.HOPPING:
        return _save(replace(state, logging_in=True), ctx)

    if game_state is GameState.LOGIN_SCREEN:
        return _save(state, ctx)

    return state, ()


def shut_down(state: TrackerState) -> Transition:
    """Tear everything down, including any saved session."""
    return TrackerState(), (RemoveOverlay(), ClearSavedSession())
