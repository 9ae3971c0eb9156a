"""Pure transition checks for chat, location and game-state events."""

from __future__ import annotations

import unittest
from datetime import datetime, timedelta, timezone

from tzhaar.session import (
    Challenge,
    ChatMessageType,
    ClearSavedSession,
    Context,
    GameState,
    OverlaySpec,
    RemoveOverlay,
    SaveSession,
    Session,
    ShowOverlay,
    StoredSession,
    TrackerState,
    location_from_regions,
    on_chat,
    on_game_state_transition,
    on_location_or_config_change,
    shut_down,
    strip_tags,
)

T0 = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
GAME = ChatMessageType.GAMEMESSAGE


def at(seconds: float) -> datetime:
    return T0 + timedelta(seconds=seconds)


def ctx(seconds: float, location: Challenge | None = Challenge.INFERNO, enabled: bool = True) -> Context:
    return Context(now=at(seconds), timer_enabled=enabled, location=location)


def started(location: Challenge | None = Challenge.INFERNO) -> TrackerState:
    state, _ = on_chat(TrackerState(), "Wave: 1", GAME, ctx(0, location))
    return state


def paused_at(seconds: float) -> TrackerState:
    state, _ = on_chat(started(), "The Inferno has been paused. You may now log out.", GAME, ctx(seconds))
    return state


class ChatTransitionTests(unittest.TestCase):
    def test_start_in_fight_caves_creates_overlay_at_now(self) -> None:
        state, actions = on_chat(TrackerState(), "Wave: 1", GAME, ctx(0, Challenge.FIGHT_CAVES))

        self.assertEqual(state.session, Session(active=True, start_time=at(0)))
        self.assertEqual(actions, (ShowOverlay(OverlaySpec(Challenge.FIGHT_CAVES, at(0))),))
        self.assertEqual(state.overlay, OverlaySpec(Challenge.FIGHT_CAVES, at(0)))

    def test_start_outside_challenge_tracks_without_overlay(self) -> None:
        state, actions = on_chat(TrackerState(), "Wave: 1", GAME, ctx(0, None))

        self.assertTrue(state.session.active)
        self.assertEqual(state.session.start_time, at(0))
        self.assertEqual(actions, ())
        self.assertIsNone(state.overlay)

    def test_markup_is_stripped_before_matching(self) -> None:
        state, actions = on_chat(TrackerState(), "<col=ef1020>Wave: 1</col>", ChatMessageType.SPAM, ctx(0))

        self.assertTrue(state.session.active)
        self.assertEqual(len(actions), 1)

    def test_ignored_when_disabled_or_not_a_game_message(self) -> None:
        for message_type, enabled in ((GAME, False), (ChatMessageType.PUBLICCHAT, True)):
            state, actions = on_chat(TrackerState(), "Wave: 1", message_type, ctx(0, enabled=enabled))
            self.assertEqual(state, TrackerState())
            self.assertEqual(actions, ())

    def test_wave_without_pause_replaces_overlay_at_original_start(self) -> None:
        state, actions = on_chat(started(), "Wave: 2", GAME, ctx(30))

        self.assertEqual(state.session.start_time, at(0))
        self.assertEqual(actions, (ShowOverlay(OverlaySpec(Challenge.INFERNO, at(0))),))

    def test_pause_freezes_overlay_and_records_pause_time(self) -> None:
        state, actions = on_chat(started(), "The Inferno has been paused. You may now log out.", GAME, ctx(100))

        self.assertEqual(actions, (ShowOverlay(OverlaySpec(Challenge.INFERNO, at(0), at(100))),))
        self.assertEqual(state.session.pause_time, at(100))
        self.assertTrue(state.session.active)

    def test_wave_after_pause_folds_out_paused_interval(self) -> None:
        state, actions = on_chat(paused_at(100), "Wave: 12", GAME, ctx(150))

        self.assertEqual(state.session.start_time, at(50))
        self.assertIsNone(state.session.pause_time)
        self.assertEqual(actions, (ShowOverlay(OverlaySpec(Challenge.INFERNO, at(50))),))
        # 100 seconds of play before the pause are still on the clock.
        self.assertEqual(at(150) - state.session.start_time, timedelta(seconds=100))

    def test_defeat_clears_everything_even_while_paused(self) -> None:
        state, actions = on_chat(paused_at(100), "You have been defeated!", GAME, ctx(120))

        self.assertEqual(state.session, Session())
        self.assertIsNone(state.overlay)
        self.assertEqual(actions, (RemoveOverlay(), ClearSavedSession()))

    def test_kill_count_completes_run(self) -> None:
        state, actions = on_chat(
            started(Challenge.FIGHT_CAVES),
            "Your TzTok-Jad kill count is: <col=ff0000>3</col>.",
            GAME,
            ctx(900, Challenge.FIGHT_CAVES),
        )

        self.assertFalse(state.session.active)
        self.assertIn(RemoveOverlay(), actions)

    def test_wave_and_defeat_in_one_line_both_fire_in_order(self) -> None:
        state, actions = on_chat(paused_at(100), "Wave: 7 You have been defeated!", GAME, ctx(150))

        self.assertEqual(
            actions,
            (ShowOverlay(OverlaySpec(Challenge.INFERNO, at(50))), RemoveOverlay(), ClearSavedSession()),
        )
        self.assertEqual(state, TrackerState())

    def test_wave_and_pause_in_one_line_resume_then_freeze(self) -> None:
        line = "Wave: 9 The Inferno has been paused. You may now log out."
        state, actions = on_chat(paused_at(100), line, GAME, ctx(150))

        self.assertEqual(
            actions,
            (
                ShowOverlay(OverlaySpec(Challenge.INFERNO, at(50))),
                ShowOverlay(OverlaySpec(Challenge.INFERNO, at(50), at(150))),
            ),
        )
        self.assertEqual(state.session, Session(active=True, start_time=at(50), pause_time=at(150)))
        self.assertEqual(state.overlay, OverlaySpec(Challenge.INFERNO, at(50), at(150)))

    def test_pause_and_kill_count_in_one_line_end_the_run(self) -> None:
        line = "The Fight Cave has been paused. You may now log out. Your TzTok-Jad kill count is: 1"
        state, actions = on_chat(started(), line, GAME, ctx(40))

        self.assertEqual(
            actions,
            (ShowOverlay(OverlaySpec(Challenge.INFERNO, at(0), at(40))), RemoveOverlay(), ClearSavedSession()),
        )
        self.assertEqual(state, TrackerState())

    def test_finish_message_ignored_when_idle(self) -> None:
        state, actions = on_chat(TrackerState(), "You have been defeated!", GAME, ctx(5))

        self.assertEqual(state, TrackerState())
        self.assertEqual(actions, ())


class LocationTransitionTests(unittest.TestCase):
    def test_leaving_challenge_removes_overlay_and_resets(self) -> None:
        state, actions = on_location_or_config_change(started(), ctx(10, None))

        self.assertEqual(state.session, Session())
        self.assertIsNone(state.overlay)
        self.assertEqual(actions, (RemoveOverlay(),))

    def test_disabling_timer_does_not_clear_saved_session(self) -> None:
        _, actions = on_location_or_config_change(started(), ctx(10, enabled=False))

        self.assertEqual(actions, (RemoveOverlay(),))
        self.assertNotIn(ClearSavedSession(), actions)

    def test_no_change_without_overlay_or_while_still_inside(self) -> None:
        outside = started(None)
        self.assertEqual(on_location_or_config_change(outside, ctx(10, None)), (outside, ()))

        inside = started()
        self.assertEqual(on_location_or_config_change(inside, ctx(10)), (inside, ()))


class GameStateTransitionTests(unittest.TestCase):
    def test_logout_saves_paused_session(self) -> None:
        state, actions = on_game_state_transition(paused_at(100), GameState.LOGIN_SCREEN, ctx(110))

        self.assertEqual(
            actions,
            (RemoveOverlay(), ClearSavedSession(), SaveSession(start_time=at(0), started=True, last_time=at(100))),
        )
        self.assertEqual(state.session, Session())
        self.assertIsNone(state.overlay)

    def test_logout_without_pause_uses_now_as_last_time(self) -> None:
        _, actions = on_game_state_transition(started(), GameState.LOGIN_SCREEN, ctx(75))

        self.assertEqual(actions[-1], SaveSession(start_time=at(0), started=True, last_time=at(75)))

    def test_logout_while_idle_only_removes_overlay(self) -> None:
        state, actions = on_game_state_transition(TrackerState(), GameState.LOGIN_SCREEN, ctx(0))

        self.assertEqual(state, TrackerState())
        self.assertEqual(actions, (RemoveOverlay(),))

    def test_login_restores_saved_session_once(self) -> None:
        stored = StoredSession(start_time=at(0), started=True, last_time=at(100))

        state, actions = on_game_state_transition(TrackerState(), GameState.LOGGING_IN, ctx(200))
        self.assertTrue(state.logging_in)
        self.assertEqual(actions, ())

        state, actions = on_game_state_transition(state, GameState.LOGGED_IN, ctx(201), stored)
        self.assertFalse(state.logging_in)
        self.assertEqual(state.session, Session(active=True, start_time=at(0), pause_time=at(100)))
        self.assertEqual(actions, (ClearSavedSession(),))

        again, actions = on_game_state_transition(state, GameState.LOGGED_IN, ctx(202), stored)
        self.assertIs(again, state)
        self.assertEqual(actions, ())

    def test_login_without_saved_session_starts_idle(self) -> None:
        state, _ = on_game_state_transition(TrackerState(logging_in=True), GameState.LOGGED_IN, ctx(1))
        self.assertEqual(state.session, Session())

        partial = StoredSession(start_time=at(0), started=None)
        state, _ = on_game_state_transition(TrackerState(logging_in=True), GameState.LOGGED_IN, ctx(1), partial)
        self.assertEqual(state.session, Session())

    def test_loading_rechecks_visibility_outside_login(self) -> None:
        state, actions = on_game_state_transition(started(), GameState.LOADING, ctx(10, None))

        self.assertEqual(actions, (RemoveOverlay(),))
        self.assertFalse(state.session.active)

    def test_loading_during_login_is_ignored(self) -> None:
        logging_in = TrackerState(
            session=Session(active=True, start_time=at(0)),
            overlay=OverlaySpec(Challenge.INFERNO, at(0)),
            logging_in=True,
        )
        self.assertEqual(on_game_state_transition(logging_in, GameState.LOADING, ctx(10, None)), (logging_in, ()))

    def test_hopping_saves_and_marks_login_sequence(self) -> None:
        state, actions = on_game_state_transition(started(), GameState.HOPPING, ctx(30))

        self.assertTrue(state.logging_in)
        self.assertEqual(actions[-1], SaveSession(start_time=at(0), started=True, last_time=at(30)))

    def test_other_states_are_ignored(self) -> None:
        state = started()
        for game_state in (GameState.CONNECTION_LOST, GameState.UNKNOWN, GameState.STARTING):
            self.assertEqual(on_game_state_transition(state, game_state, ctx(5)), (state, ()))

    def test_shut_down_clears_saved_session(self) -> None:
        state, actions = shut_down(paused_at(10))

        self.assertEqual(state, TrackerState())
        self.assertEqual(actions, (RemoveOverlay(), ClearSavedSession()))


class HelperTests(unittest.TestCase):
    def test_location_from_regions(self) -> None:
        self.assertIsNone(location_from_regions(None))
        self.assertIsNone(location_from_regions([]))
        self.assertIsNone(location_from_regions([12850, 12851]))
        self.assertIs(location_from_regions([9551]), Challenge.FIGHT_CAVES)
        self.assertIs(location_from_regions((12850, 9043)), Challenge.INFERNO)

    def test_strip_tags(self) -> None:
        self.assertEqual(strip_tags("<col=ff0000>Wave: 5</col>"), "Wave: 5")
        self.assertEqual(strip_tags("a<lt>b<gt>c<br>"), "a<b>c")


if __name__ == "__main__":
    unittest.main()
