"""Sanity checks for CLI parsing and a headless replay run."""

from __future__ import annotations

import contextlib
import io
import json
import os
import tempfile
import unittest
from pathlib import Path

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")

import main

SAMPLE_REPLAY = str(Path(__file__).resolve().parents[1] / "replays" / "inferno_pause_relog.json")


class CliParseTests(unittest.TestCase):
    def test_default_arguments(self) -> None:
        args = main.parse_arguments(["--replay", SAMPLE_REPLAY])
        self.assertEqual(args.replay, SAMPLE_REPLAY)
        self.assertIsNone(args.config)
        self.assertFalse(args.preview)
        self.assertFalse(args.headless)
        self.assertEqual(args.speed, 1.0)
        self.assertFalse(args.debug)

    def test_speed_flag(self) -> None:
        args = main.parse_arguments(["--replay", SAMPLE_REPLAY, "--speed", "8"])
        self.assertEqual(args.speed, 8.0)

    def test_replay_is_required(self) -> None:
        with self.assertRaises(SystemExit):
            main.parse_arguments([])

    def test_conflicting_preview_and_headless(self) -> None:
        with self.assertRaises(SystemExit):
            main.parse_arguments(["--replay", SAMPLE_REPLAY, "--preview", "--headless"])

    def test_non_positive_speed(self) -> None:
        with self.assertRaises(SystemExit):
            main.parse_arguments(["--replay", SAMPLE_REPLAY, "--speed", "0"])


class HeadlessRunTests(unittest.TestCase):
    def test_headless_replay_finishes_and_clears_saved_session(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            config_path = Path(tmp) / "settings.json"
            config_path.write_text(json.dumps({"tzhaartimers.time": "2026-01-01T00:00:00+00:00"}), encoding="utf-8")

            exit_code = main.run(["--replay", SAMPLE_REPLAY, "--headless", "--config", str(config_path)])

            self.assertEqual(exit_code, 0)
            self.assertEqual(json.loads(config_path.read_text(encoding="utf-8")), {})

    def test_headless_without_debug_reports_timer_on_stderr(self) -> None:
        captured = io.StringIO()
        with contextlib.redirect_stderr(captured):
            exit_code = main.run(["--replay", SAMPLE_REPLAY, "--headless", "--speed", "8"])

        self.assertEqual(exit_code, 0)
        output = captured.getvalue()
        self.assertIn("INFO tzhaar t=", output)
        self.assertIn("timer 0:", output)
        self.assertNotIn("DEBUG", output)

    def test_missing_replay_file_fails(self) -> None:
        self.assertEqual(main.run(["--replay", "does-not-exist.json", "--headless"]), 1)


class WindowLoopHelperTests(unittest.TestCase):
    def test_linger_waits_after_replay_finishes(self) -> None:
        self.assertFalse(main._linger_expired(None, 1000.0))
        self.assertFalse(main._linger_expired(10.0, 10.0 + main.LINGER_SECONDS - 0.1))
        self.assertTrue(main._linger_expired(10.0, 10.0 + main.LINGER_SECONDS))

    def test_mouse_maps_onto_internal_surface(self) -> None:
        self.assertEqual(main._to_internal((320, 200), main.PREVIEW_SIZE), (160, 100))
        self.assertEqual(main._to_internal((0, 0), (1920, 1200)), (0, 0))
        self.assertEqual(main._to_internal((7, 9), (0, 0)), (7, 9))


if __name__ == "__main__":
    unittest.main()
