"""Entry point for replaying host events through the Tzhaar timers plugin."""

from __future__ import annotations

import argparse
import logging
import os
import sys
import time

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import pygame

from tzhaar.config import ConfigStore, TzhaarTimersConfig
from tzhaar.overlay import IconLookup, InfoBoxManager
from tzhaar.plugin import TzhaarTimersPlugin
from tzhaar.replay import ReplayClient, ReplayDriver, load_replay
from tzhaar.timer import ReplayClock

INTERNAL_WIDTH = 320
INTERNAL_HEIGHT = 200
PREVIEW_SIZE = (640, 400)
TARGET_FPS = 20
LINGER_SECONDS = 5.0
BACKGROUND_COLOR = (20, 16, 14)


class RuntimeArgs(argparse.Namespace):
    """Container for command-line runtime options."""

    replay: str
    config: str | None
    preview: bool
    headless: bool
    speed: float
    debug: bool


class ShutdownRequested(Exception):
    """Raised when the window should close immediately."""


def parse_arguments(argv: list[str] | None = None) -> RuntimeArgs:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(description="Replay chat and game-state events through the Tzhaar timers")
    parser.add_argument("--replay", required=True, help="JSON replay script of host events")
    parser.add_argument("--config", help="JSON file backing the plugin configuration (default: in-memory)")
    parser.add_argument("--preview", action="store_true", help="open a local 640x400 preview window")
    parser.add_argument("--headless", action="store_true", help="run without a window, logging the timer text")
    parser.add_argument("--speed", type=float, default=1.0, help="replay speed multiplier")
    parser.add_argument("--debug", action="store_true", help="enable concise debug logging")

    args = parser.parse_args(argv, namespace=RuntimeArgs())

    if args.preview and args.headless:
        parser.error("--preview cannot be used with --headless")
    if args.speed <= 0.0:
        parser.error("--speed must be greater than 0")

    return args


def configure_logging(debug_enabled: bool, headless: bool = False) -> logging.Logger:
    """Create a logger that stays quiet unless debug is enabled.

    Headless runs report the timer through this logger, so they log at INFO
    even without ``--debug``.
    """
    logger = logging.getLogger("tzhaar")
    logger.handlers.clear()
    logger.propagate = False

    if debug_enabled or headless:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter("%(levelname)s tzhaar %(message)s"))
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG if debug_enabled else logging.INFO)
    else:
        logger.addHandler(logging.NullHandler())
        logger.setLevel(logging.CRITICAL + 1)

    return logger


def _handle_event(event: pygame.event.Event) -> bool:
    """Return whether to shutdown."""
    return event.type in (pygame.QUIT, pygame.KEYDOWN)


def _create_window(preview: bool) -> pygame.Surface:
    """Create a preview window or a fullscreen display surface."""
    if preview:
        try:
            return pygame.display.set_mode(PREVIEW_SIZE, pygame.RESIZABLE)
        except pygame.error:
            return pygame.display.set_mode(PREVIEW_SIZE)

    display_info = pygame.display.Info()
    return pygame.display.set_mode((display_info.current_w, display_info.current_h), pygame.FULLSCREEN)


def _run_headless(driver: ReplayDriver, infoboxes: InfoBoxManager, clock: ReplayClock, logger: logging.Logger) -> None:
    step = 1.0 / TARGET_FPS
    last_text: str | None = None
    while not driver.finished:
        clock.advance(step)
        driver.update(clock.session_time)
        text = " ".join(infobox.text(clock()) for infobox in infoboxes.infoboxes) or "-"
        if text != last_text:
            logger.info("t=%.2f timer %s", clock.session_time, text)
            last_text = text


def _linger_expired(finished_at: float | None, now: float) -> bool:
    """Whether the window has shown the final replay state long enough."""
    return finished_at is not None and now - finished_at >= LINGER_SECONDS


def _to_internal(position: tuple[int, int], window_size: tuple[int, int]) -> tuple[int, int]:
    """Map a window pixel onto the internal render surface."""
    width, height = window_size
    if width <= 0 or height <= 0:
        return position
    return position[0] * INTERNAL_WIDTH // width, position[1] * INTERNAL_HEIGHT // height


def _run_window(driver: ReplayDriver, infoboxes: InfoBoxManager, clock: ReplayClock, preview: bool) -> None:
    pygame.init()
    window = _create_window(preview)
    pygame.display.set_caption("Tzhaar Timers")

    internal_surface = pygame.Surface((INTERNAL_WIDTH, INTERNAL_HEIGHT))
    frame_clock = pygame.time.Clock()
    finished_at: float | None = None

    try:
        while True:
            real_now = time.perf_counter()
            clock.tick()
            for event in pygame.event.get():
                if _handle_event(event):
                    raise ShutdownRequested

            driver.update(clock.session_time)
            if driver.finished and finished_at is None:
                finished_at = real_now
            if _linger_expired(finished_at, real_now):
                raise ShutdownRequested

            internal_surface.fill(BACKGROUND_COLOR)
            mouse = _to_internal(pygame.mouse.get_pos(), window.get_size()) if pygame.mouse.get_focused() else None
            infoboxes.render(internal_surface, clock(), mouse)

            pygame.transform.scale(internal_surface, window.get_size(), window)
            pygame.display.flip()
            frame_clock.tick(TARGET_FPS)
    except ShutdownRequested:
        return


def run(argv: list[str] | None = None) -> int:
    """Run the replay."""
    args = parse_arguments(argv)
    logger = configure_logging(args.debug, args.headless)

    try:
        replay = load_replay(args.replay)
    except (OSError, ValueError) as error:
        logger.error("could not load replay %s: %s", args.replay, error)
        return 1

    config = TzhaarTimersConfig(ConfigStore(args.config))
    client = ReplayClient()
    infoboxes = InfoBoxManager()
    clock = ReplayClock(speed=args.speed)
    plugin = TzhaarTimersPlugin(client, config, infoboxes, IconLookup(), clock)
    driver = ReplayDriver(replay, plugin, client, config)

    try:
        if args.headless:
            _run_headless(driver, infoboxes, clock, logger)
        else:
            _run_window(driver, infoboxes, clock, args.preview)
    finally:
        plugin.shut_down()
        pygame.quit()
    return 0


def main(argv: list[str] | None = None) -> None:
    """CLI entry point."""
    raise SystemExit(run(argv))


if __name__ == "__main__":
    main()
