"""Pygame stand-ins for the client's infobox overlay and item images."""

from __future__ import annotations

from datetime import datetime

import pygame

from tzhaar.session import Challenge
from tzhaar.timer import TimerInfoBox

BOX_SIZE = 32
BOX_GAP = 2
BOX_MARGIN = 4
BOX_BACKGROUND = (30, 26, 20, 156)
BOX_BORDER = (56, 48, 36, 255)
TOOLTIP_BACKGROUND = (62, 53, 41)
TOOLTIP_BORDER = (20, 16, 12)
TOOLTIP_TEXT = (255, 255, 255)
TOOLTIP_PADDING = 2

# Each icon is a 12x16 pattern; " " is transparent.
_CAPE_PATTERN = [
    "   oooooo   ",
    "  oaaaaaao  ",
    " oaabbbbaao ",
    " oabbccbbao ",
    "oabbccccbbao",
    "oabccddccbao",
    "oabccddccbao",
    "oabbccccbbao",
    "oaabbccbbaao",
    "oaabbccbbaao",
    "oaaabbbbaaao",
    "oaaabbbbaaao",
    "oaaaabbaaaao",
    "ooaaaaaaaaoo",
    " oooaaaaooo ",
    "    oooo    ",
]

_PALETTES = {
    Challenge.FIGHT_CAVES.item_id: {
        "o": (40, 16, 6, 255),
        "a": (176, 64, 10, 255),
        "b": (224, 120, 24, 255),
        "c": (248, 184, 40, 255),
        "d": (255, 236, 120, 255),
    },
    Challenge.INFERNO.item_id: {
        "o": (22, 10, 10, 255),
        "a": (72, 20, 18, 255),
        "b": (150, 32, 20, 255),
        "c": (232, 92, 20, 255),
        "d": (255, 204, 60, 255),
    },
}

_PLACEHOLDER_PALETTE = {
    "o": (28, 28, 32, 255),
    "a": (80, 80, 88, 255),
    "b": (112, 112, 120, 255),
    "c": (140, 140, 148, 255),
    "d": (176, 176, 184, 255),
}


class IconLookup:
    """Resolve item ids to small cached sprites."""

    def __init__(self) -> None:
        self._cache: dict[int, pygame.Surface] = {}

    @staticmethod
    def _build_sprite(palette: dict[str, tuple[int, int, int, int]]) -> pygame.Surface:
        sprite = pygame.Surface((len(_CAPE_PATTERN[0]), len(_CAPE_PATTERN)), pygame.SRCALPHA)
        for y, row in enumerate(_CAPE_PATTERN):
            for x, marker in enumerate(row):
                if marker != " ":
                    sprite.set_at((x, y), palette[marker])
        return sprite

    def get_image(self, item_id: int) -> pygame.Surface:
        sprite = self._cache.get(item_id)
        if sprite is None:
            sprite = self._build_sprite(_PALETTES.get(item_id, _PLACEHOLDER_PALETTE))
            self._cache[item_id] = sprite
        return sprite


class InfoBoxManager:
    """Ordered collection of infoboxes drawn left to right along the top edge."""

    def __init__(self) -> None:
        self.infoboxes: list[TimerInfoBox] = []
        self._font: pygame.font.Font | None = None

    def add_infobox(self, infobox: TimerInfoBox) -> None:
        self.infoboxes.append(infobox)

    def remove_infobox(self, infobox: TimerInfoBox | None) -> None:
        if infobox is None:
            return
        self.infoboxes = [existing for existing in self.infoboxes if existing is not infobox]

    def _get_font(self) -> pygame.font.Font:
        if self._font is None:
            if not pygame.font.get_init():
                pygame.font.init()
            self._font = pygame.font.Font(None, 14)
        return self._font

    def box_rect(self, index: int) -> pygame.Rect:
        return pygame.Rect(BOX_MARGIN + index * (BOX_SIZE + BOX_GAP), BOX_MARGIN, BOX_SIZE, BOX_SIZE)

    def infobox_at(self, position: tuple[int, int]) -> TimerInfoBox | None:
        for index, infobox in enumerate(self.infoboxes):
            if self.box_rect(index).collidepoint(position):
                return infobox
        return None

    def _render_tooltip(self, surface: pygame.Surface, text: str, position: tuple[int, int]) -> None:
        label = self._get_font().render(text, False, TOOLTIP_TEXT)
        rect = label.get_rect().inflate(TOOLTIP_PADDING * 2, TOOLTIP_PADDING * 2)
        rect.topleft = (position[0] + 8, position[1] + 8)
        rect.clamp_ip(surface.get_rect())
        pygame.draw.rect(surface, TOOLTIP_BACKGROUND, rect)
        pygame.draw.rect(surface, TOOLTIP_BORDER, rect, 1)
        surface.blit(label, (rect.x + TOOLTIP_PADDING, rect.y + TOOLTIP_PADDING))

    def render(self, surface: pygame.Surface, now: datetime, mouse: tuple[int, int] | None = None) -> None:
        """Draw every infobox: background, centered icon, elapsed text at the bottom.

        A ``mouse`` position over a box also draws that box's tooltip.
        """
        if not self.infoboxes:
            return

        font = self._get_font()
        box = pygame.Surface((BOX_SIZE, BOX_SIZE), pygame.SRCALPHA)
        for index, infobox in enumerate(self.infoboxes):
            box.fill(BOX_BACKGROUND)
            pygame.draw.rect(box, BOX_BORDER, box.get_rect(), 1)

            image = infobox.image
            if image is not None:
                box.blit(image, ((BOX_SIZE - image.get_width()) // 2, 2))

            label = font.render(infobox.text(now), False, infobox.text_color())
            box.blit(label, ((BOX_SIZE - label.get_width()) // 2, BOX_SIZE - label.get_height() - 1))

            surface.blit(box, self.box_rect(index).topleft)

        hovered = self.infobox_at(mouse) if mouse is not None else None
        if hovered is not None:
            self._render_tooltip(surface, hovered.tooltip(now), mouse)
