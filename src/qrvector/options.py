# This file is part of qrvector.
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

import math
from dataclasses import dataclass, replace
from enum import Enum

from PIL import ImageColor

from .matrix import ECC_LEVELS
from .settings import Settings, settings

MIN_CANVAS_SIZE = 100
MAX_CANVAS_SIZE = 800

# Payload lengths separating the default strategies.
SHORT_PAYLOAD = 50
LONG_PAYLOAD = 200
# Canvases larger than this are embedded as a raster by default.
LARGE_CANVAS = 500


class Strategy(Enum):
    PATH_MERGE = "path"
    ROW_MERGE = "row"
    BLOCK_MERGE = "block"
    RASTER_EMBED = "embed"


def round_to_nearest(value: float, multiple: int) -> int:
    """Round half up to a multiple of ``multiple``."""
    return int(math.floor(value / multiple + 0.5)) * multiple


def select_strategy(payload_length: int, canvas_size: int) -> Strategy:
    """Default strategy for a payload of the given length on a given canvas."""
    if payload_length > LONG_PAYLOAD or canvas_size > LARGE_CANVAS:
        return Strategy.RASTER_EMBED
    if payload_length > SHORT_PAYLOAD:
        return Strategy.ROW_MERGE
    return Strategy.PATH_MERGE


@dataclass(frozen=True)
class GenerationOptions:
    """
    Options of a single generation request.

    ``canvas_size`` is rounded to a multiple of 10 on construction. ``strategy``
    left at ``None`` defers to :func:`select_strategy`.
    """

    canvas_size: int = settings.canvas_size
    foreground_color: str = settings.foreground_color
    background_color: str = settings.background_color
    transparent: bool = False
    margin_modules: int = settings.margin_modules
    strategy: Strategy | None = None
    raster_resolution: int = settings.raster_resolution
    ecc_level: str = settings.ecc_level
    jpeg_quality: int = settings.jpeg_quality

    def __post_init__(self) -> None:
        size = round_to_nearest(self.canvas_size, 10)
        if not MIN_CANVAS_SIZE <= size <= MAX_CANVAS_SIZE:
            raise ValueError(
                f"canvas_size must be between {MIN_CANVAS_SIZE} and "
                + f"{MAX_CANVAS_SIZE}, got {self.canvas_size}"
            )
        # Frozen dataclass, so bypass `__setattr__` for the normalized value.
        object.__setattr__(self, "canvas_size", size)

        if self.margin_modules < 0:
            raise ValueError(
                f"margin_modules must be >= 0, got {self.margin_modules}"
            )
        if self.raster_resolution <= 0:
            raise ValueError(
                f"raster_resolution must be > 0, got {self.raster_resolution}"
            )
        if not 1 <= self.jpeg_quality <= 95:
            raise ValueError(
                f"jpeg_quality must be in [1, 95], got {self.jpeg_quality}"
            )
        if self.ecc_level.upper() not in ECC_LEVELS:
            raise ValueError(f"unknown error correction level {self.ecc_level!r}")
        for color in (self.foreground_color, self.background_color):
            # Raises ValueError for colors Pillow does not understand.
            ImageColor.getrgb(color)

    @classmethod
    def from_settings(
        cls, source: Settings | None = None, **overrides
    ) -> "GenerationOptions":
        source = source or Settings()
        base = cls(
            canvas_size=source.canvas_size,
            foreground_color=source.foreground_color,
            background_color=source.background_color,
            margin_modules=source.margin_modules,
            raster_resolution=source.raster_resolution,
            ecc_level=source.ecc_level,
            jpeg_quality=source.jpeg_quality,
        )
        return replace(base, **overrides)

    @property
    def background(self) -> str | None:
        """Background fill, or ``None`` for a transparent background."""
        return None if self.transparent else self.background_color

    def strategy_for(self, payload: str) -> Strategy:
        if self.strategy is not None:
            return self.strategy
        return select_strategy(len(payload), self.canvas_size)
