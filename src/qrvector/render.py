# This file is part of qrvector.
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

import logging
import time
from dataclasses import dataclass
from typing import final

from .embed import embed_matrix
from .geometry import BlockSet, OptimizedGeometry, PathGeometry, rasterize
from .matrix import encode
from .optimize import merge
from .options import GenerationOptions, Strategy
from .serialize import element_count, encode_image, serialize, serialize_raster
from .svgsource import validate_svg

logger = logging.getLogger(__name__)

# File name suffixes identifying the strategy that produced an SVG.
SVG_SUFFIXES = {
    Strategy.PATH_MERGE: "",
    Strategy.ROW_MERGE: "-row-optimized",
    Strategy.BLOCK_MERGE: "-block-optimized",
    Strategy.RASTER_EMBED: "-hybrid",
}


@dataclass(frozen=True)
class OptimizationStats:
    """Size and element counts of an optimized SVG against the per-module one."""

    original_size: int
    optimized_size: int
    original_elements: int
    optimized_elements: int

    @property
    def reduction(self) -> int:
        return self.original_size - self.optimized_size

    @property
    def reduction_percent(self) -> float:
        if self.original_size == 0:
            return 0.0
        return round(self.reduction / self.original_size * 100, 1)

    @property
    def elements_reduced(self) -> int:
        return self.original_elements - self.optimized_elements

    @property
    def merge_efficiency(self) -> float:
        if self.original_elements == 0:
            return 0.0
        return round(self.elements_reduced / self.original_elements * 100, 1)


@dataclass(frozen=True)
class SvgDocument:
    text: str
    strategy: Strategy
    element_count: int
    stats: OptimizationStats
    valid: bool = True

    def filename(self, basename: str) -> str:
        return svg_filename(basename, self.strategy)


def timestamp() -> str:
    """Milliseconds since the epoch, as used in artifact names."""
    return str(time.time_ns() // 1_000_000)


def artifact_basename(content_type: str, stamp: str | None = None) -> str:
    return f"qrcode-{content_type}-{stamp or timestamp()}"


def svg_filename(basename: str, strategy: Strategy) -> str:
    return f"{basename}{SVG_SUFFIXES[strategy]}.svg"


def png_filename(basename: str) -> str:
    return f"{basename}.png"


@final
class QrCodeRenderer:
    """
    Render a payload as a QR code, either as PNG or as an SVG reduced by one of
    the geometry strategies.

    The payload is encoded and rasterized into module rectangles once, on
    construction; every output is derived from those.
    """

    def __init__(self, payload: str, options: GenerationOptions | None = None) -> None:
        self.payload = payload
        self.options = options or GenerationOptions()

        self.matrix = encode(
            payload, self.options.ecc_level, self.options.margin_modules
        )
        self.rects = rasterize(self.matrix, self.options.canvas_size)
        logger.debug(
            "Encoded %d characters as %dx%d modules (%d dark)",
            len(payload),
            self.matrix.width,
            self.matrix.height,
            len(self.rects),
        )

    @property
    def strategy(self) -> Strategy:
        """The explicitly requested strategy, or the default for this payload."""
        return self.options.strategy_for(self.payload)

    def optimize(self, strategy: Strategy | None = None) -> PathGeometry | BlockSet:
        """Reduce the module rectangles with one of the synchronous strategies."""
        strategy = strategy or self.strategy
        if strategy is Strategy.RASTER_EMBED:
            raise ValueError("Raster embedding is asynchronous, await `svg` instead")
        return merge(self.rects, strategy)

    async def geometry(self, strategy: Strategy | None = None) -> OptimizedGeometry:
        strategy = strategy or self.strategy
        if strategy is Strategy.RASTER_EMBED:
            return await embed_matrix(self.matrix, self.options)
        return self.optimize(strategy)

    def _serialize(self, geometry: OptimizedGeometry) -> str:
        return serialize(
            geometry,
            self.options.canvas_size,
            self.options.background,
            self.options.foreground_color,
        )

    def basic_svg(self) -> str:
        """The unoptimized SVG with one rectangle per dark module."""
        return self._serialize(BlockSet(tuple(self.rects)))

    def _document(self, geometry: OptimizedGeometry, strategy: Strategy) -> SvgDocument:
        text = self._serialize(geometry)
        original = self.basic_svg()
        background = self.options.background
        stats = OptimizationStats(
            original_size=len(original.encode()),
            optimized_size=len(text.encode()),
            original_elements=len(self.rects) + (background is not None),
            optimized_elements=element_count(geometry, background),
        )
        logger.info(
            "%s: %d -> %d elements, %d -> %d bytes (%.1f%% smaller)",
            strategy.name,
            stats.original_elements,
            stats.optimized_elements,
            stats.original_size,
            stats.optimized_size,
            stats.reduction_percent,
        )
        valid = validate_svg(original, text)
        if not valid:
            logger.warning("%s output failed validation", strategy.name)
        return SvgDocument(text, strategy, stats.optimized_elements, stats, valid)

    def svg_sync(self, strategy: Strategy | None = None) -> SvgDocument:
        """Like :meth:`svg`, but only for the synchronous merge strategies."""
        strategy = strategy or self.strategy
        return self._document(self.optimize(strategy), strategy)

    async def svg(self, strategy: Strategy | None = None) -> SvgDocument:
        strategy = strategy or self.strategy
        return self._document(await self.geometry(strategy), strategy)

    async def versions(self) -> dict[Strategy, SvgDocument]:
        """The SVG produced by every strategy, for comparison."""
        return {strategy: await self.svg(strategy) for strategy in Strategy}

    def png(self) -> bytes:
        image = serialize_raster(
            self.rects,
            self.options.canvas_size,
            self.options.foreground_color,
            self.options.background,
        )
        return encode_image(image, "PNG")
