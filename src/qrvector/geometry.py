# This file is part of qrvector.
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""Pixel-space rectangles and the optimized geometry produced from them."""

from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple

from .errors import InvalidMatrixError
from .matrix import BitMatrix

# Rectangles closer than this (in output pixels) are considered aligned.
# Absorbs the drift of `canvas_size / matrix.width` multiplications.
TOLERANCE = 1e-3


class ColorClass(Enum):
    DARK = "dark"
    LIGHT = "light"


@dataclass(frozen=True)
class Rectangle:
    x: float
    y: float
    width: float
    height: float
    color_class: ColorClass = ColorClass.DARK

    def __post_init__(self) -> None:
        if not (self.width > 0 and self.height > 0):
            raise ValueError(f"degenerate rectangle {self}")

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height


# Dark rectangles in row-major order (top-to-bottom, then left-to-right).
RectangleSet = list[Rectangle]


def row_major(rect: Rectangle) -> tuple[float, float]:
    """Sort key that restores the row-major order of a rectangle set."""
    return rect.y, rect.x


def fmt(v: float) -> str:
    """Format a coordinate compactly with at most three decimals."""
    # `+ 0.0` turns a negative zero into a positive one.
    return f"{round(v, 3) + 0.0:.3f}".rstrip("0").rstrip(".")


class PathCommand(NamedTuple):
    op: str
    args: tuple[float, ...] = ()

    def __str__(self) -> str:
        return self.op + " ".join(fmt(a) for a in self.args)


@dataclass(frozen=True)
class PathGeometry:
    """All dark modules as sub-paths of one compound path."""

    commands: tuple[PathCommand, ...] = ()
    fill_rule: str = "evenodd"

    @property
    def d(self) -> str:
        return "".join(str(c) for c in self.commands)

    @property
    def subpath_count(self) -> int:
        return sum(1 for c in self.commands if c.op in "Mm")


@dataclass(frozen=True)
class BlockSet:
    rectangles: tuple[Rectangle, ...] = ()


@dataclass(frozen=True)
class EmbeddedRaster:
    """A pre-rendered image of the whole symbol; empty if there is nothing to draw."""

    encoded_image: bytes = field(repr=False)
    mime_type: str
    resolution: int


OptimizedGeometry = PathGeometry | BlockSet | EmbeddedRaster


def module_size(matrix: BitMatrix, canvas_size: float) -> float:
    if matrix.width != matrix.height:
        raise InvalidMatrixError(
            f"QR matrix must be square, got {matrix.width}x{matrix.height}"
        )
    if matrix.width == 0:
        raise InvalidMatrixError("QR matrix is empty")
    return canvas_size / matrix.width


def rasterize(matrix: BitMatrix, canvas_size: float) -> RectangleSet:
    """One unit rectangle per dark module, in row-major order."""
    m = module_size(matrix, canvas_size)
    return [
        Rectangle(x * m, y * m, m, m)
        for y in range(matrix.height)
        for x in range(matrix.width)
        if matrix.get(x, y)
    ]
