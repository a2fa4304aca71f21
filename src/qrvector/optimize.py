# This file is part of qrvector.
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""
Geometry reduction of a rectangle set.

All strategies expect the rectangle set in row-major order and are deterministic:
the same input always yields the same output.
"""

import logging
from collections.abc import Sequence
from dataclasses import replace

import numpy as np
from numpy.typing import NDArray

from .errors import InvalidMatrixError
from .geometry import (
    TOLERANCE,
    BlockSet,
    PathCommand,
    PathGeometry,
    Rectangle,
)
from .options import Strategy

logger = logging.getLogger(__name__)

# A block in grid coordinates: (column, row, width, height) in modules.
GridBlock = tuple[int, int, int, int]


def _close(a: float, b: float) -> bool:
    return abs(a - b) <= TOLERANCE


def merge_to_path(rects: Sequence[Rectangle]) -> PathGeometry:
    """
    Trace every rectangle as a closed sub-path of a single path.

    Nothing is merged: with the even-odd fill rule, adjacent squares still render
    solid, so no polygon union is needed.
    """

    def move(prev: tuple[float, float] | None, x: float, y: float) -> PathCommand:
        absolute = PathCommand("M", (x, y))
        if prev is None:
            return absolute
        # After `z`, the current point is the start of the previous sub-path.
        relative = PathCommand("m", (round(x - prev[0], 3), round(y - prev[1], 3)))
        return min(absolute, relative, key=lambda c: len(str(c)))

    commands: list[PathCommand] = []
    prev: tuple[float, float] | None = None
    for rect in rects:
        # Round the corners first so that relative moves do not accumulate drift.
        x, y = round(rect.x, 3), round(rect.y, 3)
        w = round(round(rect.right, 3) - x, 3)
        h = round(round(rect.bottom, 3) - y, 3)
        commands += [
            move(prev, x, y),
            PathCommand("h", (w,)),
            PathCommand("v", (h,)),
            PathCommand("h", (-w,)),
            PathCommand("z"),
        ]
        prev = (x, y)

    return PathGeometry(tuple(commands))


def merge_rows(rects: Sequence[Rectangle]) -> BlockSet:
    """Coalesce touching rectangles that share a row into horizontal runs."""
    # Rows keyed by (y, height), compared with tolerance.
    rows: list[tuple[float, float, list[Rectangle]]] = []
    for rect in rects:
        for y, height, members in rows:
            if _close(rect.y, y) and _close(rect.height, height):
                members.append(rect)
                break
        else:
            rows.append((rect.y, rect.height, [rect]))

    merged: list[Rectangle] = []
    for _, _, members in sorted(rows, key=lambda row: (row[0], row[1])):
        members.sort(key=lambda r: r.x)
        run = members[0]
        for rect in members[1:]:
            if _close(rect.x, run.right):
                run = replace(run, width=rect.right - run.x)
            else:
                merged.append(run)
                run = rect
        merged.append(run)

    return BlockSet(tuple(merged))


def _is_complete_run(free: NDArray[np.bool_], start: int, width: int) -> bool:
    """
    Whether ``free[start:start + width]`` is entirely free and bounded by cells
    that are not.
    """
    end = start + width
    if end > len(free) or not free[start:end].all():
        return False
    if start > 0 and free[start - 1]:
        return False
    return not (end < len(free) and free[end])


def merge_grid(present: NDArray[np.bool_]) -> list[GridBlock]:
    """
    Greedily tile the present cells of a boolean grid with rectangular blocks.

    Cells are scanned in row-major order. From each cell that is not yet used, the
    block grows to the right as long as cells are present and unused, which fixes
    its width. It then grows downwards as long as the same span in the next row is
    a complete run of present, unused cells. Every block therefore consists of
    whole horizontal runs, so there are never more blocks than runs. Unlike a greedy
    search that also accepts partial runs, ``[[0, 1, 1, 0], [1, 1, 1, 1]]`` gives two
    row blocks rather than a 2x2 block and two single cells.
    """
    present = np.asarray(present, dtype=np.bool_)
    assert present.ndim == 2, f"expected a 2D grid, got shape {present.shape}"
    n_rows, n_cols = present.shape
    used = np.zeros_like(present)

    blocks: list[GridBlock] = []
    for gy, gx in zip(*np.nonzero(present)):
        gy, gx = int(gy), int(gx)
        if used[gy, gx]:
            continue

        width = 1
        while gx + width < n_cols:
            if not present[gy, gx + width] or used[gy, gx + width]:
                break
            width += 1

        height = 1
        while gy + height < n_rows:
            row = gy + height
            if not _is_complete_run(present[row] & ~used[row], gx, width):
                break
            height += 1

        used[gy : gy + height, gx : gx + width] = True
        blocks.append((gx, gy, width, height))

    return blocks


def merge_blocks(rects: Sequence[Rectangle]) -> BlockSet:
    """Merge unit rectangles into maximal rectangular blocks across rows and columns."""
    if not rects:
        return BlockSet()

    size = min(min(r.width, r.height) for r in rects)
    for rect in rects:
        if not (_close(rect.width, size) and _close(rect.height, size)):
            raise InvalidMatrixError(
                f"Block merging needs uniform modules of size {size}, got {rect}"
            )

    min_x = min(r.x for r in rects)
    min_y = min(r.y for r in rects)
    cells = [
        (round((r.x - min_x) / size), round((r.y - min_y) / size)) for r in rects
    ]
    present = np.zeros(
        (max(gy for _, gy in cells) + 1, max(gx for gx, _ in cells) + 1), dtype=np.bool_
    )
    for gx, gy in cells:
        present[gy, gx] = True

    blocks = merge_grid(present)
    if not blocks:
        logger.debug("Block merging found no blocks, keeping %d rectangles", len(rects))
        return BlockSet(tuple(rects))

    return BlockSet(
        tuple(
            Rectangle(min_x + gx * size, min_y + gy * size, w * size, h * size)
            for gx, gy, w, h in blocks
        )
    )


def merge(rects: Sequence[Rectangle], strategy: Strategy) -> PathGeometry | BlockSet:
    """Apply one of the synchronous merge strategies."""
    if strategy is Strategy.PATH_MERGE:
        return merge_to_path(rects)
    if strategy is Strategy.ROW_MERGE:
        return merge_rows(rects)
    if strategy is Strategy.BLOCK_MERGE:
        return merge_blocks(rects)
    raise ValueError(f"{strategy} does not operate on rectangles")
