# This file is part of qrvector.
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

import asyncio
import io
from dataclasses import replace

import cairosvg
import numpy as np
import pytest
from PIL import Image

from qrvector import GenerationOptions, QrCodeRenderer, Strategy

from .defs import test_messages


def svg_to_mask(svg: str, n: int):
    """Rasterize ``svg`` at one pixel per module; ``True`` is dark."""
    png_bytes = cairosvg.svg2png(
        bytestring=svg.encode(),
        output_width=n,
        output_height=n,
        background_color="white",
    )
    assert isinstance(png_bytes, bytes)
    return np.array(Image.open(io.BytesIO(png_bytes)).convert("L")) < 128


@pytest.mark.parametrize("msg", test_messages)
def test_rendered_svg(msg: str, options: GenerationOptions) -> None:
    """
    Test that the SVG of every strategy, rasterized with cairosvg, is equivalent to
    the module matrix produced by the encoder.
    """
    renderer = QrCodeRenderer(msg, options)
    n = renderer.matrix.width
    # Keep the embedded raster aligned to whole output pixels.
    renderer.options = replace(options, raster_resolution=16 * n)
    ref_matrix = np.array(renderer.matrix.rows, dtype=bool)

    versions = asyncio.run(renderer.versions())
    assert list(versions) == list(Strategy)
    for strategy, doc in versions.items():
        raster = svg_to_mask(doc.text, n)
        assert np.array_equal(raster, ref_matrix), (
            f"{strategy.name} output differs from reference for message: {msg!r}\n"
            f"Reference matrix (True=black):\n{ref_matrix}\n"
            f"Rendered matrix (True=black):\n{raster}"
        )


def test_blank_canvas(options: GenerationOptions) -> None:
    renderer = QrCodeRenderer("A", options)
    renderer.rects = []
    for strategy in (Strategy.PATH_MERGE, Strategy.ROW_MERGE, Strategy.BLOCK_MERGE):
        doc = renderer.svg_sync(strategy)
        assert doc.element_count == 1
        assert not svg_to_mask(doc.text, renderer.matrix.width).any()
