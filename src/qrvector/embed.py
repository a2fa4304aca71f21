# This file is part of qrvector.
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""
Hybrid output: a high-resolution raster of the symbol inside a minimal SVG.

The image is compressed in a worker thread, so both entry points are coroutines.
Wrap them in :func:`asyncio.create_task` to be able to discard a pending result.
"""

import asyncio
import logging

from .geometry import EmbeddedRaster, rasterize
from .matrix import BitMatrix, encode
from .options import GenerationOptions
from .serialize import encode_image, serialize_raster

logger = logging.getLogger(__name__)


def _render(matrix: BitMatrix, options: GenerationOptions) -> EmbeddedRaster:
    resolution = options.raster_resolution
    rects = rasterize(matrix, resolution)
    if not rects:
        return EmbeddedRaster(b"", "image/png", resolution)

    image = serialize_raster(
        rects, resolution, options.foreground_color, options.background
    )
    # An opaque image compresses far better as JPEG; transparency needs PNG.
    if options.transparent:
        return EmbeddedRaster(encode_image(image, "PNG"), "image/png", resolution)
    data = encode_image(image, "JPEG", options.jpeg_quality)
    return EmbeddedRaster(data, "image/jpeg", resolution)


async def embed_matrix(matrix: BitMatrix, options: GenerationOptions) -> EmbeddedRaster:
    raster = await asyncio.to_thread(_render, matrix, options)
    logger.debug(
        "Embedded %dpx %s raster (%d bytes)",
        raster.resolution,
        raster.mime_type,
        len(raster.encoded_image),
    )
    return raster


async def embed_raster(payload: str, options: GenerationOptions) -> EmbeddedRaster:
    """Encode ``payload`` and render it as an embeddable raster image."""
    matrix = encode(payload, options.ecc_level, options.margin_modules)
    return await embed_matrix(matrix, options)
