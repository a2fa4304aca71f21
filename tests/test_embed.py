import asyncio
import io
from dataclasses import replace

import numpy as np
from PIL import Image

from qrvector import GenerationOptions, embed_matrix, embed_raster, encode

from .defs import matrix


def test_embed_opaque_as_jpeg(options: GenerationOptions) -> None:
    raster = asyncio.run(embed_raster("https://example.org", options))
    assert raster.mime_type == "image/jpeg"
    assert raster.resolution == 1024
    image = Image.open(io.BytesIO(raster.encoded_image))
    assert image.format == "JPEG"
    assert image.size == (1024, 1024)


def test_embed_transparent_as_png(options: GenerationOptions) -> None:
    options = replace(options, transparent=True, raster_resolution=290)
    raster = asyncio.run(embed_raster("https://example.org", options))
    assert raster.mime_type == "image/png"
    image = Image.open(io.BytesIO(raster.encoded_image))
    assert image.format == "PNG"
    assert image.mode == "RGBA"


def test_embedded_raster_matches_matrix(options: GenerationOptions) -> None:
    m = encode("HELLO WORLD", "M", 4)
    options = replace(options, transparent=True, raster_resolution=m.width * 8)
    raster = asyncio.run(embed_matrix(m, options))
    alpha = np.array(Image.open(io.BytesIO(raster.encoded_image)))[:, :, 3]
    # Sample the center of every module.
    sampled = alpha[4::8, 4::8] > 0
    assert np.array_equal(sampled, np.array(m.rows, dtype=bool))


def test_embed_resolution_independent_of_canvas(options: GenerationOptions) -> None:
    small = replace(options, canvas_size=100, raster_resolution=512)
    raster = asyncio.run(embed_raster("A", small))
    assert Image.open(io.BytesIO(raster.encoded_image)).size == (512, 512)


def test_embed_blank_matrix(options: GenerationOptions) -> None:
    raster = asyncio.run(embed_matrix(matrix("...", "...", "..."), options))
    assert raster.encoded_image == b""


def test_embed_as_task(options: GenerationOptions) -> None:
    async def main() -> bool:
        task = asyncio.create_task(embed_raster("cancel me", options))
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            return True
        return False

    assert asyncio.run(main())
