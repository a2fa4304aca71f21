# This file is part of qrvector.
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

import base64
import io
from collections.abc import Iterable, Sequence
from xml.sax.saxutils import quoteattr

from PIL import Image, ImageColor, ImageDraw

from .geometry import (
    BlockSet,
    EmbeddedRaster,
    OptimizedGeometry,
    PathGeometry,
    Rectangle,
    fmt,
)

# Keeps an embedded raster crisp when the viewer scales it.
_PIXELATED = "image-rendering: crisp-edges; image-rendering: pixelated"


def _wrap_svg(size: float, content: str, *, xlink: bool = False) -> str:
    s = fmt(size)
    return (
        f'<svg width="{s}" height="{s}" viewBox="0 0 {s} {s}" '
        + 'xmlns="http://www.w3.org/2000/svg"'
        + (' xmlns:xlink="http://www.w3.org/1999/xlink"' if xlink else "")
        + ">"
        + content
        + "</svg>"
    )


def _rect(rect: Rectangle, fill: str) -> str:
    return (
        f'<rect x="{fmt(rect.x)}" y="{fmt(rect.y)}" '
        + f'width="{fmt(rect.width)}" height="{fmt(rect.height)}" '
        + f"fill={quoteattr(fill)}/>"
    )


def _content(
    geometry: OptimizedGeometry, canvas_size: float, foreground: str
) -> Iterable[str]:
    if isinstance(geometry, PathGeometry):
        assert geometry.fill_rule in ("evenodd", "nonzero"), geometry.fill_rule
        if geometry.commands:
            yield (
                f'<path d="{geometry.d}" fill={quoteattr(foreground)} '
                + f'fill-rule="{geometry.fill_rule}"/>'
            )
    elif isinstance(geometry, BlockSet):
        for rect in geometry.rectangles:
            yield _rect(rect, foreground)
    else:
        assert isinstance(geometry, EmbeddedRaster), f"unknown geometry {geometry!r}"
        if geometry.encoded_image:
            data = base64.b64encode(geometry.encoded_image).decode("ascii")
            yield (
                f'<image x="0" y="0" width="{fmt(canvas_size)}" '
                + f'height="{fmt(canvas_size)}" '
                + f'xlink:href="data:{geometry.mime_type};base64,{data}" '
                + f'style="{_PIXELATED}"/>'
            )


def serialize(
    geometry: OptimizedGeometry,
    canvas_size: float,
    background: str | None,
    foreground: str = "#000000",
) -> str:
    """
    Render optimized geometry as an SVG document of ``canvas_size`` pixels.

    A ``background`` of ``None`` leaves the document transparent, otherwise a
    full-canvas background rectangle precedes the geometry.
    """
    parts: list[str] = []
    if background is not None:
        parts.append(f'<rect width="100%" height="100%" fill={quoteattr(background)}/>')
    parts.extend(_content(geometry, canvas_size, foreground))
    return _wrap_svg(
        canvas_size, "".join(parts), xlink=isinstance(geometry, EmbeddedRaster)
    )


def element_count(geometry: OptimizedGeometry, background: str | None) -> int:
    """Number of drawable elements :func:`serialize` emits for ``geometry``."""
    if isinstance(geometry, PathGeometry):
        count = 1 if geometry.commands else 0
    elif isinstance(geometry, BlockSet):
        count = len(geometry.rectangles)
    else:
        count = 1 if geometry.encoded_image else 0
    return count + (background is not None)


def _pixel_span(start: float, length: float) -> tuple[int, int]:
    # Round both edges so that adjacent rectangles neither overlap nor leave gaps.
    return round(start), round(start + length)


def serialize_raster(
    rects: Sequence[Rectangle],
    canvas_size: int,
    foreground: str,
    background: str | None,
) -> Image.Image:
    """Fill one pixel block per rectangle on an RGBA canvas."""
    fill = (0, 0, 0, 0)
    if background is not None:
        fill = ImageColor.getcolor(background, "RGBA")
    image = Image.new("RGBA", (canvas_size, canvas_size), fill)
    draw = ImageDraw.Draw(image)
    ink = ImageColor.getcolor(foreground, "RGBA")
    for rect in rects:
        x0, x1 = _pixel_span(rect.x, rect.width)
        y0, y1 = _pixel_span(rect.y, rect.height)
        if x1 > x0 and y1 > y0:
            # Pillow's rectangle includes its lower-right corner.
            draw.rectangle((x0, y0, x1 - 1, y1 - 1), fill=ink)
    return image


def encode_image(
    image: Image.Image, image_format: str = "PNG", quality: int = 95
) -> bytes:
    """Compress ``image`` as PNG or JPEG."""
    buf = io.BytesIO()
    if image_format.upper() in ("JPEG", "JPG"):
        image.convert("RGB").save(buf, format="JPEG", quality=quality)
    else:
        image.save(buf, format="PNG", optimize=True)
    return buf.getvalue()
