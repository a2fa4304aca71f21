# This file is part of qrvector.
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

"""
Re-optimization of existing SVG documents that draw one ``<rect>`` per module,
such as the output of :class:`qrcode.image.svg.SvgImage`.
"""

import logging
import re
import xml.etree.ElementTree as ET

from PIL import ImageColor

from .geometry import Rectangle, row_major
from .optimize import merge
from .options import Strategy
from .serialize import serialize

logger = logging.getLogger(__name__)

# Channels at or below this count as black, at or above that as background.
DARK_THRESHOLD = 51
LIGHT_THRESHOLD = 204

_DEFAULT_SIZE = 100.0
_NUMBER = r"[-+]?(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?"
_LENGTH = re.compile(rf"^\s*({_NUMBER})\s*(%|px|mm)?\s*$")
_XLINK_HREF = "{http://www.w3.org/1999/xlink}href"


def _rgb(color: str) -> tuple[int, int, int] | None:
    try:
        r, g, b = ImageColor.getrgb(color.strip())[:3]
    except ValueError:
        return None
    return r, g, b


def is_dark_color(color: str | None) -> bool:
    """Whether ``color`` is black or close enough to count as a dark module."""
    if not color:
        return False
    rgb = _rgb(color)
    return rgb is not None and all(c <= DARK_THRESHOLD for c in rgb)


def is_background_color(color: str | None) -> bool:
    """Whether ``color`` is white, transparent, or light enough to be background."""
    if not color:
        return False
    if color.strip().lower() in ("transparent", "none"):
        return True
    rgb = _rgb(color)
    return rgb is not None and all(c >= LIGHT_THRESHOLD for c in rgb)


def _length(value: str | None, reference: float, default: float = 0.0) -> float:
    if value is None:
        return default
    m = _LENGTH.match(value)
    if m is None:
        return default
    number = float(m.group(1))
    return number * reference / 100 if m.group(2) == "%" else number


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _canvas_size(root: ET.Element) -> float:
    width = _length(root.get("width"), _DEFAULT_SIZE)
    if width > 0:
        return width
    view_box = (root.get("viewBox") or "").replace(",", " ").split()
    if len(view_box) == 4:
        return float(view_box[2])
    return _DEFAULT_SIZE


def reoptimize_svg(svg_text: str, strategy: Strategy) -> str:
    """
    Rebuild an SVG of per-module rectangles with one of the merge strategies.

    Dark rectangles (see :func:`is_dark_color`) are merged; the first light one is
    kept as the background. Rectangles outside the canvas or without area are
    ignored. A document without dark rectangles is returned unchanged.
    """
    try:
        root = ET.fromstring(svg_text)
    except ET.ParseError as e:
        raise ValueError(f"Invalid SVG document: {e}") from e
    if _local(root.tag) != "svg":
        raise ValueError(f"Expected an <svg> root element, got <{_local(root.tag)}>")

    size = _canvas_size(root)
    dark: list[Rectangle] = []
    foreground: str | None = None
    background: str | None = None

    for el in root.iter():
        if _local(el.tag) != "rect":
            continue
        x = _length(el.get("x"), size)
        y = _length(el.get("y"), size)
        w = _length(el.get("width"), size)
        h = _length(el.get("height"), size)
        inside = x >= 0 and y >= 0 and x + w <= size and y + h <= size
        if not (w > 0 and h > 0 and inside):
            continue
        # SVG fills with black when no fill is given.
        fill = el.get("fill", "#000000")
        if is_dark_color(fill):
            dark.append(Rectangle(x, y, w, h))
            foreground = foreground or fill
        elif background is None and is_background_color(fill):
            background = fill

    if not dark:
        logger.debug("No dark rectangles found, leaving the document unchanged")
        return svg_text

    dark.sort(key=row_major)
    geometry = merge(dark, strategy)
    logger.debug("Re-optimized %d rectangles with %s", len(dark), strategy.name)
    if background is None:
        background = "#ffffff"
    elif background.strip().lower() in ("transparent", "none"):
        background = None
    assert foreground is not None
    return serialize(geometry, size, background, foreground)


def _drawn_elements(root: ET.Element) -> int:
    count = 0
    for el in root.iter():
        tag = _local(el.tag)
        if tag == "path" and el.get("d"):
            count += 1
        elif tag == "rect" and is_dark_color(el.get("fill", "#000000")):
            count += 1
        elif tag == "image":
            href = el.get(_XLINK_HREF) or el.get("href") or ""
            count += href.startswith("data:image/")
    return count


def validate_svg(original: str, optimized: str) -> bool:
    """
    Whether ``optimized`` can stand in for ``original``: both parse, they have the
    same dimensions, and ``optimized`` draws something if ``original`` does.
    """
    try:
        before = ET.fromstring(original)
        after = ET.fromstring(optimized)
    except ET.ParseError as e:
        logger.warning("SVG validation failed: %s", e)
        return False
    for attr in ("width", "height"):
        if before.get(attr) != after.get(attr):
            logger.warning(
                "SVG %s changed from %s to %s", attr, before.get(attr), after.get(attr)
            )
            return False
    return _drawn_elements(before) == 0 or _drawn_elements(after) > 0
