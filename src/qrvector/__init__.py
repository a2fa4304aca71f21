# This file is part of qrvector.
#
# This Source Code Form is subject to the terms of the Mozilla Public
# License, v. 2.0. If a copy of the MPL was not distributed with this
# file, You can obtain one at https://mozilla.org/MPL/2.0/.

import asyncio
import logging
import sys
from argparse import ArgumentParser
from pathlib import Path

from .embed import embed_matrix, embed_raster
from .errors import EncodingError, InvalidMatrixError, QrVectorError
from .geometry import (
    BlockSet,
    ColorClass,
    EmbeddedRaster,
    OptimizedGeometry,
    PathCommand,
    PathGeometry,
    Rectangle,
    RectangleSet,
    rasterize,
)
from .matrix import BitMatrix, encode
from .optimize import merge, merge_blocks, merge_grid, merge_rows, merge_to_path
from .options import GenerationOptions, Strategy, select_strategy
from .render import (
    OptimizationStats,
    QrCodeRenderer,
    SvgDocument,
    artifact_basename,
    png_filename,
    svg_filename,
)
from .serialize import encode_image, serialize, serialize_raster
from .settings import Settings, settings
from .svgsource import (
    is_background_color,
    is_dark_color,
    reoptimize_svg,
    validate_svg,
)

__all__ = [
    "BitMatrix",
    "BlockSet",
    "ColorClass",
    "EmbeddedRaster",
    "EncodingError",
    "GenerationOptions",
    "InvalidMatrixError",
    "OptimizationStats",
    "OptimizedGeometry",
    "PathCommand",
    "PathGeometry",
    "QrCodeRenderer",
    "QrVectorError",
    "Rectangle",
    "RectangleSet",
    "Settings",
    "Strategy",
    "SvgDocument",
    "artifact_basename",
    "embed_matrix",
    "embed_raster",
    "encode",
    "encode_image",
    "is_background_color",
    "is_dark_color",
    "merge",
    "merge_blocks",
    "merge_grid",
    "merge_rows",
    "merge_to_path",
    "png_filename",
    "rasterize",
    "reoptimize_svg",
    "select_strategy",
    "serialize",
    "serialize_raster",
    "settings",
    "svg_filename",
    "validate_svg",
]


def run(argv: list[str] | None = None) -> int:
    parser = ArgumentParser(description="Render a payload as a QR code (SVG or PNG)")
    parser.add_argument("msg", help="Message to encode")
    parser.add_argument(
        "--size", type=int, default=settings.canvas_size, help="Canvas size in pixels"
    )
    parser.add_argument(
        "--strategy",
        choices=[s.value for s in Strategy],
        help="SVG geometry strategy (chosen from the payload length by default)",
    )
    parser.add_argument("--format", choices=["svg", "png"], default="svg")
    parser.add_argument("--fg", default=settings.foreground_color, help="Dark color")
    parser.add_argument("--bg", default=settings.background_color, help="Light color")
    parser.add_argument(
        "--transparent", action="store_true", help="Omit the background"
    )
    parser.add_argument(
        "--margin",
        type=int,
        default=settings.margin_modules,
        help="Quiet zone in modules",
    )
    parser.add_argument(
        "--ecc", choices=["L", "M", "Q", "H"], default=settings.ecc_level.upper()
    )
    parser.add_argument("--content-type", default="text", help="Label for file names")
    parser.add_argument("--output", type=Path, help="Output file")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        options = GenerationOptions(
            canvas_size=args.size,
            foreground_color=args.fg,
            background_color=args.bg,
            transparent=args.transparent,
            margin_modules=args.margin,
            strategy=Strategy(args.strategy) if args.strategy else None,
            ecc_level=args.ecc,
        )
        renderer = QrCodeRenderer(args.msg, options)
    except (QrVectorError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    basename = artifact_basename(args.content_type)
    if args.format == "png":
        output = args.output or Path(png_filename(basename))
        output.write_bytes(renderer.png())
        print(output)
        return 0

    doc = asyncio.run(renderer.svg())
    if args.output is None:
        print(doc.text)
    else:
        args.output.write_text(doc.text)
        print(args.output)
    return 0
