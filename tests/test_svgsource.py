import asyncio
from dataclasses import replace
from io import BytesIO

import pytest
import qrcode
from qrcode.image.svg import SvgImage

from qrvector import (
    GenerationOptions,
    QrCodeRenderer,
    Strategy,
    encode,
    is_background_color,
    is_dark_color,
    merge_blocks,
    rasterize,
    reoptimize_svg,
    validate_svg,
)


@pytest.mark.parametrize(
    "color",
    ["#000", "#000000", "black", "BLACK", "rgb(0, 0, 0)", "#333333", "rgb(51,51,51)"],
)
def test_dark_colors(color: str) -> None:
    assert is_dark_color(color)
    assert not is_background_color(color)


@pytest.mark.parametrize(
    "color", ["#fff", "#FFFFFF", "white", "transparent", "#cccccc"]
)
def test_background_colors(color: str) -> None:
    assert is_background_color(color)
    assert not is_dark_color(color)


@pytest.mark.parametrize("color", ["#343434", "#cbcbcb", "red", "", None, "bogus"])
def test_unclassified_colors(color: str | None) -> None:
    assert not is_dark_color(color)
    assert not is_background_color(color)


@pytest.mark.parametrize(
    "strategy", [Strategy.PATH_MERGE, Strategy.ROW_MERGE, Strategy.BLOCK_MERGE]
)
def test_reoptimize_own_output(options: GenerationOptions, strategy: Strategy) -> None:
    # "A" fits a 21x21 symbol; with the quiet zone 29 modules of 10 pixels.
    renderer = QrCodeRenderer("A", replace(options, canvas_size=290))
    assert renderer.matrix.width == 29
    expected = renderer.svg_sync(strategy).text
    assert reoptimize_svg(renderer.basic_svg(), strategy) == expected


def test_reoptimize_qrcode_svg_image() -> None:
    qr = qrcode.QRCode()
    qr.add_data("https://example.org")
    qr.make(fit=True)
    buf = BytesIO()
    qr.make_image(image_factory=SvgImage).save(buf)
    original = buf.getvalue().decode()

    optimized = reoptimize_svg(original, Strategy.BLOCK_MERGE)
    matrix = encode("https://example.org", "M", 4)
    blocks = merge_blocks(rasterize(matrix, matrix.width))
    # One background rectangle plus the merged blocks.
    assert optimized.count("<rect ") == len(blocks.rectangles) + 1
    assert optimized.count("<rect ") < original.count("rect ")


def test_reoptimize_without_dark_rects() -> None:
    svg = (
        '<svg xmlns="http://www.w3.org/2000/svg" width="10" height="10">'
        + '<rect width="10" height="10" fill="#fff"/></svg>'
    )
    assert reoptimize_svg(svg, Strategy.ROW_MERGE) == svg


def test_reoptimize_ignores_out_of_bounds_rects() -> None:
    svg = (
        '<svg xmlns="http://www.w3.org/2000/svg" width="20" height="20">'
        + '<rect x="0" y="0" width="10" height="10" fill="black"/>'
        + '<rect x="10" y="0" width="10" height="10" fill="black"/>'
        + '<rect x="15" y="15" width="10" height="10" fill="black"/>'
        + "</svg>"
    )
    optimized = reoptimize_svg(svg, Strategy.ROW_MERGE)
    assert '<rect x="0" y="0" width="20" height="10" fill="black"/>' in optimized
    assert optimized.count("<rect ") == 2
    # No background rect in the source, so the default white one is added.
    assert 'fill="#ffffff"' in optimized


def test_reoptimize_invalid_document() -> None:
    with pytest.raises(ValueError):
        reoptimize_svg("<svg", Strategy.PATH_MERGE)
    with pytest.raises(ValueError):
        reoptimize_svg("<html/>", Strategy.PATH_MERGE)


def test_reoptimize_drops_transparent_background_in_any_case() -> None:
    svg = (
        '<svg xmlns="http://www.w3.org/2000/svg" width="20" height="20">'
        + '<rect width="20" height="20" fill="Transparent"/>'
        + '<rect x="0" y="0" width="10" height="10" fill="black"/>'
        + "</svg>"
    )
    optimized = reoptimize_svg(svg, Strategy.BLOCK_MERGE)
    assert "Transparent" not in optimized
    assert 'width="100%"' not in optimized
    assert optimized.count("<rect ") == 1


def test_validate_own_documents(renderer: QrCodeRenderer) -> None:
    original = renderer.basic_svg()
    for strategy, doc in asyncio.run(renderer.versions()).items():
        assert doc.valid, strategy
        assert validate_svg(original, doc.text), strategy


def test_validate_rejects_resized_document() -> None:
    original = (
        '<svg xmlns="http://www.w3.org/2000/svg" width="20" height="20">'
        + '<rect width="10" height="10" fill="#000000"/></svg>'
    )
    resized = original.replace('width="20"', 'width="30"')
    assert not validate_svg(original, resized)


def test_validate_rejects_empty_replacement() -> None:
    original = (
        '<svg xmlns="http://www.w3.org/2000/svg" width="20" height="20">'
        + '<rect width="10" height="10" fill="black"/></svg>'
    )
    empty = '<svg xmlns="http://www.w3.org/2000/svg" width="20" height="20"/>'
    assert not validate_svg(original, empty)
    assert validate_svg(empty, empty)
    assert not validate_svg(original, "<svg")
