"""Tests for the results view model (downloads, info cards, tiled preview)."""

import json

import pytest

from pattern_digitizer.ai.digitizer_base import MOCK_PNG_B64, parse_pattern_json
from pattern_digitizer.ui.results import build_result_view, format_number

pytestmark = [pytest.mark.fast]


def _pattern(response: dict):
    return parse_pattern_json(json.dumps(response))


def test_png_only_offers_png_download_and_no_svg(swatch_response):
    view = build_result_view(_pattern(swatch_response))
    assert view.has_download("image/png")
    assert not view.has_download("image/svg+xml")
    assert [d.label for d in view.downloads] == ["Tải Xuống PNG"]
    assert view.downloads[0].filename == "tile.png"
    assert view.downloads[0].href == f"data:image/png;base64,{MOCK_PNG_B64}"


def test_png_and_svg_offer_both_downloads_in_order(swatch_response):
    swatch_response["files"].insert(0, {"filename": "tile.svg", "mime_type": "image/svg+xml", "data": "PHN2Zy8+"})
    view = build_result_view(_pattern(swatch_response))
    assert [d.label for d in view.downloads] == ["Tải Xuống PNG", "Tải Xuống SVG"]


def test_svg_only_has_no_preview(swatch_response):
    swatch_response["files"] = [{"filename": "tile.svg", "mime_type": "image/svg+xml", "data": "PHN2Zy8+"}]
    view = build_result_view(_pattern(swatch_response), tiled=True)
    assert view.preview_src is None
    assert view.tile_style == ""
    assert not view.has_download("image/png")


def test_info_cards_format_dimensions(swatch_response):
    view = build_result_view(_pattern(swatch_response))
    cards = {c.title: c.value for c in view.info_cards}
    assert cards["Kiểu Lặp Lại"] == "straight"
    assert cards["Kích Thước Mẫu"] == "1200 x 1200 px"
    assert cards["Kích Thước In (Ước tính)"] == "10.2 x 10.2 cm"
    assert cards["Độ Phân Giải"] == "300 DPI"


def test_tiled_toggle_does_not_mutate_pattern(swatch_response):
    data = _pattern(swatch_response)
    before = data.model_dump()
    single = build_result_view(data, tiled=False)
    tiled = build_result_view(data, tiled=True)
    again = build_result_view(data, tiled=False)

    assert data.model_dump() == before
    assert tiled.tiled and "background-size: 33.3333%" in tiled.tile_style
    assert again == single


def test_format_number():
    assert format_number(1200.0) == "1200"
    assert format_number(300) == "300"
    assert format_number(1200.5) == "1200.5"
    assert format_number(1234567.5) == "1234567.5"
    assert format_number(12345678) == "12345678"
