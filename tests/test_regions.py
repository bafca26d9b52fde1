import json

import pytest

from pixelmap.image_processing.regions import (
    build_regions,
    load_image_map,
    parse_image_map,
    region_debug_path,
)
from pixelmap.models import (
    Generator,
    InputError,
    MapDecodeError,
    Palette,
    Renderer,
    Scaler,
)

BASE = Generator(palette=Palette.parse("ab"))


def _map(doc) -> str:
    return json.dumps(doc)


def test_top_level_gen_applies_to_every_area_and_area_gen_overrides_further():
    image_map = parse_image_map(
        _map(
            {
                "gen": {"renderer": "js"},
                "areas": [
                    {"x": 0, "y": 0, "w": 4, "h": 4, "gen": {"invert": True}},
                    {"x": 4, "y": 0, "w": 4, "h": 4},
                ],
            }
        ),
        BASE,
    )

    first, second = image_map.areas
    assert image_map.gen.renderer is Renderer.JS
    assert first.gen.renderer is Renderer.JS and first.gen.invert is True
    assert second.gen.renderer is Renderer.JS and second.gen.invert is False
    assert first.box == (0, 0, 4, 4)
    assert second.box == (4, 0, 8, 4)
    # base settings survive untouched
    assert BASE.renderer is Renderer.CPP17


def test_area_gen_can_reset_an_inherited_flag():
    base = Generator(invert=True, scaler=Scaler.NEAREST)
    image_map = parse_image_map(
        _map({"areas": [{"x": 0, "y": 0, "w": 1, "h": 1, "gen": {"invert": False}}]}),
        base,
    )

    gen = image_map.areas[0].gen
    assert gen.invert is False
    assert gen.scaler is Scaler.NEAREST


def test_siblings_do_not_share_overrides():
    image_map = parse_image_map(
        _map(
            {
                "areas": [
                    {"x": 0, "y": 0, "w": 1, "h": 1, "gen": {"varName": "first"}},
                    {"x": 0, "y": 0, "w": 1, "h": 1},
                ]
            }
        ),
        BASE,
    )

    assert image_map.areas[0].gen.var_name == "first"
    assert image_map.areas[1].gen.var_name == "bitmap"


@pytest.mark.parametrize(
    "doc",
    [
        {"areas": [], "extra": 1},
        {"areas": [], "gen": {"colour": "red"}},
    ],
)
def test_unknown_document_fields_are_rejected(doc):
    with pytest.raises(MapDecodeError):
        parse_image_map(_map(doc), BASE)


def test_unknown_area_field_reports_area_index():
    doc = {
        "areas": [
            {"x": 0, "y": 0, "w": 1, "h": 1},
            {"x": 0, "y": 0, "w": 1, "h": 1, "depth": 3},
        ]
    }

    with pytest.raises(MapDecodeError, match="invalid area 1"):
        parse_image_map(_map(doc), BASE)


def test_unknown_area_gen_field_reports_area_index():
    doc = {"areas": [{"x": 0, "y": 0, "w": 1, "h": 1, "gen": {"paletteChars": "x"}}]}

    with pytest.raises(MapDecodeError, match="invalid area 0"):
        parse_image_map(_map(doc), BASE)


@pytest.mark.parametrize(
    "area",
    [
        {"x": "0", "y": 0, "w": 1, "h": 1},
        {"x": 0, "y": 0, "w": -1, "h": 1},
        {"x": 0, "y": 0, "w": 1, "h": 1, "gen": {"renderer": "basic"}},
        [0, 0, 1, 1],
    ],
)
def test_malformed_areas_are_rejected(area):
    with pytest.raises(MapDecodeError, match="invalid area 0"):
        parse_image_map(_map({"areas": [area]}), BASE)


@pytest.mark.parametrize("text", ["{", "[]", '{"areas": {}}'])
def test_malformed_documents_are_rejected(text):
    with pytest.raises(MapDecodeError):
        parse_image_map(text, BASE)


def test_load_image_map_from_file(tmp_path):
    path = tmp_path / "map.json"
    path.write_text(_map({"areas": [{"x": 1, "y": 2, "w": 3, "h": 4}]}))

    image_map = load_image_map(path, BASE)

    assert image_map.areas[0].box == (1, 2, 4, 6)


def test_load_image_map_missing_file(tmp_path):
    with pytest.raises(MapDecodeError):
        load_image_map(tmp_path / "nope.json", BASE)


def test_build_regions_uses_each_area_settings(black_white_image):
    image_map = parse_image_map(
        _map(
            {
                "gen": {"renderer": "js"},
                "areas": [
                    {"x": 0, "y": 0, "w": 4, "h": 4, "gen": {"invert": True}},
                    {"x": 4, "y": 0, "w": 4, "h": 4},
                ],
            }
        ),
        BASE,
    )

    first, second = list(build_regions(black_white_image, image_map))

    for out in (first, second):
        assert out.startswith("// prettier-ignore deno-fmt-ignore\nexport const bitmap")
        assert "new Uint8Array([\n" in out
    # black rows on top: inverted -> most intense first
    assert "    b,b,b,b,\n    b,b,b,b,\n    a,a,a,a,\n" in first
    assert "    a,a,a,a,\n    a,a,a,a,\n    b,b,b,b,\n" in second


def test_build_regions_stops_at_failing_area(black_white_image):
    image_map = parse_image_map(
        _map(
            {
                "areas": [
                    {"x": 0, "y": 0, "w": 2, "h": 2},
                    {"x": 50, "y": 50, "w": 2, "h": 2},
                    {"x": 0, "y": 0, "w": 2, "h": 2},
                ]
            }
        ),
        BASE,
    )
    results = build_regions(black_white_image, image_map)

    assert next(results).startswith("static const auto bitmap")
    with pytest.raises(InputError):
        next(results)


def test_region_debug_path():
    assert region_debug_path(None, 3) is None
    assert region_debug_path("out/q.png", 2).name == "q-2.png"


def test_null_area_fields_inherit_from_map_gen():
    image_map = parse_image_map(
        _map(
            {
                "gen": {"renderer": "cjs"},
                "areas": [{"x": 0, "y": 0, "w": 1, "h": 1, "gen": {"renderer": None}}],
            }
        ),
        BASE,
    )

    assert image_map.areas[0].gen.renderer is Renderer.CJS
