import math

import pytest
from PIL import Image

from pixelmap.image_processing.utils import (
    hsp_intensity,
    load_image,
    prepare_size,
    round_half_away,
    scale_image,
    sub_image,
)
from pixelmap.models import InputError, Scaler


def test_prepare_size_derives_height_from_width():
    assert prepare_size(200, 0, (100, 50)) == (200, 100)
    assert prepare_size(200, -1, (100, 50)) == (200, 100)


def test_prepare_size_derives_width_from_height():
    assert prepare_size(0, 25, (100, 50)) == (50, 25)


def test_prepare_size_keeps_both_when_given():
    assert prepare_size(10, 30, (100, 50)) == (10, 30)


def test_prepare_size_rounds_half_away_from_zero():
    # 3 * (1 / 2) = 1.5
    assert prepare_size(0, 1, (3, 2)) == (2, 1)


@pytest.mark.parametrize(
    "value, expected",
    [(0.5, 1), (1.5, 2), (2.5, 3), (2.4, 2), (-2.5, -3), (0.0, 0)],
)
def test_round_half_away(value, expected):
    assert round_half_away(value) == expected


def test_scale_image_without_target_is_a_no_op(gradient_image):
    assert scale_image(gradient_image, 0, 0) is gradient_image
    assert scale_image(gradient_image, -5, 0) is gradient_image


@pytest.mark.parametrize("scaler", list(Scaler))
def test_scale_image_keeps_aspect(gradient_image, scaler):
    scaled = scale_image(gradient_image, 16, 0, scaler)
    assert scaled.size == (16, 8)


def test_scale_image_rejects_empty_result():
    image = Image.new("RGBA", (100, 1))
    with pytest.raises(InputError):
        scale_image(image, 10, 0)


def test_sub_image_is_clipped_to_bounds(gradient_image):
    assert sub_image(gradient_image, (0, 0, 4, 4)).size == (4, 4)
    assert sub_image(gradient_image, (30, 10, 40, 40)).size == (2, 6)
    assert sub_image(gradient_image, (-2, -2, 3, 3)).size == (3, 3)


def test_sub_image_outside_image_fails(gradient_image):
    with pytest.raises(InputError):
        sub_image(gradient_image, (40, 0, 50, 10))
    with pytest.raises(InputError):
        sub_image(gradient_image, (0, 0, 0, 10))


def test_hsp_intensity():
    assert hsp_intensity((0, 0, 0)) == 0.0
    white = math.sqrt(0.299**2 + 0.587**2 + 0.114**2)
    assert hsp_intensity((255, 255, 255)) == pytest.approx(white)
    # green is perceived brighter than red, red brighter than blue
    assert hsp_intensity((0, 255, 0)) > hsp_intensity((255, 0, 0))
    assert hsp_intensity((255, 0, 0)) > hsp_intensity((0, 0, 255))


@pytest.mark.parametrize(
    "suffix, fmt",
    [(".png", "PNG"), (".bmp", "BMP"), (".gif", "GIF"), (".tiff", "TIFF"), (".JPG", "JPEG")],
)
def test_load_image_by_extension(tmp_path, suffix, fmt):
    path = tmp_path / f"input{suffix}"
    Image.new("RGB", (6, 3), (10, 20, 30)).save(path, format=fmt)

    image = load_image(path)

    assert image.mode == "RGBA"
    assert image.size == (6, 3)


def test_load_image_rejects_unknown_extension(tmp_path):
    path = tmp_path / "input.xcf"
    path.write_bytes(b"whatever")

    with pytest.raises(InputError, match="unsupported image format"):
        load_image(path)


def test_load_image_rejects_content_not_matching_extension(tmp_path):
    path = tmp_path / "input.png"
    Image.new("RGB", (4, 4)).save(path, format="JPEG")

    with pytest.raises(InputError, match="could not decode"):
        load_image(path)


def test_load_image_missing_file(tmp_path):
    with pytest.raises(InputError, match="could not read"):
        load_image(tmp_path / "missing.png")
