import numpy as np
import pytest
from PIL import Image

from pixelmap.models import IndexedImage


@pytest.fixture
def gradient_image() -> Image.Image:
    """32x16 RGBA image with a horizontal gray ramp and a red tint per row."""
    xs = np.linspace(0, 255, 32, dtype=np.float64)
    ys = np.linspace(0, 255, 16, dtype=np.float64)
    gray = np.tile(xs, (16, 1))
    red = np.clip(gray + ys[:, None] * 0.25, 0, 255)
    rgba = np.dstack([red, gray, gray, np.full_like(gray, 255)]).astype(np.uint8)
    return Image.fromarray(rgba)


@pytest.fixture
def black_white_image() -> Image.Image:
    """8x4 image: two black rows on top of two white rows."""
    image = Image.new("RGBA", (8, 4), (255, 255, 255, 255))
    for y in range(2):
        for x in range(8):
            image.putpixel((x, y), (0, 0, 0, 255))
    return image


@pytest.fixture
def checker_indexed() -> IndexedImage:
    """2x2 checkerboard: index 1 is black, index 0 is white."""
    return IndexedImage(
        pixels=np.array([[1, 0], [0, 1]], dtype=np.uint8),
        palette=[(255, 255, 255), (0, 0, 0)],
    )


@pytest.fixture
def config_path(tmp_path):
    """Defaults file location that never touches the user's home."""
    return tmp_path / "pixelmap_config.json"
