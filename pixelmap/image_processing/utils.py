"""Utility functions for decoding, sizing and sampling images.

AIDEV-NOTE: This module contains helper functions for loading, scaling,
cropping and color measurements used throughout the generator pipeline.
"""

import io
import math
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from pixelmap.models import InputError, Scaler

# File extension -> Pillow format name
IMAGE_FORMATS = {
    ".png": "PNG",
    ".bmp": "BMP",
    ".tif": "TIFF",
    ".tiff": "TIFF",
    ".gif": "GIF",
    ".webp": "WEBP",
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
}

RESAMPLING = {
    Scaler.NEAREST: Image.Resampling.NEAREST,
    Scaler.APPROX_BILINEAR: Image.Resampling.BILINEAR,
    Scaler.BILINEAR: Image.Resampling.BILINEAR,
    Scaler.CATMULL_ROM: Image.Resampling.BICUBIC,
    Scaler.LANCZOS: Image.Resampling.LANCZOS,
}


def load_image(file_path: "str | Path") -> Image.Image:
    """Load an image file, choosing the decoder from its extension.

    Args:
        file_path: Path to a PNG, BMP, TIFF, GIF, WEBP or JPEG file

    Returns:
        PIL Image in RGBA mode (first frame only)

    Raises:
        InputError: If the extension is unsupported or the file can't be decoded
    """
    path = Path(file_path)
    image_format = IMAGE_FORMATS.get(path.suffix.lower())
    if image_format is None:
        raise InputError(f"unsupported image format: {path.suffix or path.name!r}")

    try:
        data = path.read_bytes()
    except OSError as e:
        raise InputError(f"could not read {path}: {e}") from e

    try:
        image = Image.open(io.BytesIO(data), formats=[image_format])
        image.load()
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise InputError(f"could not decode {path} as {image_format}: {e}") from e

    # AIDEV-NOTE: Always convert to RGBA for consistent processing
    if image.mode != "RGBA":
        image = image.convert("RGBA")
    return image


def round_half_away(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def prepare_size(
    target_width: int,
    target_height: int,
    orig_size: "tuple[int, int]",
) -> "tuple[int, int]":
    """Work out concrete resize dimensions.

    Args:
        target_width: Requested width, <= 0 to derive it from the height
        target_height: Requested height, <= 0 to derive it from the width
        orig_size: (width, height) of the source image

    Returns:
        (width, height) to resize to

    AIDEV-NOTE: Only meaningful when at least one target is > 0. Callers
    skip resizing entirely when both are <= 0.
    """
    orig_width, orig_height = orig_size
    if target_width <= 0:
        target_width = round_half_away(orig_width * (target_height / orig_height))
    if target_height <= 0:
        target_height = round_half_away(orig_height * (target_width / orig_width))
    return target_width, target_height


def scale_image(
    image: Image.Image,
    target_width: int,
    target_height: int,
    scaler: Scaler = Scaler.CATMULL_ROM,
) -> Image.Image:
    """Resize an image, keeping aspect when one target axis is unset.

    Returns the image unchanged when both targets are <= 0.
    """
    if target_width <= 0 and target_height <= 0:
        return image

    new_size = prepare_size(target_width, target_height, image.size)
    if new_size[0] <= 0 or new_size[1] <= 0:
        raise InputError(
            f"resize of {image.size[0]}x{image.size[1]} image "
            f"gives empty size {new_size[0]}x{new_size[1]}"
        )

    if scaler is Scaler.APPROX_BILINEAR:
        # Cheap integer pre-reduce, then bilinear for the remainder
        return image.resize(new_size, RESAMPLING[scaler], reducing_gap=2.0)
    return image.resize(new_size, RESAMPLING[scaler])


def sub_image(
    image: Image.Image,
    box: "tuple[int, int, int, int]",
) -> Image.Image:
    """Crop a rectangle, clipped to the image bounds.

    Args:
        image: Source image
        box: (left, upper, right, lower) rectangle

    Raises:
        InputError: If the clipped rectangle is empty
    """
    width, height = image.size
    left, upper, right, lower = box
    left, upper = max(left, 0), max(upper, 0)
    right, lower = min(right, width), min(lower, height)
    if right <= left or lower <= upper:
        raise InputError(f"region {box} does not overlap the {width}x{height} image")
    return image.crop((left, upper, right, lower))


def hsp_intensity(color: "tuple[int, int, int]") -> float:
    """Perceived brightness of an 8-bit RGB color (HSP color model).

    Returns:
        Intensity from 0 (black) to ~0.67 (white)
    """
    r, g, b = color[:3]
    rs = 0.299 * (r / 255.0)
    gs = 0.587 * (g / 255.0)
    bs = 0.114 * (b / 255.0)
    return math.sqrt(rs * rs + gs * gs + bs * bs)
