"""pixelmap - convert images into fixed-palette pixel arrays in source code."""

from .image_processing import ImageProcessor
from .models import Generator, Palette, PixelmapError, Renderer, Scaler

__all__ = [
    "Generator",
    "ImageProcessor",
    "Palette",
    "PixelmapError",
    "Renderer",
    "Scaler",
]
