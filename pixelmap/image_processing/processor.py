"""Main image processor orchestrating the complete pipeline.

AIDEV-NOTE: This module handles the complete pipeline from a decoded image
to generated source text: scale, quantize, rank by intensity, map to
symbols and render. Each build reads only its Generator, so regions can be
built one after another without sharing state.
"""

import sys
from pathlib import Path

from PIL import Image

from pixelmap.models import Generator, IndexedImage, PixelmapError, SymbolTable

from .quantization import quantize_colors
from .rendering import render
from .symbols import build_symbol_table, rank_palette_indexes
from .utils import load_image, scale_image


class ImageProcessor:
    """Builds source text for images using one Generator's settings."""

    def __init__(self, generator: Generator | None = None, verbose: bool = False):
        self.generator = generator or Generator()
        self.verbose = verbose

    def _status(self, message: str):
        # stdout carries the generated source
        if self.verbose:
            print(message, file=sys.stderr)

    def load_image(self, file_path: str | Path) -> Image.Image:
        """Load an image file as RGBA."""
        return load_image(file_path)

    def scale(self, image: Image.Image) -> Image.Image:
        """Resize to the generator's target size, if any."""
        gen = self.generator
        return scale_image(image, gen.target_width, gen.target_height, gen.scaler)

    def quantize(self, image: Image.Image) -> IndexedImage:
        """Reduce to at most one color per palette character."""
        gen = self.generator
        return quantize_colors(image, gen.palette.size, gen.quantizer)

    def map_symbols(self, indexed: IndexedImage) -> SymbolTable:
        """Rank the image's colors by intensity and bind them to characters."""
        gen = self.generator
        ranked = rank_palette_indexes(indexed, invert=gen.invert)
        return build_symbol_table(ranked, gen.palette, indexed, gen.palette_offset)

    def build(self, image: Image.Image, debug_path: str | Path | None = None) -> str:
        """Execute the pipeline on an already decoded image.

        Args:
            image: Source image (any mode)
            debug_path: If set, the quantized image is saved there as PNG

        Returns:
            Rendered source text
        """
        gen = self.generator

        scaled = self.scale(image)
        if scaled is not image:
            self._status(
                f"Scaled {image.size[0]}x{image.size[1]} to "
                f"{scaled.size[0]}x{scaled.size[1]} ({gen.scaler.value})."
            )

        indexed = self.quantize(scaled)
        self._status(
            f"Quantized to {len(indexed.used_indexes())} of "
            f"{gen.palette.size} colors ({gen.quantizer.value})."
        )

        if debug_path is not None:
            try:
                indexed.to_image().save(debug_path, format="PNG")
            except OSError as e:
                raise PixelmapError(f"could not save {debug_path}: {e}") from e
            self._status(f"Saved quantized image to {debug_path}.")

        table = self.map_symbols(indexed)
        self._status(f"Symbols used: {''.join(sorted(table.used_chars))}")

        return render(indexed, table, gen)

    def process(self, file_path: str | Path, debug_path: str | Path | None = None) -> str:
        """Load an image file and build it."""
        self._status(f"Loading {file_path}...")
        image = self.load_image(file_path)
        self._status(f"Loaded image with size: {image.size[0]}x{image.size[1]} pixels.")
        return self.build(image, debug_path)
