"""Image processing pipeline for image-to-source conversion.

AIDEV-NOTE: This package handles the complete pipeline from a raster image
to generated source text. Organized into modular components:
- processor: Main ImageProcessor orchestrator
- quantization: Color palette reduction
- symbols: Intensity ranking and index -> character mapping
- rendering: Output dialects (C++, JavaScript)
- regions: Region maps over one source image
- utils: Decoding, scaling and color utilities
"""

from .processor import ImageProcessor
from .regions import build_regions, load_image_map, parse_image_map
from .rendering import render

__all__ = [
    "ImageProcessor",
    "build_regions",
    "load_image_map",
    "parse_image_map",
    "render",
]
