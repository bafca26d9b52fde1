"""Color quantization methods for reducing an image to indexed colors.

AIDEV-NOTE: This module handles color quantization using Pillow's built-in
methods and K-means clustering. Every method returns an IndexedImage whose
pixel values index its palette, so callers never see RGB output.
"""

import numpy as np
from PIL import Image
from sklearn.cluster import KMeans

from pixelmap.models import (
    MAX_PALETTE_SIZE,
    IndexedImage,
    QuantizationError,
    QuantizeMethod,
)

PILLOW_METHODS = {
    QuantizeMethod.MEDIAN_CUT: Image.Quantize.MEDIANCUT,
    QuantizeMethod.MAX_COVERAGE: Image.Quantize.MAXCOVERAGE,
    QuantizeMethod.OCTREE: Image.Quantize.FASTOCTREE,
}


def flatten_alpha(image: Image.Image) -> Image.Image:
    """Composite an image over opaque black and drop the alpha channel."""
    rgba = image.convert("RGBA")
    background = Image.new("RGBA", rgba.size, (0, 0, 0, 255))
    return Image.alpha_composite(background, rgba).convert("RGB")


def quantize_colors(
    image: Image.Image,
    num_colors: int,
    method: QuantizeMethod = QuantizeMethod.MEDIAN_CUT,
) -> IndexedImage:
    """Reduce image to at most num_colors palette entries.

    Args:
        image: Input image (RGBA or RGB)
        num_colors: Maximum number of colors (1-256)
        method: Quantization backend

    Returns:
        IndexedImage with one palette index per pixel

    Raises:
        QuantizationError: If the backend fails
    """
    if not 1 <= num_colors <= MAX_PALETTE_SIZE:
        raise QuantizationError(f"cannot quantize to {num_colors} colors")

    rgb_image = flatten_alpha(image)

    try:
        if method is QuantizeMethod.KMEANS:
            return quantize_kmeans(rgb_image, num_colors)
        return quantize_pillow(rgb_image, num_colors, PILLOW_METHODS[method])
    except QuantizationError:
        raise
    except Exception as e:
        raise QuantizationError(f"{method.value} quantization failed: {e}") from e


def quantize_kmeans(image: Image.Image, num_colors: int) -> IndexedImage:
    """K-means color quantization implementation.

    AIDEV-NOTE: More accurate than PIL's built-in quantization for
    photographs. Uses scikit-learn KMeans clustering with a fixed seed so
    repeated runs give identical output.
    """
    img_array = np.array(image)
    height, width = img_array.shape[:2]
    pixels = img_array.reshape(-1, 3).astype(np.float64)

    # KMeans refuses more clusters than distinct samples
    distinct = len(np.unique(pixels, axis=0))
    n_clusters = max(1, min(num_colors, distinct))

    kmeans = KMeans(n_clusters=n_clusters, random_state=42, n_init=10)
    labels = kmeans.fit_predict(pixels)

    centers = np.clip(np.rint(kmeans.cluster_centers_), 0, 255).astype(np.uint8)
    palette = [tuple(int(c) for c in color) for color in centers]

    return IndexedImage(
        pixels=labels.reshape(height, width).astype(np.uint8),
        palette=palette,
    )


def quantize_pillow(
    image: Image.Image,
    num_colors: int,
    method: Image.Quantize,
) -> IndexedImage:
    """Pillow-based color quantization."""
    # Quantize returns a palette image
    quantized = image.quantize(colors=num_colors, method=method)

    palette_data = quantized.getpalette() or []
    palette = [
        (palette_data[i], palette_data[i + 1], palette_data[i + 2])
        for i in range(0, len(palette_data) - 2, 3)
    ]
    return IndexedImage(pixels=np.array(quantized), palette=palette)
