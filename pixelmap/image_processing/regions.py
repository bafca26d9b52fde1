"""Region maps: build several bitmaps from rectangles of one source image.

AIDEV-NOTE: A region map is a JSON document:

    {"gen": {...}, "areas": [{"x": 0, "y": 0, "w": 8, "h": 8, "gen": {...}}]}

Settings are layered: base Generator <- document "gen" <- area "gen". Each
layer is a fresh frozen copy, so an area can never leak settings into its
siblings. Unknown keys at any level reject the whole document.
"""

import json
import sys
from pathlib import Path
from typing import Iterator

from PIL import Image

from pixelmap.models import (
    Area,
    Generator,
    ImageMap,
    MapDecodeError,
    PixelmapError,
)

from .processor import ImageProcessor
from .utils import sub_image

MAP_KEYS = {"areas", "gen"}
AREA_KEYS = {"x", "y", "w", "h", "gen"}
AREA_RECT_KEYS = ("x", "y", "w", "h")


def _parse_area(raw, parent: Generator) -> Area:
    if not isinstance(raw, dict):
        raise MapDecodeError("area must be a JSON object")

    unknown = set(raw) - AREA_KEYS
    if unknown:
        raise MapDecodeError(f"unknown field(s) {sorted(unknown)}")

    rect = {}
    for key in AREA_RECT_KEYS:
        value = raw.get(key, 0)
        if not isinstance(value, int) or isinstance(value, bool):
            raise MapDecodeError(f"field {key!r} must be an integer")
        rect[key] = value
    if rect["w"] < 0 or rect["h"] < 0:
        raise MapDecodeError("area width and height must not be negative")

    return Area(gen=parent.with_overrides(raw.get("gen")), **rect)


def parse_image_map(text: str, base: Generator) -> ImageMap:
    """Decode a region-map document.

    Args:
        text: JSON text
        base: Settings every area starts from (usually from the CLI)

    Returns:
        ImageMap with one fully resolved Generator per area

    Raises:
        MapDecodeError: If the JSON is invalid or has unknown fields. Area
            problems are reported with the area's index.
    """
    try:
        doc = json.loads(text)
    except json.JSONDecodeError as e:
        raise MapDecodeError(f"invalid image map: {e}") from e

    if not isinstance(doc, dict):
        raise MapDecodeError("image map must be a JSON object")
    unknown = set(doc) - MAP_KEYS
    if unknown:
        raise MapDecodeError(f"unknown image map field(s) {sorted(unknown)}")

    try:
        gen = base.with_overrides(doc.get("gen"))
    except PixelmapError as e:
        raise MapDecodeError(f"invalid image map gen: {e}") from e

    raw_areas = doc.get("areas")
    if raw_areas is None:
        raw_areas = []
    if not isinstance(raw_areas, list):
        raise MapDecodeError("image map 'areas' must be an array")

    areas = []
    for idx, raw in enumerate(raw_areas):
        try:
            areas.append(_parse_area(raw, gen))
        except PixelmapError as e:
            raise MapDecodeError(f"invalid area {idx}: {e}") from e

    return ImageMap(areas=areas, gen=gen)


def load_image_map(path: str | Path, base: Generator) -> ImageMap:
    """Read and decode a region-map file."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise MapDecodeError(f"could not read image map {path}: {e}") from e
    return parse_image_map(text, base)


def region_debug_path(debug_path: str | Path | None, idx: int) -> Path | None:
    """Per-area variant of a debug dump path: out.png -> out-1.png."""
    if debug_path is None:
        return None
    path = Path(debug_path)
    return path.with_name(f"{path.stem}-{idx}{path.suffix}")


def build_regions(
    image: Image.Image,
    image_map: ImageMap,
    verbose: bool = False,
    debug_path: str | Path | None = None,
) -> Iterator[str]:
    """Build every area of a region map, one at a time.

    Yields:
        Rendered source text per area, in document order

    AIDEV-NOTE: Callers print each result before the next area is processed,
    so output for earlier areas survives a failure in a later one.
    """
    for idx, area in enumerate(image_map.areas):
        if verbose:
            print(f"Building area {idx} at {area.box}...", file=sys.stderr)
        processor = ImageProcessor(area.gen, verbose=verbose)
        yield processor.build(
            sub_image(image, area.box), region_debug_path(debug_path, idx)
        )
