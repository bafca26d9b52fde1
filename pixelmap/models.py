"""Data models, enums and errors for the pixelmap generator."""

import dataclasses
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import numpy as np
from PIL import Image

# AIDEV-NOTE: Quantizer palette indexes are bytes, so lookup tables are 256 wide
MAX_PALETTE_SIZE = 256
DEFAULT_PALETTE = "_cowgCONW"
DEFAULT_VAR_NAME = "bitmap"

# Configuration file path
CONFIG_FILE = Path.home() / ".pixelmap_config.json"


class PixelmapError(Exception):
    """Base class for errors that abort a build."""


class InputError(PixelmapError):
    """Unreadable or malformed input (files, sizes, palettes, regions)."""


class MapDecodeError(InputError):
    """Region-map JSON was rejected."""


class ConfigError(PixelmapError):
    """Unknown or mistyped generator setting."""


class QuantizationError(PixelmapError):
    """The quantizer failed or returned an unusable image."""


class Scaler(Enum):
    """Resampling filters used when resizing."""

    NEAREST = "nn"
    APPROX_BILINEAR = "approxbilinear"
    BILINEAR = "bilinear"
    CATMULL_ROM = "catmullrom"
    LANCZOS = "lanczos"

    @classmethod
    def parse(cls, value: str) -> "Scaler":
        if value == "":
            return cls.CATMULL_ROM
        try:
            return cls(value)
        except ValueError:
            raise ConfigError(f"unknown scaler: {value!r}") from None


class Renderer(Enum):
    """Output source dialects.

    AIDEV-NOTE: rendering.RENDERERS must have an entry for every member.
    """

    CPP17 = "cpp17"  # constexpr lambda with locally scoped constants
    CPP = "cpp"  # #define / #undef constants around a static array
    JS = "js"  # ES module export
    CJS = "cjs"  # CommonJS export

    @classmethod
    def parse(cls, value: str) -> "Renderer":
        try:
            return cls(value)
        except ValueError:
            raise ConfigError(f"unknown renderer: {value!r}") from None


class QuantizeMethod(Enum):
    """Color reduction backends."""

    MEDIAN_CUT = "median_cut"
    MAX_COVERAGE = "max_coverage"
    OCTREE = "octree"
    KMEANS = "kmeans"

    @classmethod
    def parse(cls, value: str) -> "QuantizeMethod":
        try:
            return cls(value)
        except ValueError:
            raise ConfigError(f"unknown quantizer: {value!r}") from None


_PAIR_SPLIT = re.compile(r",\s*")


@dataclass(frozen=True)
class Palette:
    """Output characters and their values, ordered least to most intense."""

    chars: "tuple[str, ...]"
    values: "tuple[int, ...]"

    def __post_init__(self):
        if len(self.chars) != len(self.values):
            raise InputError("palette chars and values differ in length")
        if not self.chars:
            raise InputError("palette is empty")
        if len(self.chars) > MAX_PALETTE_SIZE:
            raise InputError("too many characters in palette")
        seen = set()
        for rank, char in enumerate(self.chars):
            if len(char) != 1 or not char.isidentifier():
                raise InputError(
                    f"palette character {char!r} at intensity {rank} "
                    "is not a valid identifier character"
                )
            if char in seen:
                raise InputError(f"duplicate palette character {char!r}")
            seen.add(char)
        for rank, value in enumerate(self.values):
            if not 0 <= value < MAX_PALETTE_SIZE:
                raise InputError(
                    f"palette value {value} at intensity {rank} is out of range"
                )

    @property
    def size(self) -> int:
        return len(self.chars)

    @classmethod
    def parse(cls, text: str) -> "Palette":
        """Parse a palette specification.

        Two forms are accepted:

        - a bare string of characters, where each character's value is its
          position (``"_cowgCONW"``)
        - comma separated ``char=value`` pairs (``"o=0,x=1,X=2,W=3"``)

        Raises:
            InputError: If the text is not a valid palette
        """
        if "=" not in text:
            chars = tuple(text)
            return cls(chars=chars, values=tuple(range(len(chars))))

        chars = []
        values = []
        for intensity, bit in enumerate(_PAIR_SPLIT.split(text)):
            if len(bit) < 2 or bit[1] != "=":
                raise InputError(
                    f"expected '=' after character in palette at intensity {intensity}"
                )
            raw_value = bit[2:]
            # str.isdigit also accepts superscripts and non-ASCII digits
            if not (raw_value.isascii() and raw_value.isdigit()):
                raise InputError(
                    f"invalid palette index at intensity {intensity}: {raw_value!r}"
                )
            chars.append(bit[0])
            values.append(int(raw_value))
        return cls(chars=tuple(chars), values=tuple(values))

    def __str__(self) -> str:
        return ",".join(f"{c}={v}" for c, v in zip(self.chars, self.values))


# JSON field name -> Generator attribute name
GENERATOR_FIELDS = {
    "palette": "palette",
    "invert": "invert",
    "targetWidth": "target_width",
    "targetHeight": "target_height",
    "scaler": "scaler",
    "renderer": "renderer",
    "varName": "var_name",
    "paletteOffset": "palette_offset",
    "rowWiseJS": "row_wise_js",
    "quantizer": "quantizer",
}


def _expect(json_name: str, value, kind: type):
    # bool is an int subclass, so it has to be rejected explicitly
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise ConfigError(
            f"field {json_name!r} must be {kind.__name__}, got {type(value).__name__}"
        )
    return value


@dataclass(frozen=True)
class Generator:
    """Settings consumed by one build.

    AIDEV-NOTE: Frozen so a region can never mutate its parent's settings.
    Use with_overrides() to derive a copy.
    """

    palette: Palette = field(default_factory=lambda: Palette.parse(DEFAULT_PALETTE))
    invert: bool = False

    # <= 0 on one axis keeps the aspect ratio; both <= 0 disables resizing
    target_width: int = 0
    target_height: int = 0
    scaler: Scaler = Scaler.CATMULL_ROM

    renderer: Renderer = Renderer.CPP17
    var_name: str = DEFAULT_VAR_NAME
    palette_offset: int = 0
    row_wise_js: bool = False

    quantizer: QuantizeMethod = QuantizeMethod.MEDIAN_CUT

    def with_overrides(self, overrides: "dict | None") -> "Generator":
        """Return a copy with the fields present in a JSON object replaced.

        Args:
            overrides: Decoded JSON object using the camelCase field names.
                Fields set to null are treated as absent.

        Raises:
            MapDecodeError: If the object is not a dict or has unknown fields
            ConfigError: If a field value has the wrong type or is unknown
        """
        if overrides is None:
            return self
        if not isinstance(overrides, dict):
            raise MapDecodeError("generator settings must be a JSON object")

        changes = {}
        for json_name, value in overrides.items():
            if json_name not in GENERATOR_FIELDS:
                raise MapDecodeError(f"unknown generator field {json_name!r}")
            # JSON null leaves the inherited value in place
            if value is None:
                continue
            changes[GENERATOR_FIELDS[json_name]] = self._convert(json_name, value)
        return dataclasses.replace(self, **changes)

    @staticmethod
    def _convert(json_name: str, value):
        if json_name == "palette":
            return Palette.parse(_expect(json_name, value, str))
        if json_name in ("invert", "rowWiseJS"):
            return _expect(json_name, value, bool)
        if json_name in ("targetWidth", "targetHeight", "paletteOffset"):
            return _expect(json_name, value, int)
        if json_name == "scaler":
            return Scaler.parse(_expect(json_name, value, str))
        if json_name == "renderer":
            return Renderer.parse(_expect(json_name, value, str))
        if json_name == "quantizer":
            return QuantizeMethod.parse(_expect(json_name, value, str))
        return _expect(json_name, value, str)

    def to_json(self) -> dict:
        """Encode as a JSON object accepted by with_overrides()."""
        return {
            "palette": str(self.palette),
            "invert": self.invert,
            "targetWidth": self.target_width,
            "targetHeight": self.target_height,
            "scaler": self.scaler.value,
            "renderer": self.renderer.value,
            "varName": self.var_name,
            "paletteOffset": self.palette_offset,
            "rowWiseJS": self.row_wise_js,
            "quantizer": self.quantizer.value,
        }


# --- Pipeline Models ---


@dataclass
class IndexedImage:
    """Image whose pixels are indexes into an RGB palette.

    AIDEV-NOTE: pixels is a (height, width) uint8 array, so every index is
    already bounded to a byte.
    """

    pixels: np.ndarray
    palette: "list[tuple[int, int, int]]"

    def __post_init__(self):
        pixels = np.asarray(self.pixels)
        if pixels.ndim != 2:
            raise QuantizationError("indexed pixels must be a 2D array")
        if pixels.size and int(pixels.max()) >= len(self.palette):
            raise QuantizationError(
                f"pixel index {int(pixels.max())} exceeds palette "
                f"size {len(self.palette)}"
            )
        self.pixels = np.ascontiguousarray(pixels, dtype=np.uint8)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def used_indexes(self) -> "list[int]":
        """Palette indexes present in the image, ascending."""
        return [int(i) for i in np.unique(self.pixels)]

    def to_image(self) -> Image.Image:
        """Convert to a Pillow palette image."""
        image = Image.frombytes("P", (self.width, self.height), self.pixels.tobytes())
        flat = [channel for color in self.palette for channel in color]
        image.putpalette(flat)
        return image


@dataclass
class SymbolTable:
    """Lookup from quantizer palette index to output symbol."""

    # Quantizer palette indexes ordered by intensity rank
    ranked_indexes: "list[int]"

    # 256 entries; "" for indexes the image does not use
    index_to_char: "tuple[str, ...]"

    # Emitted value for every configured palette rank, offset applied
    rank_values: "tuple[int, ...]"

    # Characters appearing at least once in the image
    used_chars: "frozenset[str]"

    def rows(self, indexed: IndexedImage) -> "list[list[str]]":
        """Map every pixel of an indexed image to its symbol, row by row."""
        lookup = self.index_to_char
        return [[lookup[px] for px in row] for row in indexed.pixels.tolist()]


@dataclass
class Area:
    """A rectangle of the source image with its own generator settings."""

    x: int
    y: int
    w: int
    h: int
    gen: Generator

    @property
    def box(self) -> "tuple[int, int, int, int]":
        """Pillow crop box (left, upper, right, lower)."""
        return (self.x, self.y, self.x + self.w, self.y + self.h)


@dataclass
class ImageMap:
    """Decoded region-map document."""

    areas: "list[Area]"
    gen: Generator
