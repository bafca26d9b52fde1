"""Intensity ranking and palette-index to symbol mapping.

AIDEV-NOTE: Both the quantized colors and the configured palette are ordered
least to most intense, so rank i of one maps straight onto rank i of the
other. Unused quantizer slots are dropped first, which keeps the number of
output symbols down to what is visible in the image.
"""

from pixelmap.models import (
    MAX_PALETTE_SIZE,
    IndexedImage,
    Palette,
    QuantizationError,
    SymbolTable,
)

from .utils import hsp_intensity


def rank_palette_indexes(indexed: IndexedImage, invert: bool = False) -> "list[int]":
    """Order the palette indexes used by an image by perceived brightness.

    Args:
        indexed: Quantized image
        invert: Most intense first if True

    Returns:
        Palette indexes, one per intensity rank

    AIDEV-NOTE: Equal intensities keep ascending palette-index order in both
    directions. sorted() is stable and reverse=True preserves that.
    """
    used = indexed.used_indexes()
    intensities = {index: hsp_intensity(indexed.palette[index]) for index in used}
    return sorted(used, key=intensities.__getitem__, reverse=invert)


def build_symbol_table(
    ranked_indexes: "list[int]",
    palette: Palette,
    indexed: IndexedImage,
    palette_offset: int = 0,
) -> SymbolTable:
    """Bind each intensity rank to the configured character at that rank.

    Args:
        ranked_indexes: Output of rank_palette_indexes()
        palette: Configured characters and values
        indexed: The image the ranks were computed from
        palette_offset: Added to every value, wrapping at 256

    Returns:
        SymbolTable with a direct index -> char lookup and the value to emit
        for each palette rank
    """
    if len(ranked_indexes) > palette.size:
        raise QuantizationError(
            f"image uses {len(ranked_indexes)} colors but the palette "
            f"only has {palette.size} characters"
        )

    index_to_char = [""] * MAX_PALETTE_SIZE
    for rank, index in enumerate(ranked_indexes):
        index_to_char[index] = palette.chars[rank]

    rank_values = tuple(
        (value + palette_offset) % MAX_PALETTE_SIZE for value in palette.values
    )

    used_chars = frozenset(
        index_to_char[index] for index in indexed.used_indexes() if index_to_char[index]
    )

    return SymbolTable(
        ranked_indexes=list(ranked_indexes),
        index_to_char=tuple(index_to_char),
        rank_values=rank_values,
        used_chars=used_chars,
    )
