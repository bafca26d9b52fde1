"""Renderers turning an indexed image into C++ or JavaScript source.

AIDEV-NOTE: Each renderer writes one symbol per pixel followed by a comma,
one image row per line. Symbols are the palette characters, declared as
constants holding the palette values. cpp17 and the JS dialects declare only
the characters that appear in the image; cpp #defines every configured
character and #undefs them again afterwards.
"""

from typing import Callable

from pixelmap.models import (
    Generator,
    IndexedImage,
    Renderer,
    SymbolTable,
)

RenderFunc = Callable[[IndexedImage, SymbolTable, Generator], str]


def used_declarations(table: SymbolTable, generator: Generator) -> str:
    """Comma separated ``c=v`` list for the characters the image uses."""
    chars = generator.palette.chars
    return ", ".join(
        f"{chars[rank]}={table.rank_values[rank]}"
        for rank in range(len(table.ranked_indexes))
        if chars[rank] in table.used_chars
    )


def _pixel_rows(
    indexed: IndexedImage,
    table: SymbolTable,
    prefix: str,
    suffix: str = "",
) -> "list[str]":
    return [
        prefix + "".join(f"{char}," for char in row) + suffix
        for row in table.rows(indexed)
    ]


def render_cpp17(indexed: IndexedImage, table: SymbolTable, generator: Generator) -> str:
    """C++17 constexpr lambda returning a std::array.

    Example:
        static const auto bitmap = []() constexpr -> const std::array<uint8_t, 2*1> {
            const uint8_t _=0, W=8;
            return {{
                _,W,
            }};
        }();
    """
    size = f"{indexed.width}*{indexed.height}"
    lines = [
        f"static const auto {generator.var_name} = []() constexpr "
        f"-> const std::array<uint8_t, {size}> {{",
        f"    const uint8_t {used_declarations(table, generator)};",
        "    return {{",
    ]
    lines.extend(_pixel_rows(indexed, table, prefix="        "))
    lines.append("    }};")
    lines.append("}();")
    return "\n".join(lines) + "\n\n"


def render_cpp(indexed: IndexedImage, table: SymbolTable, generator: Generator) -> str:
    """Preprocessor constants around a static std::array."""
    chars = generator.palette.chars
    lines = [
        f"#define {char} {table.rank_values[rank]}"
        for rank, char in enumerate(chars)
    ]
    lines.append("")
    lines.append(
        f"static const std::array<uint8_t, {indexed.width}*{indexed.height}> "
        f"{generator.var_name} = {{{{"
    )
    lines.extend(_pixel_rows(indexed, table, prefix="    "))
    lines.append("}};")
    lines.append("")
    lines.extend(f"#undef {char}" for char in chars)
    return "\n".join(lines) + "\n\n"


def _render_js(
    indexed: IndexedImage,
    table: SymbolTable,
    generator: Generator,
    binding: str,
) -> str:
    lines = [
        # Formatters would reflow the pixel grid
        "// prettier-ignore deno-fmt-ignore",
        f"{binding} = (() => {{",
        f"  const {used_declarations(table, generator)};",
    ]
    if generator.row_wise_js:
        lines.append("  return Object.freeze([")
        lines.extend(
            _pixel_rows(indexed, table, prefix="      new Uint8Array([", suffix="]),")
        )
    else:
        lines.append("  return new Uint8Array([")
        lines.extend(_pixel_rows(indexed, table, prefix="    "))
    lines.append("  ]);")
    lines.append("})();")
    return "\n".join(lines) + "\n"


def render_js(indexed: IndexedImage, table: SymbolTable, generator: Generator) -> str:
    """ES module export."""
    return _render_js(indexed, table, generator, f"export const {generator.var_name}")


def render_cjs(indexed: IndexedImage, table: SymbolTable, generator: Generator) -> str:
    """CommonJS export."""
    return _render_js(indexed, table, generator, f"exports.{generator.var_name}")


RENDERERS: "dict[Renderer, RenderFunc]" = {
    Renderer.CPP17: render_cpp17,
    Renderer.CPP: render_cpp,
    Renderer.JS: render_js,
    Renderer.CJS: render_cjs,
}

_missing = set(Renderer) - set(RENDERERS)
if _missing:
    raise ImportError(f"no renderer registered for {sorted(r.value for r in _missing)}")


def render(indexed: IndexedImage, table: SymbolTable, generator: Generator) -> str:
    """Serialize an indexed image in the generator's dialect."""
    return RENDERERS[generator.renderer](indexed, table, generator)
