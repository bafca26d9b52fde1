"""pixelmap - command line entry point."""

import argparse
import re
import sys
from pathlib import Path

from pixelmap.config_manager import ConfigManager
from pixelmap.image_processing import ImageProcessor, build_regions, load_image_map
from pixelmap.models import (
    CONFIG_FILE,
    DEFAULT_PALETTE,
    Generator,
    InputError,
    PixelmapError,
    QuantizeMethod,
    Renderer,
    Scaler,
)

_SIZE_PATTERN = re.compile(r"^\s*(-?\d+)x(-?\d+)\s*$")


def _names(enum) -> str:
    return ", ".join(member.value for member in enum)


def parse_size(text: str) -> "tuple[int, int]":
    """Parse a '<w>x<h>' size; <= 0 on either axis keeps the aspect ratio."""
    match = _SIZE_PATTERN.match(text)
    if match is None:
        raise InputError(f"invalid size {text!r}, expected '<w>x<h>'")
    return int(match.group(1)), int(match.group(2))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pixelmap",
        description=(
            "Convert an image into a fixed-palette pixel array emitted as C++ or "
            "JavaScript source.\n"
            "Colors are reduced to one per palette character and bound to the "
            "characters in order of perceived brightness."
        ),
        formatter_class=argparse.RawTextHelpFormatter,
    )

    parser.add_argument("input", help="PNG, BMP, TIFF, GIF, WEBP or JPEG file")
    parser.add_argument(
        "--palette",
        "--chars",
        dest="palette",
        help=(
            "Palette characters ordered from least to most intense, either bare "
            f"(default {DEFAULT_PALETTE!r}) or as 'c=value' pairs ('o=0,x=1,X=2'). "
            "Must be valid identifier characters."
        ),
    )
    parser.add_argument(
        "--size",
        help="Size in '<w>x<h>' format. <=0 for either dimension keeps the aspect ratio.",
    )
    parser.add_argument("--scaler", help=f"Scaler when resizing: {_names(Scaler)}")
    parser.add_argument("--renderer", help=f"Output dialect: {_names(Renderer)}")
    parser.add_argument("--var", dest="var_name", help="Output variable name")
    parser.add_argument(
        "--row-wise-js",
        action="store_const",
        const=True,
        help="Emit JS output as an array of row arrays",
    )
    parser.add_argument(
        "--invert",
        action="store_const",
        const=True,
        help="Invert colours (most intense character first)",
    )
    parser.add_argument("--offset", type=int, help="Added to every palette value")
    parser.add_argument(
        "--quantizer", help=f"Color reduction method: {_names(QuantizeMethod)}"
    )
    parser.add_argument("--map", help="Image map file (JSON, defines regions)")
    parser.add_argument(
        "--config",
        default=str(CONFIG_FILE),
        help="Defaults file (default: %(default)s)",
    )
    parser.add_argument(
        "--save-defaults",
        action="store_true",
        help="Store the effective settings in the defaults file",
    )
    parser.add_argument(
        "--dump-quantized",
        metavar="PATH",
        help="Save the quantized image as PNG (regions get '-<index>' appended)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Print progress to stderr",
    )
    return parser


def collect_overrides(args: argparse.Namespace) -> dict:
    """Settings given on the command line, keyed by their JSON field names."""
    overrides = {}
    if args.size is not None:
        overrides["targetWidth"], overrides["targetHeight"] = parse_size(args.size)

    flags = {
        "palette": args.palette,
        "scaler": args.scaler,
        "renderer": args.renderer,
        "varName": args.var_name,
        "rowWiseJS": args.row_wise_js,
        "invert": args.invert,
        "paletteOffset": args.offset,
        "quantizer": args.quantizer,
    }
    overrides.update({name: value for name, value in flags.items() if value is not None})
    return overrides


def run(args: argparse.Namespace) -> None:
    config_manager = ConfigManager(Path(args.config))
    gen: Generator = config_manager.load().with_overrides(collect_overrides(args))

    if args.save_defaults:
        ok, error = config_manager.save(gen)
        if not ok:
            raise PixelmapError(f"could not save defaults: {error}")
        print(f"✓ Saved defaults to {config_manager.config_path}", file=sys.stderr)

    processor = ImageProcessor(gen, verbose=args.verbose)

    if args.map:
        image_map = load_image_map(args.map, gen)
        image = processor.load_image(args.input)
        regions = build_regions(
            image, image_map, verbose=args.verbose, debug_path=args.dump_quantized
        )
        for idx, out in enumerate(regions):
            if idx > 0:
                print()
            print(out, flush=True)
    else:
        print(processor.process(args.input, debug_path=args.dump_quantized))


def main(argv: "list[str] | None" = None) -> int:
    """Run the CLI; returns the process exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        run(args)
        return 0
    except PixelmapError as exc:
        print(f"pixelmap: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
