"""
Command-Line Interface for img2mcstructure

Usage:
    img2mcstructure input.png --palette blocks.json -o output.mcstructure
    img2mcstructure anim.gif --palette blocks.json --axis y --clamp
    img2mcstructure input.png --palette blocks.json --format mcstructure mcfunction

"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import List, Optional

from .constants import DEFAULT_STRUCTURE_NAME, MASK_ALPHA, MAX_DEPTH
from .generator import BatchProcessor, StructureGenerator
from .structure import read_nbt


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="img2mcstructure",
        description="Convert images and animated GIFs to Minecraft Bedrock structures",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  img2mcstructure sprite.png --palette blocks.json -o sprite.mcstructure
      Convert sprite.png using the blocks in blocks.json

  img2mcstructure anim.gif --palette blocks.json --axis z --clamp
      Stack GIF frames along Z, shrinking oversized frames

  img2mcstructure window.png --palette blocks.json --filter glass
      Only use blocks whose id contains "glass"

  img2mcstructure --batch sprites/ --output-dir structures/ --palette blocks.json
      Batch convert all PNGs in the sprites directory

Axes:
  x  - frames stacked along X (default, no rotation)
  y  - frames stacked along Y
  z  - frames stacked along Z
        """
    )

    parser.add_argument(
        "input",
        nargs="?",
        help="Input image file, http(s) URL, or base64 data URI"
    )

    parser.add_argument(
        "-o", "--output",
        help="Output file path (suffix is set from --format)"
    )

    parser.add_argument(
        "-p", "--palette",
        help="JSON block database mapping block ids to hex colors"
    )

    parser.add_argument(
        "--filter",
        dest="block_filter",
        help="Only use blocks whose id contains this text"
    )

    parser.add_argument(
        "-a", "--axis",
        choices=["x", "y", "z"],
        default="x",
        help="Axis to stack frames along (default: x)"
    )

    parser.add_argument(
        "-n", "--name",
        default=DEFAULT_STRUCTURE_NAME,
        help=f"Structure root name (default: {DEFAULT_STRUCTURE_NAME})"
    )

    parser.add_argument(
        "--clamp",
        action="store_true",
        help="Resize frames larger than the maximum width/height"
    )

    parser.add_argument(
        "--max-depth",
        type=int,
        default=MAX_DEPTH,
        help=f"Maximum number of frames stacked (default: {MAX_DEPTH})"
    )

    parser.add_argument(
        "--mask-alpha",
        type=int,
        default=MASK_ALPHA,
        help=f"Pixels with alpha below this are left empty (default: {MASK_ALPHA})"
    )

    parser.add_argument(
        "-f", "--format",
        nargs="+",
        choices=["mcstructure", "mcfunction"],
        default=["mcstructure"],
        help="Output format(s) (default: mcstructure)"
    )

    parser.add_argument(
        "--offset",
        nargs=3,
        type=int,
        default=[0, 0, 0],
        metavar=("X", "Y", "Z"),
        help="Coordinate offset for mcfunction output (default: 0 0 0)"
    )

    parser.add_argument(
        "--batch",
        help="Batch process directory of images"
    )

    parser.add_argument(
        "--output-dir",
        help="Output directory for batch processing"
    )

    parser.add_argument(
        "--pattern",
        default="*.png",
        help="File pattern for batch processing (default: *.png)"
    )

    parser.add_argument(
        "--inspect",
        action="store_true",
        help="Print the header of the written structure"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output with debug logging"
    )

    parser.add_argument(
        "--stats",
        action="store_true",
        help="Print conversion statistics"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 1.0.0"
    )

    return parser


def _block_filter(args):
    if not args.block_filter:
        return None
    text = args.block_filter
    return lambda block_id: text in block_id


def _default_output(source: str) -> Path:
    if source.startswith(("http://", "https://", "data:")):
        return Path(DEFAULT_STRUCTURE_NAME)
    return Path(source).with_suffix("")


def print_inspection(path: Path):
    """Print the top-level fields of a written structure."""
    name, root = read_nbt(path.read_bytes())
    structure = root["structure"]
    primary, water = structure["block_indices"]
    palette = structure["palette"]["default"]["block_palette"]

    print(f"\nStructure: {path}")
    print(f"  Root name: {name}")
    print(f"  Format version: {int(root['format_version'])}")
    print(f"  Size: {[int(v) for v in root['size']]}")
    print(f"  Block indices: {len(primary)} primary, {len(water)} water")
    print(f"  Palette: {[str(entry['name']) for entry in palette]}")


def process_single(args) -> int:
    """Process a single image source."""
    if not args.input:
        print("Error: No input specified", file=sys.stderr)
        return 1

    if not args.palette:
        print("Error: No block palette specified (use --palette)", file=sys.stderr)
        return 1

    output_base = Path(args.output) if args.output else _default_output(args.input)
    start_time = time.time()

    try:
        generator = StructureGenerator(
            max_depth=args.max_depth,
            mask_alpha=args.mask_alpha,
            clamp=args.clamp
        )

        if args.verbose:
            print(f"Loading: {args.input[:80]}")

        generator.load_image(args.input)
        generator.load_palette(args.palette, _block_filter(args))

        for fmt in args.format:
            if fmt == "mcstructure":
                generator.convert(args.axis)
                output_path = output_base.with_suffix(".mcstructure")
                generator.export_mcstructure(output_path, name=args.name)
                if args.verbose:
                    print(f"Exported: {output_path}")
                if args.inspect:
                    print_inspection(output_path)

            elif fmt == "mcfunction":
                output_path = output_base.with_suffix(".mcfunction")
                generator.export_mcfunction(output_path, offset=tuple(args.offset))
                if args.verbose:
                    print(f"Exported: {output_path}")

        if (args.stats or args.verbose) and generator.document is not None:
            stats = generator.get_stats()
            print("\nStructure Statistics:")
            print(f"  Frames: {stats['frames']}")
            print(f"  Grid size: {stats['grid_size']}")
            print(f"  Structure size: {stats['structure_size']}")
            print(f"  Axis: {stats['axis']}")
            print(f"  Blocks placed: {stats['block_count']}")
            print(f"  Palette size: {stats['palette_size']}")

        elapsed = time.time() - start_time
        if args.verbose:
            print(f"\nCompleted in {elapsed:.2f}s")

        return 0

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


def process_batch(args) -> int:
    """Process a batch of images."""
    batch_dir = Path(args.batch)
    if not batch_dir.is_dir():
        print(f"Error: Batch directory not found: {batch_dir}", file=sys.stderr)
        return 1

    if not args.palette:
        print("Error: No block palette specified (use --palette)", file=sys.stderr)
        return 1

    output_dir = Path(args.output_dir) if args.output_dir else batch_dir / "output"
    start_time = time.time()

    try:
        processor = BatchProcessor(
            args.palette,
            block_filter=_block_filter(args),
            max_depth=args.max_depth,
            mask_alpha=args.mask_alpha,
            clamp=args.clamp
        )

        outputs = processor.process_directory(
            batch_dir,
            output_dir,
            pattern=args.pattern,
            axis=args.axis,
            formats=args.format
        )

        elapsed = time.time() - start_time
        print(f"Processed {len(outputs)} files in {elapsed:.2f}s")
        print(f"Output directory: {output_dir}")

        return 0

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s"
    )

    if args.batch:
        return process_batch(args)
    return process_single(args)


if __name__ == "__main__":
    sys.exit(main())
