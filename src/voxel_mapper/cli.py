"""
Command-Line Interface for the Voxel Map Converter

Usage:
    voxmap arena.scene.json --palette palette.json --rules arena.rules.json
    voxmap arena.scene.json --palette palette.json -f binary --output-dir maps
    voxmap --reencode maps/arena.json -f binary

"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional
import time

from .converter import BatchConverter, ConversionSettings, MapConverter
from .palette import BlockPalette
from .serializers import get_serializer, SERIALIZERS
from .sources import SceneCubeSource


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="voxmap",
        description="Voxel Map Converter - Convert authored cube scenes to sparse voxel maps",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  voxmap arena.scene.json --palette palette.json --rules arena.rules.json
      Convert a scene with copy and remapping rules, write maps/<name>.json

  voxmap arena.scene.json --palette palette.json -f binary
      Write the compact binary encoding (.vmap)

  voxmap --reencode maps/arena.json -f binary
      Convert a stored JSON map to binary

  voxmap --batch scenes/ --palette palette.json
      Convert every *.scene.json in a directory
        """
    )

    # Input
    parser.add_argument(
        "input",
        nargs="?",
        help="Scene file (JSON cube export), or a stored map with --reencode"
    )

    parser.add_argument(
        "-p", "--palette",
        help="Block palette JSON file"
    )

    parser.add_argument(
        "-r", "--rules",
        help="Conversion rules JSON file (remappings, copy rules)"
    )

    # Output
    parser.add_argument(
        "-n", "--name",
        help="Map name (default: rules map_name, then input file stem)"
    )

    parser.add_argument(
        "-f", "--format",
        choices=sorted(SERIALIZERS),
        default="json",
        help="Map encoding (default: json)"
    )

    parser.add_argument(
        "--output-dir",
        help="Output directory (default: rules output_dir, then 'maps')"
    )

    parser.add_argument(
        "--max-height",
        type=int,
        help="Declared map height (default: 64)"
    )

    # Modes
    parser.add_argument(
        "--reencode",
        action="store_true",
        help="Treat input as a stored map and write it in --format"
    )

    parser.add_argument(
        "--batch",
        help="Batch convert a directory of scene files"
    )

    parser.add_argument(
        "--pattern",
        default="*.scene.json",
        help="File pattern for batch processing (default: *.scene.json)"
    )

    # Misc
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output with debug logging"
    )

    parser.add_argument(
        "--stats",
        action="store_true",
        help="Print map statistics"
    )

    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s 1.0.0"
    )

    return parser


def load_settings(args) -> ConversionSettings:
    """Load rules and apply command-line overrides."""
    settings = ConversionSettings.from_json(args.rules) if args.rules else ConversionSettings()
    if args.output_dir:
        settings.output_dir = args.output_dir
    if args.max_height is not None:
        settings.max_height = args.max_height
    return settings


def print_stats(voxel_map, palette):
    """Print map statistics."""
    print("\nMap Statistics:")
    print(f"  Name: {voxel_map.name}")
    print(f"  Size: {tuple(voxel_map.size)}")
    print(f"  Blocks: {len(voxel_map)}")
    print(f"  Shared coordinates: {voxel_map.duplicate_count()}")
    print(f"  Outside size: {voxel_map.out_of_bounds()}")
    for index, count in sorted(voxel_map.count_by_type().items()):
        name = palette.name_of(index) if palette is not None else None
        print(f"  {name or '#' + str(index)}: {count}")


def _report_error(args, e: Exception) -> int:
    print(f"Error: {e}", file=sys.stderr)
    if args.verbose:
        import traceback
        traceback.print_exc()
    return 1


def process_single(args) -> int:
    """Convert a single scene file."""
    if not args.input:
        print("Error: No input file specified", file=sys.stderr)
        return 1
    if not args.palette:
        print("Error: --palette is required", file=sys.stderr)
        return 1

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: Input file not found: {input_path}", file=sys.stderr)
        return 1

    start_time = time.time()

    try:
        palette = BlockPalette.from_json(args.palette)
        settings = load_settings(args)
        name = args.name or settings.map_name or input_path.name.split(".")[0]

        if args.verbose:
            print(f"Loading: {input_path}")

        source = SceneCubeSource(palette).load(input_path)

        converter = MapConverter(palette, settings, get_serializer(args.format))
        voxel_map = converter.build(source, name)

        if args.stats or args.verbose:
            print_stats(voxel_map, palette)

        output_path = converter.save(voxel_map)
        print(f"Map [{voxel_map.name}] saved successfully: {output_path}")

        elapsed = time.time() - start_time
        if args.verbose:
            print(f"\nCompleted in {elapsed:.2f}s")

        return 0

    except Exception as e:
        return _report_error(args, e)


def process_reencode(args) -> int:
    """Re-serialize a stored map in another encoding."""
    if not args.input:
        print("Error: No input file specified", file=sys.stderr)
        return 1

    input_path = Path(args.input)
    if not input_path.exists():
        print(f"Error: Input file not found: {input_path}", file=sys.stderr)
        return 1

    try:
        settings = ConversionSettings(output_dir=args.output_dir or str(input_path.parent))
        converter = MapConverter(None, settings, get_serializer(args.format))
        output_path = converter.reencode(input_path)
        print(f"Re-encoded: {output_path}")
        return 0

    except Exception as e:
        return _report_error(args, e)


def process_batch(args) -> int:
    """Convert a directory of scene files."""
    batch_dir = Path(args.batch)
    if not batch_dir.is_dir():
        print(f"Error: Batch directory not found: {batch_dir}", file=sys.stderr)
        return 1
    if not args.palette:
        print("Error: --palette is required", file=sys.stderr)
        return 1

    start_time = time.time()

    try:
        palette = BlockPalette.from_json(args.palette)
        processor = BatchConverter(palette, load_settings(args), get_serializer(args.format))
        outputs = processor.process_directory(batch_dir, pattern=args.pattern)

        elapsed = time.time() - start_time
        print(f"Converted {len(outputs)} maps in {elapsed:.2f}s")
        for output in outputs:
            print(f"  {output}")

        return 0

    except Exception as e:
        return _report_error(args, e)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s"
    )

    # Determine mode
    if args.batch:
        return process_batch(args)
    elif args.reencode:
        return process_reencode(args)
    else:
        return process_single(args)


if __name__ == "__main__":
    sys.exit(main())
