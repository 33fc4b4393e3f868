#!/usr/bin/env python3
"""
Voxel Map Converter Demo Script

This script demonstrates the full conversion pipeline by:
1. Creating a synthetic half arena (no authored scene needed)
2. Completing it with copy rules (rotated and mirrored halves)
3. Exporting to both encodings
4. Printing statistics and file sizes

Run with: python examples/demo.py
"""

import sys
from pathlib import Path
import numpy as np
import time

# Add src to path for development
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from voxel_mapper import MapConverter, ConversionSettings, BlockPalette
from voxel_mapper.copy_rules import CopyRule, CopyKind
from voxel_mapper.remap import RemappingRule
from voxel_mapper.serializers import JsonSerializer, BinarySerializer
from voxel_mapper.sources import ArrayCubeSource

PALETTE = BlockPalette.from_names(
    ["air", "bedrock", "stone", "dirt", "grass", "planks", "red_wool", "blue_wool"]
)


def create_half_arena(width: int = 24, depth: int = 16) -> ArrayCubeSource:
    """
    Create one team's half of an arena: a grass floor, a stone rim and a
    red base platform near the back wall.

    Returns:
        ArrayCubeSource with world-space positions
    """
    positions = []
    types = []

    # Offset in world space, normalization removes it
    ox, oz = -40, 17

    for x in range(width):
        for z in range(depth):
            positions.append((ox + x, 5, oz + z))
            types.append(PALETTE.index_of("grass"))

            if x in (0, width - 1) or z == 0:
                for h in range(1, 3):
                    positions.append((ox + x, 5 + h, oz + z))
                    types.append(PALETTE.index_of("stone"))

    # Base platform
    for x in range(width // 2 - 3, width // 2 + 3):
        for z in range(2, 5):
            positions.append((ox + x, 6, oz + z))
            types.append(PALETTE.index_of("red_wool"))

    return ArrayCubeSource(np.array(positions), np.array(types))


def run_demo():
    """Run the demonstration."""
    print("=" * 60)
    print("Voxel Map Converter - Demo")
    print("=" * 60)
    print()

    output_dir = Path(__file__).parent / "output"

    width, depth = 24, 16
    source = create_half_arena(width, depth)
    print(f"Input cubes: {len(source)}")

    # The second half is the first one rotated, with the base recoloured
    settings = ConversionSettings(
        map_name="arena",
        remappings=[RemappingRule("dirt", "grass")],
        copy_rules=[
            CopyRule(
                (0, 0, 0), (width, 64, depth), CopyKind.ROTATE_180,
                remappings=[RemappingRule("red_wool", "blue_wool")]
            ),
        ],
        output_dir=str(output_dir),
    )

    for serializer in (JsonSerializer(), BinarySerializer()):
        start = time.time()
        converter = MapConverter(PALETTE, settings, serializer)
        voxel_map = converter.build(source)
        path = converter.save(voxel_map)
        elapsed = time.time() - start

        print(f"\n--- {type(serializer).__name__} ---")
        print(f"  Size: {tuple(voxel_map.size)}")
        print(f"  Blocks: {len(voxel_map)}")
        print(f"  Shared coordinates: {voxel_map.duplicate_count()}")
        print(f"  Saved: {path} ({path.stat().st_size} bytes)")
        print(f"  Time: {elapsed*1000:.1f}ms")

    dense = voxel_map.to_dense()
    print(f"\nDense grid (y, x, z): {dense.shape}, "
          f"{np.count_nonzero(dense)} solid cells")

    print("\n" + "=" * 60)
    print(f"Demo complete! Output files in: {output_dir}")
    print("=" * 60)

    return 0


if __name__ == "__main__":
    run_demo()
