"""
Voxel Map Converter
===================

Converts authored cube arrangements into compact sparse voxel maps.

This package normalizes raw cube positions into a map-local integer grid,
stores only the non-air blocks, and mechanically extends maps with copy
rules (180 degree rotation, X/Z mirroring) so symmetric level geometry
only has to be built once.

Key Features:
- Bounding-box normalization with a reserved bedrock row
- Ordered, chaining block type remapping by palette name
- Copy rules with per-copy remapping
- Bedrock layer synthesis over the map footprint
- JSON (.json) and compact binary (.vmap) map encodings

Example Usage:
    from voxel_mapper import MapConverter, BlockPalette, ConversionSettings
    from voxel_mapper.sources import SceneCubeSource

    palette = BlockPalette.from_json("palette.json")
    source = SceneCubeSource(palette).load("arena.scene.json")
    converter = MapConverter(palette, ConversionSettings.from_json("arena.rules.json"))
    converter.convert(source)
"""

__version__ = "1.0.0"
__author__ = "Voxel Map Converter Team"

from .encoding import BlockEncoding, SparseVoxelMap, MapSize, MAX_HEIGHT
from .normalize import normalize_positions, FootprintBounds
from .palette import BlockPalette, BlockType
from .remap import RemappingEngine, RemappingRule
from .copy_rules import CopyRule, CopyRuleEngine, CopyKind, CopyAxis
from .bedrock import synthesize_bedrock
from .converter import MapConverter, ConversionSettings, BatchConverter

__all__ = [
    "BlockEncoding",
    "SparseVoxelMap",
    "MapSize",
    "MAX_HEIGHT",
    "normalize_positions",
    "FootprintBounds",
    "BlockPalette",
    "BlockType",
    "RemappingEngine",
    "RemappingRule",
    "CopyRule",
    "CopyRuleEngine",
    "CopyKind",
    "CopyAxis",
    "synthesize_bedrock",
    "MapConverter",
    "ConversionSettings",
    "BatchConverter",
]
