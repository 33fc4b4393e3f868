"""
Map Converter

This is the primary interface for turning an authored cube arrangement into
a stored sparse voxel map. It orchestrates:
1. Bounds normalization (row y=0 reserved for bedrock)
2. Global block type remapping
3. Bedrock layer synthesis
4. Copy rules, in declaration order
5. Serialization

Any failure aborts the whole run and nothing is written: the serializer is
only called once the in-memory map is complete. Errors carry the stage that
raised them.

Example Usage:
    palette = BlockPalette.from_json("palette.json")
    settings = ConversionSettings.from_json("arena.rules.json")
    source = SceneCubeSource(palette).load("arena.scene.json")

    converter = MapConverter(palette, settings)
    path = converter.convert(source)
"""

from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union
import json
import logging

from .bedrock import BEDROCK_TYPE, synthesize_bedrock
from .copy_rules import CopyRule, CopyRuleEngine
from .encoding import MAX_HEIGHT, SparseVoxelMap, make_blocks
from .errors import ConversionError
from .normalize import normalize_positions
from .remap import RemappingEngine, RemappingRule
from .serializers import JsonSerializer, MapSerializer, serializer_for_path
from .sources import SceneCubeSource

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_DIR = "maps"


@dataclass
class ConversionSettings:
    """
    Per-map conversion configuration.

    Attributes:
        map_name: Name stored in the map and used as file name
        remappings: Global remapping rules, applied before bedrock
        copy_rules: Copy rules, applied in order after bedrock
        y_offset: Vertical lift applied on normalization
        max_height: Declared vertical size of the map
        bedrock: Bedrock block type, palette index or name
        output_dir: Directory handed to the serializer
    """
    map_name: str = ""
    remappings: List[RemappingRule] = field(default_factory=list)
    copy_rules: List[CopyRule] = field(default_factory=list)
    y_offset: int = 1
    max_height: int = MAX_HEIGHT
    bedrock: Union[int, str] = BEDROCK_TYPE
    output_dir: str = DEFAULT_OUTPUT_DIR

    @classmethod
    def from_dict(cls, data: dict) -> "ConversionSettings":
        """
        Build settings from a config mapping.

        Raises:
            UnsupportedCopyTypeError: If a copy rule has an unknown kind
            UnsupportedAxisError: If a copy rule names an unknown axis
        """
        return cls(
            map_name=data.get("map_name", data.get("name", "")),
            remappings=[RemappingRule.from_dict(r) for r in data.get("remappings", [])],
            copy_rules=_parse_copy_rules(data.get("copy_rules", [])),
            y_offset=int(data.get("y_offset", 1)),
            max_height=int(data.get("max_height", MAX_HEIGHT)),
            bedrock=data.get("bedrock", BEDROCK_TYPE),
            output_dir=data.get("output_dir", DEFAULT_OUTPUT_DIR),
        )

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "ConversionSettings":
        """Load settings from a JSON rules file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Rules file not found: {path}")
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f))


@contextmanager
def _stage(name: str):
    """Tag conversion errors raised inside the block with a stage name."""
    try:
        yield
    except ConversionError as e:
        if e.stage is None:
            e.stage = name
        raise
    except ValueError as e:
        raise ConversionError(str(e), name) from e


def _parse_copy_rules(entries: list) -> List[CopyRule]:
    """Parse copy rules, tagging failures with the rule index."""
    rules = []
    for i, entry in enumerate(entries):
        with _stage(f"copy-rule[{i}]"):
            rules.append(CopyRule.from_dict(entry))
    return rules


class MapConverter:
    """
    High-level interface for map conversion.

    Attributes:
        palette: Block palette used for every name lookup
        settings: Conversion settings
        serializer: Encoding used to persist the map
    """

    def __init__(
        self,
        palette,
        settings: Optional[ConversionSettings] = None,
        serializer: Optional[MapSerializer] = None
    ):
        """
        Initialize the converter.

        Args:
            palette: Object exposing index_of(name) and type_count()
            settings: Conversion settings (defaults if None)
            serializer: Map serializer (JSON if None)
        """
        self.palette = palette
        self.settings = settings or ConversionSettings()
        self.serializer = serializer or JsonSerializer()

    def _bedrock_type(self) -> int:
        bedrock = self.settings.bedrock
        if isinstance(bedrock, str):
            return self.palette.index_of(bedrock)
        return int(bedrock)

    def build(self, source, name: Optional[str] = None) -> SparseVoxelMap:
        """
        Run the in-memory pipeline.

        Args:
            source: Cube source exposing cubes() -> (positions, types)
            name: Map name, overrides settings.map_name

        Returns:
            The finished SparseVoxelMap
        """
        settings = self.settings
        map_name = name or settings.map_name
        positions, types = source.cubes()

        with _stage("normalize"):
            normalized = normalize_positions(
                positions, settings.y_offset, settings.max_height
            )
            shifted = normalized.positions
            voxel_map = SparseVoxelMap(
                map_name,
                make_blocks(shifted[:, 0], shifted[:, 1], shifted[:, 2], types),
                normalized.size,
            )
        logger.debug("Normalized %d cubes, size %s", len(voxel_map), tuple(voxel_map.size))

        with _stage("remap"):
            RemappingEngine(self.palette).apply(voxel_map, settings.remappings)

        with _stage("bedrock"):
            count = synthesize_bedrock(voxel_map, self._bedrock_type())
        logger.debug("Added %d bedrock blocks", count)

        # Transforms use the original footprint for every rule
        bounds = normalized.bounds
        engine = CopyRuleEngine(self.palette)
        for i, rule in enumerate(settings.copy_rules):
            with _stage(f"copy-rule[{i}]"):
                engine.apply(voxel_map, rule, bounds)

        outside = voxel_map.out_of_bounds()
        if outside:
            logger.warning(
                "Map %r: %d blocks lie outside declared size %s",
                map_name, outside, tuple(voxel_map.size)
            )
        duplicates = voxel_map.duplicate_count()
        if duplicates:
            logger.info(
                "Map %r: %d blocks share a coordinate, the last one wins",
                map_name, duplicates
            )

        return voxel_map

    def save(self, voxel_map: SparseVoxelMap) -> Path:
        """Hand a finished map to the serializer."""
        with _stage("serialize"):
            path = self.serializer.serialize(
                voxel_map, self.settings.output_dir, voxel_map.name
            )
        logger.info("Map [%s] saved to %s", voxel_map.name, path)
        return path

    def convert(self, source, name: Optional[str] = None) -> Path:
        """
        Build a map and serialize it.

        Returns:
            Path of the written map file
        """
        return self.save(self.build(source, name))

    def reencode(self, map_path: Union[str, Path]) -> Path:
        """
        Load a stored map and write it with this converter's serializer.

        The input encoding is picked from the file extension.

        Returns:
            Path of the written map file
        """
        with _stage("serialize"):
            voxel_map = serializer_for_path(map_path).load(map_path)
        return self.save(voxel_map)


class BatchConverter:
    """
    Convert every scene file in a directory with shared settings.

    Each scene produces a map named after the file stem. Rules files
    named "<stem>.rules.json" next to a scene override the shared settings.
    """

    def __init__(
        self,
        palette,
        settings: Optional[ConversionSettings] = None,
        serializer: Optional[MapSerializer] = None
    ):
        self.palette = palette
        self.settings = settings or ConversionSettings()
        self.serializer = serializer or JsonSerializer()

    def process_directory(
        self,
        input_dir: Union[str, Path],
        pattern: str = "*.scene.json"
    ) -> list:
        """
        Convert all scene files in a directory.

        Returns:
            List of output file paths
        """
        input_dir = Path(input_dir)
        outputs = []

        for scene_path in sorted(input_dir.glob(pattern)):
            stem = scene_path.name.split(".")[0]
            rules_path = scene_path.with_name(f"{stem}.rules.json")
            if rules_path.exists():
                settings = ConversionSettings.from_json(rules_path)
                name = settings.map_name or stem
            else:
                settings = self.settings
                name = stem

            source = SceneCubeSource(self.palette).load(scene_path)
            converter = MapConverter(self.palette, settings, self.serializer)
            outputs.append(converter.convert(source, name))

        return outputs
