"""
Cube Sources

A cube source hands the converter the authored voxels as parallel arrays of
integer positions and palette indices. Two sources are provided:

- ArrayCubeSource: positions and types already in memory
- SceneCubeSource: a JSON scene export, one entry per cube object

Scene JSON layout:
    {
        "cubes": [
            {"position": [3.5, 0.5, -1.5], "material": "blockade_7"},
            {"position": [4.5, 0.5, -1.5], "type": "stone"}
        ]
    }

A material name "<pack>_<n>" refers to texture id n - 1; the block type is
the first palette type using that texture on any face. Cube object centres
sit on half units, so positions are floored after a +0.25 nudge.
"""

from pathlib import Path
from typing import Optional, Tuple, Union
import json

import numpy as np

from .errors import UnknownBlockTypeError

# Nudge applied before flooring object centres onto the integer grid
POSITION_BIAS = 0.25


class ArrayCubeSource:
    """
    In-memory cube source.

    Usage:
        source = ArrayCubeSource([(0, 0, 0), (1, 0, 0)], [2, 2])
        positions, types = source.cubes()
    """

    def __init__(self, positions, types):
        self._positions = np.asarray(positions, dtype=np.int64).reshape(-1, 3)
        self._types = np.asarray(types, dtype=np.int64).reshape(-1)
        if len(self._positions) != len(self._types):
            raise ValueError("Positions and types must have equal length")

    def cubes(self) -> Tuple[np.ndarray, np.ndarray]:
        """
        Returns:
            Tuple of (positions, types): (N, 3) int64 and (N,) int64
        """
        return self._positions, self._types

    def __len__(self) -> int:
        return len(self._types)


def texture_id_from_material(material: str) -> int:
    """
    Extract the texture id from a material name like "blockade_12".

    Raises:
        ValueError: If the name has no numeric suffix
    """
    parts = material.split("_")
    if len(parts) < 2 or not parts[1].isdigit():
        raise ValueError(f"Material name has no texture number: {material!r}")
    return int(parts[1]) - 1


def snap_positions(positions) -> np.ndarray:
    """Floor world-space object centres onto the integer grid."""
    positions = np.asarray(positions, dtype=np.float64).reshape(-1, 3)
    return np.floor(positions + POSITION_BIAS).astype(np.int64)


class SceneCubeSource:
    """
    Cube source reading a JSON scene export.

    Block types are resolved when the scene is loaded, so cubes() returns
    only valid palette indices.
    """

    def __init__(self, palette):
        """
        Args:
            palette: BlockPalette used to resolve materials and type names
        """
        self.palette = palette
        self._positions: Optional[np.ndarray] = None
        self._types: Optional[np.ndarray] = None
        self.path: Optional[Path] = None

    def load(self, scene_path: Union[str, Path]) -> "SceneCubeSource":
        """
        Load cubes from a scene file.

        Returns:
            self for method chaining
        """
        scene_path = Path(scene_path)
        if not scene_path.exists():
            raise FileNotFoundError(f"Scene not found: {scene_path}")

        with open(scene_path, "r", encoding="utf-8") as f:
            data = json.load(f)

        self.path = scene_path
        return self.load_from_dict(data)

    def load_from_dict(self, data: dict) -> "SceneCubeSource":
        """Load cubes from an already parsed scene mapping."""
        cubes = data.get("cubes", [])
        types = np.empty(len(cubes), dtype=np.int64)
        raw_positions = np.empty((len(cubes), 3), dtype=np.float64)

        for i, cube in enumerate(cubes):
            raw_positions[i] = cube["position"]
            types[i] = self._resolve_type(cube)

        self._positions = snap_positions(raw_positions)
        self._types = types
        return self

    def _resolve_type(self, cube: dict) -> int:
        if "type" in cube:
            return self.palette.index_of(cube["type"])
        if "material" in cube:
            texture_id = texture_id_from_material(cube["material"])
            return self.palette.index_of_texture(texture_id)
        raise UnknownBlockTypeError(f"cube without type or material: {cube}")

    def cubes(self) -> Tuple[np.ndarray, np.ndarray]:
        if self._positions is None:
            raise RuntimeError("No scene loaded. Call load() first.")
        return self._positions, self._types

    def __len__(self) -> int:
        return 0 if self._types is None else len(self._types)
