"""
JSON Map Serializer

Human-readable encoding. Blocks are stored as compact [x, y, z, type]
rows rather than objects, which keeps files small enough to diff and
hand-edit.

Layout:
    {
        "name": "arena",
        "size": [32, 64, 63],
        "blocks": [[0, 0, 0, 1], [0, 1, 0, 2], ...]
    }
"""

from typing import Union
import json

import numpy as np

from ..encoding import SparseVoxelMap, make_blocks
from ..errors import SerializationError
from .base import MapSerializer


class JsonSerializer(MapSerializer):
    """
    Serialize maps to .json files.

    Usage:
        path = JsonSerializer().serialize(voxel_map, "maps", voxel_map.name)
    """

    extension = ".json"

    def __init__(self, indent: Union[int, None] = None):
        """
        Args:
            indent: Pretty-print indent; None writes a single line
        """
        self.indent = indent

    def encode(self, voxel_map: SparseVoxelMap) -> str:
        if any(s < 0 for s in voxel_map.size):
            raise ValueError(f"Negative map size: {tuple(voxel_map.size)}")
        blocks = voxel_map.snapshot()
        rows = np.stack(
            [blocks["x"], blocks["y"], blocks["z"], blocks["type"]], axis=1
        ).astype(np.int64) if len(blocks) else np.empty((0, 4), dtype=np.int64)
        document = {
            "name": voxel_map.name,
            "size": [int(s) for s in voxel_map.size],
            "blocks": rows.tolist(),
        }
        return json.dumps(document, indent=self.indent)

    def decode(self, text: str) -> SparseVoxelMap:
        try:
            document = json.loads(text)
            rows = np.asarray(document["blocks"], dtype=np.int64).reshape(-1, 4)
            size = tuple(document["size"])
            name = document["name"]
        except (ValueError, KeyError, TypeError) as e:
            raise SerializationError(f"Invalid map JSON: {e}") from e

        if len(size) != 3:
            raise SerializationError(f"Invalid map size: {size}")

        blocks = make_blocks(rows[:, 0], rows[:, 1], rows[:, 2], rows[:, 3])
        return SparseVoxelMap(name, blocks, size)

