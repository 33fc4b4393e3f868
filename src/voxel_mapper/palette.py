"""
Block Type Palette

The palette maps human-readable block type names to the integer indices
stored in maps. Index 0 is air. Each type also records the texture ids
used on its top, bottom and side faces; the scene cube source uses them
to recover a block type from a cube's material.

Palette JSON layout:
    {
        "block_types": [
            {"name": "air"},
            {"name": "bedrock", "top": 16, "bottom": 16, "side": 16},
            {"name": "stone", "top": 0}
        ]
    }
Missing face ids default to the "top" id.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Union
import json

from .errors import UnknownBlockTypeError

MAX_BLOCK_TYPES = 256


@dataclass(frozen=True)
class BlockType:
    """One palette entry."""
    name: str
    top_id: int = -1
    bottom_id: int = -1
    side_id: int = -1

    def uses_texture(self, texture_id: int) -> bool:
        """Check if any face of this type uses the texture."""
        return texture_id in (self.top_id, self.bottom_id, self.side_id)


class BlockPalette:
    """
    Ordered registry of block types.

    Usage:
        palette = BlockPalette.from_names(["air", "bedrock", "stone"])
        palette.index_of("stone")  # 2
    """

    def __init__(self, block_types: Sequence[BlockType]):
        if len(block_types) > MAX_BLOCK_TYPES:
            raise ValueError(
                f"Palette limited to {MAX_BLOCK_TYPES} types, got {len(block_types)}"
            )
        self._types: List[BlockType] = list(block_types)
        self._index: Dict[str, int] = {}
        for i, block_type in enumerate(self._types):
            if block_type.name in self._index:
                raise ValueError(f"Duplicate block type name: {block_type.name!r}")
            self._index[block_type.name] = i

    @classmethod
    def from_names(cls, names: Sequence[str]) -> "BlockPalette":
        """Create a palette with no texture information."""
        return cls([BlockType(name) for name in names])

    @classmethod
    def from_dict(cls, data: dict) -> "BlockPalette":
        types = []
        for entry in data["block_types"]:
            top = int(entry.get("top", -1))
            types.append(BlockType(
                name=entry["name"],
                top_id=top,
                bottom_id=int(entry.get("bottom", top)),
                side_id=int(entry.get("side", top)),
            ))
        return cls(types)

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "BlockPalette":
        """Load a palette from a JSON file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Palette not found: {path}")
        with open(path, "r", encoding="utf-8") as f:
            return cls.from_dict(json.load(f))

    def index_of(self, name: str) -> int:
        """
        Resolve a block type name.

        Raises:
            UnknownBlockTypeError: If the name is not registered
        """
        try:
            return self._index[name]
        except KeyError:
            raise UnknownBlockTypeError(name) from None

    def index_of_texture(self, texture_id: int) -> int:
        """
        Find the first block type with a face using the texture.

        Raises:
            UnknownBlockTypeError: If no type uses the texture
        """
        for i, block_type in enumerate(self._types):
            if block_type.uses_texture(texture_id):
                return i
        raise UnknownBlockTypeError(f"texture #{texture_id}")

    def type_count(self) -> int:
        return len(self._types)

    def name_of(self, index: int) -> Optional[str]:
        if 0 <= index < len(self._types):
            return self._types[index].name
        return None

    def __len__(self) -> int:
        return len(self._types)

    def __contains__(self, name: str) -> bool:
        return name in self._index
