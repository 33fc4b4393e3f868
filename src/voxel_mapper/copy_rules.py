"""
Copy Rules

A copy rule duplicates a rectangular region of the map under a 180 degree
rotation or an axis mirror and appends the copies past the map's original
Z extent, so symmetric level geometry only has to be authored once.

Transforms use the footprint bounds frozen before the first rule runs:

    Rotate180:  x' = (maxX - minX) - x
                z' = (maxZ - minZ - 1) + (to.z - from.z) - z
    MirrorX:    x' = (maxX - minX) - x
                z' = z + (maxZ - minZ - 1)
    MirrorZ:    x' = x
                z' = z + (maxZ - minZ - 1)

y is never changed. After appending, the declared size grows by
(to.z - from.z - 1) along Z: a full-depth Rotate180 shares the last
original row with its copy.

Rules run in order and each one selects from the map as left by the rules
before it, so later rules can copy geometry appended by earlier ones.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Tuple, Union
import logging

import numpy as np

from .encoding import SparseVoxelMap, make_blocks
from .errors import UnsupportedAxisError, UnsupportedCopyTypeError
from .normalize import FootprintBounds
from .remap import RemappingEngine, RemappingRule

logger = logging.getLogger(__name__)


class CopyKind(Enum):
    """Geometric transform applied to copied blocks."""
    ROTATE_180 = "Rotate180"
    MIRROR_X = "MirrorX"
    MIRROR_Z = "MirrorZ"

    @classmethod
    def parse(cls, value: Union[str, "CopyKind"]) -> "CopyKind":
        """
        Parse "Rotate180", "mirror_x", "MIRROR_Z" and similar spellings.

        Raises:
            UnsupportedCopyTypeError: If the value names no known kind
        """
        if isinstance(value, cls):
            return value
        key = str(value).replace("_", "").replace("-", "").lower()
        for kind in cls:
            if kind.value.lower() == key:
                return kind
        raise UnsupportedCopyTypeError(f"Unsupported copy type: {value!r}")


class CopyAxis(Enum):
    """Direction along which copies extend the map."""
    X = "X"
    Z = "Z"

    @classmethod
    def parse(cls, value: Union[str, "CopyAxis"]) -> "CopyAxis":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise UnsupportedAxisError(f"Unknown copy axis: {value!r}") from None


Int3 = Tuple[int, int, int]


@dataclass
class CopyRule:
    """
    Copy the half-open box [start, end) under a transform.

    Attributes:
        start: Inclusive lower corner (x, y, z)
        end: Exclusive upper corner (x, y, z)
        kind: Transform to apply
        axis: Extension axis; only Z is implemented
        remappings: Type remappings applied to the copies only
    """
    start: Int3
    end: Int3
    kind: CopyKind = CopyKind.MIRROR_Z
    axis: CopyAxis = CopyAxis.Z
    remappings: List[RemappingRule] = field(default_factory=list)

    def __post_init__(self):
        self.start = tuple(int(v) for v in self.start)
        self.end = tuple(int(v) for v in self.end)
        if len(self.start) != 3 or len(self.end) != 3:
            raise ValueError("Copy rule corners must have three components")
        if any(s > e for s, e in zip(self.start, self.end)):
            raise ValueError(
                f"Copy rule start {self.start} must not exceed end {self.end}"
            )

    @property
    def depth(self) -> int:
        """Number of Z rows in the source region."""
        return self.end[2] - self.start[2]

    @classmethod
    def from_dict(cls, data: dict) -> "CopyRule":
        """
        Build a rule from a config mapping.

        Keys: "from", "to", "kind" (or "copy_type"), "axis" (or
        "direction"), "remappings".
        """
        kind = data.get("kind", data.get("copy_type", data.get("copyType")))
        axis = data.get("axis", data.get("direction", "Z"))
        remappings = data.get("remappings", data.get("remappingRules", []))
        return cls(
            start=data["from"],
            end=data["to"],
            kind=CopyKind.parse(kind),
            axis=CopyAxis.parse(axis),
            remappings=[RemappingRule.from_dict(r) for r in remappings],
        )


class CopyRuleEngine:
    """
    Apply copy rules to a SparseVoxelMap.

    Usage:
        engine = CopyRuleEngine(palette)
        bounds = normalized.bounds  # freeze before the first rule
        for rule in rules:
            engine.apply(voxel_map, rule, bounds)
    """

    def __init__(self, palette):
        self.remapper = RemappingEngine(palette)

    def select(self, blocks: np.ndarray, rule: CopyRule) -> np.ndarray:
        """Get the blocks inside the rule's half-open source box."""
        (x0, y0, z0), (x1, y1, z1) = rule.start, rule.end
        mask = (
            (blocks["x"] >= x0) & (blocks["x"] < x1) &
            (blocks["y"] >= y0) & (blocks["y"] < y1) &
            (blocks["z"] >= z0) & (blocks["z"] < z1)
        )
        return blocks[mask]

    def transform(
        self,
        selected: np.ndarray,
        rule: CopyRule,
        bounds: FootprintBounds
    ) -> np.ndarray:
        """
        Compute transformed copies of the selected blocks.

        Raises:
            UnsupportedCopyTypeError: For an unknown kind
        """
        x = selected["x"].astype(np.int64)
        z = selected["z"].astype(np.int64)
        z_offset = bounds.span_z - 1

        if rule.kind is CopyKind.ROTATE_180:
            new_x = bounds.span_x - x
            new_z = z_offset + rule.depth - z
        elif rule.kind is CopyKind.MIRROR_X:
            new_x = bounds.span_x - x
            new_z = z + z_offset
        elif rule.kind is CopyKind.MIRROR_Z:
            new_x = x
            new_z = z + z_offset
        else:
            raise UnsupportedCopyTypeError(f"Unsupported copy type: {rule.kind!r}")

        return make_blocks(new_x, selected["y"], new_z, selected["type"])

    def apply(
        self,
        voxel_map: SparseVoxelMap,
        rule: CopyRule,
        bounds: FootprintBounds
    ) -> int:
        """
        Apply one rule: select, transform, remap copies, append, grow size.

        Nothing is appended and the size is unchanged if any step fails.

        Args:
            voxel_map: Map to extend
            rule: Rule to apply
            bounds: Footprint bounds captured before the first rule

        Returns:
            Number of blocks appended

        Raises:
            UnsupportedAxisError: If the rule's axis is X
            UnsupportedCopyTypeError: If the rule's kind is unknown
            UnknownBlockTypeError: If a copy remapping names an unknown type
        """
        if rule.axis is not CopyAxis.Z:
            raise UnsupportedAxisError(
                f"Copy along axis {rule.axis.value} is not implemented"
            )

        selected = self.select(voxel_map.snapshot(), rule)
        copies = self.transform(selected, rule, bounds)

        if rule.remappings:
            types = copies["type"].copy()
            self.remapper.remap_types(types, rule.remappings)
            copies["type"] = types

        voxel_map.extend(copies)
        voxel_map.grow(dz=rule.depth - 1)

        logger.debug(
            "%s %s..%s: copied %d blocks, size now %s",
            rule.kind.value, rule.start, rule.end, len(copies), tuple(voxel_map.size)
        )
        return len(copies)
