"""
Block Type Remapping

Rules rewrite one block type into another, by palette name. They are
applied in order and are not mutually exclusive: a block rewritten by one
rule is matched against every later rule with its new type, so
[stone -> dirt, dirt -> grass] turns stone into grass in a single pass.

Names are resolved through the palette when a rule is applied, not when
it is parsed: old names only when there are blocks to match, new names only
when a block matched. An unknown name aborts the pass; rules already
applied stay applied.
"""

from typing import NamedTuple, Sequence
import logging

import numpy as np

logger = logging.getLogger(__name__)


class RemappingRule(NamedTuple):
    """Rewrite blocks of type old_name into new_name."""
    old_name: str
    new_name: str

    @classmethod
    def from_dict(cls, data: dict) -> "RemappingRule":
        old = data.get("old_name", data.get("oldName", data.get("old")))
        new = data.get("new_name", data.get("newName", data.get("new")))
        if old is None or new is None:
            raise ValueError(f"Remapping rule needs old and new names: {data}")
        return cls(str(old), str(new))


class RemappingEngine:
    """
    Apply an ordered list of remapping rules to block types.

    Usage:
        engine = RemappingEngine(palette)
        new_types = engine.remap_types(types, rules)
    """

    def __init__(self, palette):
        """
        Args:
            palette: Object exposing index_of(name) -> int
        """
        self.palette = palette

    def remap_types(
        self,
        types: np.ndarray,
        rules: Sequence[RemappingRule]
    ) -> np.ndarray:
        """
        Rewrite a type array in place.

        Processing rule by rule over the whole array is equivalent to
        processing block by block over all rules, since each rule only
        looks at a block's current type.

        Args:
            types: uint8 array of block types, modified in place
            rules: Remapping rules in application order

        Returns:
            The same array

        Raises:
            UnknownBlockTypeError: If a rule names an unregistered type
        """
        if len(types) == 0:
            return types
        for rule in rules:
            matches = types == self.palette.index_of(rule.old_name)
            if not matches.any():
                continue
            types[matches] = self.palette.index_of(rule.new_name)
            logger.debug(
                "Remapped %d blocks %s -> %s",
                int(np.count_nonzero(matches)), rule.old_name, rule.new_name
            )
        return types

    def apply(self, voxel_map, rules: Sequence[RemappingRule]):
        """Rewrite the types of every block of a SparseVoxelMap."""
        if not rules:
            return voxel_map
        types = voxel_map.snapshot()["type"].copy()
        try:
            self.remap_types(types, rules)
        finally:
            # Keep rewrites from rules that ran before a failure
            voxel_map.set_types(types)
        return voxel_map
