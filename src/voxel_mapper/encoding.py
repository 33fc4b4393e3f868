"""
Sparse Voxel Map Data Structures

This module provides:
- BlockEncoding: One occupied voxel (position + block type index)
- SparseVoxelMap: Named map holding only non-air blocks plus a declared size
- Dense decoding for consumers that rebuild the full 3D grid

Blocks are kept in a numpy structured array so region selection, geometric
transforms and remapping run vectorized. The array is append-only: every
extend creates a new array, so a snapshot taken earlier never changes.

Memory consideration: one block is 7 bytes, a 256 x 64 x 256 map that is
completely solid is ~29 MB sparse versus ~4 MB dense. Authored maps are
mostly air, which is where the sparse form pays off.
"""

from dataclasses import dataclass
from typing import Iterator, NamedTuple, Optional, Tuple
import logging

import numpy as np
from numba import njit

logger = logging.getLogger(__name__)

# World-wide vertical extent, shared with the runtime that loads maps
MAX_HEIGHT = 64

# Palette index 0 is air in the dense view
AIR = 0

BLOCK_DTYPE = np.dtype([
    ("x", "<i2"),
    ("y", "<i2"),
    ("z", "<i2"),
    ("type", "u1"),
])

INT16_MIN = int(np.iinfo(np.int16).min)
INT16_MAX = int(np.iinfo(np.int16).max)


@dataclass(frozen=True)
class BlockEncoding:
    """A single non-air voxel."""

    x: int
    y: int
    z: int
    type: int

    @property
    def position(self) -> Tuple[int, int, int]:
        return (self.x, self.y, self.z)


class MapSize(NamedTuple):
    """Declared bounding box of a map."""
    x: int
    y: int
    z: int


def make_blocks(
    xs,
    ys,
    zs,
    types
) -> np.ndarray:
    """
    Build a block array from parallel coordinate and type sequences.

    Raises:
        ValueError: If lengths differ, a coordinate does not fit int16 or
            a type index does not fit a byte
    """
    xs = np.asarray(xs, dtype=np.int64).reshape(-1)
    ys = np.asarray(ys, dtype=np.int64).reshape(-1)
    zs = np.asarray(zs, dtype=np.int64).reshape(-1)
    types = np.asarray(types, dtype=np.int64).reshape(-1)

    n = len(xs)
    if not (len(ys) == len(zs) == len(types) == n):
        raise ValueError("Coordinate and type sequences must have equal length")

    for axis, values in (("x", xs), ("y", ys), ("z", zs)):
        if n and (values.min() < INT16_MIN or values.max() > INT16_MAX):
            raise ValueError(f"{axis} coordinate out of int16 range")
    if n and (types.min() < 0 or types.max() > 255):
        raise ValueError("Block type index must be in [0, 255]")

    blocks = np.empty(n, dtype=BLOCK_DTYPE)
    blocks["x"] = xs
    blocks["y"] = ys
    blocks["z"] = zs
    blocks["type"] = types
    return blocks


@njit(cache=True)
def _scatter_blocks(
    dense: np.ndarray,
    xs: np.ndarray,
    ys: np.ndarray,
    zs: np.ndarray,
    types: np.ndarray
) -> int:
    """Write blocks in order into a [y, x, z] grid. Returns skipped count."""
    sy, sx, sz = dense.shape
    skipped = 0
    for i in range(xs.shape[0]):
        x = xs[i]
        y = ys[i]
        z = zs[i]
        if x < 0 or x >= sx or y < 0 or y >= sy or z < 0 or z >= sz:
            skipped += 1
            continue
        dense[y, x, z] = types[i]
    return skipped


class SparseVoxelMap:
    """
    Sparse voxel map: a name, a declared size and the ordered non-air blocks.

    The declared size is authoritative for consumers that rebuild a dense
    grid. Coordinates are expected inside [0, size) on every axis.

    Attributes:
        name: Map name, also used as the file name on serialization
        size: Declared bounding box
        blocks: Structured array of BLOCK_DTYPE records
    """

    def __init__(
        self,
        name: str,
        blocks: Optional[np.ndarray] = None,
        size: Tuple[int, int, int] = (0, MAX_HEIGHT, 0)
    ):
        self.name = name
        self.size = MapSize(*(int(s) for s in size))
        if blocks is None:
            blocks = np.empty(0, dtype=BLOCK_DTYPE)
        self._blocks = np.asarray(blocks, dtype=BLOCK_DTYPE).copy()

    @property
    def blocks(self) -> np.ndarray:
        """Read-only view of the current block records."""
        view = self._blocks.view()
        view.flags.writeable = False
        return view

    def __len__(self) -> int:
        return len(self._blocks)

    def __iter__(self) -> Iterator[BlockEncoding]:
        for record in self._blocks:
            yield BlockEncoding(
                int(record["x"]), int(record["y"]),
                int(record["z"]), int(record["type"])
            )

    def __repr__(self) -> str:
        return (f"SparseVoxelMap(name={self.name!r}, size={tuple(self.size)}, "
                f"blocks={len(self)})")

    def snapshot(self) -> np.ndarray:
        """
        Get the block sequence as it exists now.

        Later appends create a new array and leave the snapshot untouched.
        """
        return self._blocks

    def append(self, block: BlockEncoding):
        """Append a single block."""
        self.extend(make_blocks([block.x], [block.y], [block.z], [block.type]))

    def extend(self, blocks: np.ndarray):
        """Append block records after all existing ones."""
        blocks = np.asarray(blocks, dtype=BLOCK_DTYPE)
        if len(blocks) == 0:
            return
        self._blocks = np.concatenate([self._blocks, blocks])

    def grow(self, dx: int = 0, dy: int = 0, dz: int = 0):
        """Grow the declared size."""
        self.size = MapSize(self.size.x + dx, self.size.y + dy, self.size.z + dz)

    def set_types(self, types: np.ndarray):
        """Replace the type column of every block."""
        if len(types) != len(self._blocks):
            raise ValueError("Type array length must match block count")
        blocks = self._blocks.copy()
        blocks["type"] = types
        self._blocks = blocks

    def out_of_bounds(self) -> int:
        """Count blocks whose coordinates lie outside the declared size."""
        b = self._blocks
        inside = (
            (b["x"] >= 0) & (b["x"] < self.size.x) &
            (b["y"] >= 0) & (b["y"] < self.size.y) &
            (b["z"] >= 0) & (b["z"] < self.size.z)
        )
        return int(np.count_nonzero(~inside))

    def duplicate_count(self) -> int:
        """Count blocks that share a coordinate with an earlier block."""
        if len(self._blocks) == 0:
            return 0
        coords = np.stack(
            [self._blocks["x"], self._blocks["y"], self._blocks["z"]], axis=1
        )
        unique = np.unique(coords, axis=0)
        return len(coords) - len(unique)

    def to_dense(self) -> np.ndarray:
        """
        Decode into a dense grid indexed [y, x, z].

        Blocks are written in order, so when two blocks share a coordinate
        the later one wins. Blocks outside the declared size are skipped.

        Returns:
            uint8 array of shape (size.y, size.x, size.z), AIR where empty

        Raises:
            ValueError: If the declared size is negative on any axis, which
                zero-depth copy rules can produce
        """
        if any(s < 0 for s in self.size):
            raise ValueError(
                f"Map {self.name!r} has negative declared size {tuple(self.size)}"
            )
        dense = np.full(
            (self.size.y, self.size.x, self.size.z), AIR, dtype=np.uint8
        )
        b = self._blocks
        skipped = _scatter_blocks(
            dense,
            np.ascontiguousarray(b["x"], dtype=np.int64),
            np.ascontiguousarray(b["y"], dtype=np.int64),
            np.ascontiguousarray(b["z"], dtype=np.int64),
            np.ascontiguousarray(b["type"], dtype=np.uint8),
        )
        if skipped:
            logger.warning(
                "Map %r: %d blocks outside declared size %s were skipped",
                self.name, skipped, tuple(self.size)
            )
        return dense

    def count_by_type(self) -> dict:
        """Get the number of blocks of each type index."""
        types, counts = np.unique(self._blocks["type"], return_counts=True)
        return {int(t): int(c) for t, c in zip(types, counts)}
