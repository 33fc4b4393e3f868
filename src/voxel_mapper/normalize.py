"""
Bounds Normalization

Raw cube positions come from an authoring scene and can sit anywhere in
world space. Normalization computes the tight bounding box and re-expresses
every position relative to its minimum corner, optionally lifting
everything by a vertical offset (1 in the map-build path, so row y=0 is
left free for the bedrock layer).

The map height is not derived from data: it is the world-wide MAX_HEIGHT
constant shared with the runtime.
"""

from typing import NamedTuple
import numpy as np

from .encoding import MapSize, MAX_HEIGHT, INT16_MIN, INT16_MAX
from .errors import EmptyInputError


class FootprintBounds(NamedTuple):
    """
    Inclusive X/Z extent of the raw input positions.

    Captured once before any copy rule runs; transforms are always computed
    against these values, never against the grown map.
    """
    min_x: int
    max_x: int
    min_z: int
    max_z: int

    @property
    def span_x(self) -> int:
        """max_x - min_x"""
        return self.max_x - self.min_x

    @property
    def span_z(self) -> int:
        """max_z - min_z"""
        return self.max_z - self.min_z


class NormalizedPositions(NamedTuple):
    """Result of normalize_positions."""
    positions: np.ndarray   # (N, 3) int64 shifted positions
    size: MapSize
    bounds: FootprintBounds


def normalize_positions(
    positions,
    y_offset: int = 1,
    max_height: int = MAX_HEIGHT
) -> NormalizedPositions:
    """
    Shift positions so the bounding box minimum becomes the origin.

    Args:
        positions: Sequence or (N, 3) array of integer (x, y, z)
        y_offset: Added to every shifted y
        max_height: Declared vertical size of the map

    Returns:
        NormalizedPositions with positions (x-minX, y-minY+y_offset, z-minZ),
        size (maxX-minX+1, max_height, maxZ-minZ+1) and the footprint bounds

    Raises:
        EmptyInputError: If no positions were given
        ValueError: If a shifted coordinate does not fit int16
    """
    raw = np.asarray(positions, dtype=np.int64)
    if raw.size == 0:
        raise EmptyInputError("No voxels to normalize")
    raw = raw.reshape(-1, 3)

    min_corner = raw.min(axis=0)
    max_corner = raw.max(axis=0)

    shifted = raw - min_corner
    shifted[:, 1] += y_offset

    if shifted.min() < INT16_MIN or shifted.max() > INT16_MAX:
        raise ValueError(
            f"Map extent {tuple(max_corner - min_corner + 1)} does not fit int16 coordinates"
        )

    bounds = FootprintBounds(
        int(min_corner[0]), int(max_corner[0]),
        int(min_corner[2]), int(max_corner[2])
    )
    size = MapSize(bounds.span_x + 1, int(max_height), bounds.span_z + 1)

    return NormalizedPositions(shifted, size, bounds)
