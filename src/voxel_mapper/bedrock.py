"""
Bedrock layer synthesis.
"""

import numpy as np

from .encoding import SparseVoxelMap, make_blocks

# Default palette index of the indestructible block type
BEDROCK_TYPE = 1


def synthesize_bedrock(voxel_map: SparseVoxelMap, block_type: int = BEDROCK_TYPE) -> int:
    """
    Append one indestructible block at y=0 for every footprint cell.

    Covers [0, size.x) x [0, size.z) of the size at call time. Run it before
    copy rules: regions added later get no bedrock of their own.

    Returns:
        Number of blocks appended
    """
    # x-major, z-minor order
    xs, zs = np.meshgrid(
        np.arange(voxel_map.size.x), np.arange(voxel_map.size.z), indexing="ij"
    )
    count = xs.size
    layer = make_blocks(
        xs.ravel(), np.zeros(count, dtype=np.int64), zs.ravel(),
        np.full(count, block_type, dtype=np.int64)
    )
    voxel_map.extend(layer)
    return count
