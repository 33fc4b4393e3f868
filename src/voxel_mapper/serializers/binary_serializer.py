"""
Binary Map Serializer

Compact encoding, roughly a fifth of the JSON size for typical maps.

File Structure (little endian):
- Header: "VMAP" magic + version (uint32)
- Name: length (uint16) + UTF-8 bytes
- Size: x, y, z (3 x uint32)
- Block count (uint32)
- Blocks: count x 7 bytes (x, y, z as int16, type as uint8)
"""

import struct

import numpy as np

from ..encoding import BLOCK_DTYPE, SparseVoxelMap
from ..errors import SerializationError
from .base import MapSerializer

VMAP_MAGIC = b'VMAP'
VMAP_VERSION = 1

_NAME_LENGTH = struct.Struct('<H')
_SIZE = struct.Struct('<III')
_COUNT = struct.Struct('<I')


class BinarySerializer(MapSerializer):
    """
    Serialize maps to .vmap files.

    Usage:
        path = BinarySerializer().serialize(voxel_map, "maps", voxel_map.name)
    """

    extension = ".vmap"
    binary = True

    def encode(self, voxel_map: SparseVoxelMap) -> bytes:
        name = voxel_map.name.encode("utf-8")
        if len(name) > 0xFFFF:
            raise ValueError("Map name too long for binary encoding")
        if any(s < 0 for s in voxel_map.size):
            raise ValueError(f"Negative map size: {tuple(voxel_map.size)}")

        blocks = np.ascontiguousarray(voxel_map.snapshot(), dtype=BLOCK_DTYPE)

        parts = [
            VMAP_MAGIC,
            struct.pack('<I', VMAP_VERSION),
            _NAME_LENGTH.pack(len(name)),
            name,
            _SIZE.pack(*voxel_map.size),
            _COUNT.pack(len(blocks)),
            blocks.tobytes(),
        ]
        return b"".join(parts)

    def decode(self, data: bytes) -> SparseVoxelMap:
        try:
            return self._decode(data)
        except struct.error as e:
            raise SerializationError(f"Truncated map data: {e}") from e

    def _decode(self, data: bytes) -> SparseVoxelMap:
        if data[:4] != VMAP_MAGIC:
            raise SerializationError(f"Invalid map file: bad magic {data[:4]!r}")

        offset = 4
        version = struct.unpack_from('<I', data, offset)[0]
        if version != VMAP_VERSION:
            raise SerializationError(f"Unsupported map version: {version}")
        offset += 4

        (name_length,) = _NAME_LENGTH.unpack_from(data, offset)
        offset += _NAME_LENGTH.size
        name = data[offset:offset + name_length].decode("utf-8")
        offset += name_length

        size = _SIZE.unpack_from(data, offset)
        offset += _SIZE.size

        (count,) = _COUNT.unpack_from(data, offset)
        offset += _COUNT.size

        expected = count * BLOCK_DTYPE.itemsize
        if len(data) - offset != expected:
            raise SerializationError(
                f"Block data length mismatch: expected {expected} bytes, "
                f"got {len(data) - offset}"
            )

        blocks = np.frombuffer(data, dtype=BLOCK_DTYPE, count=count, offset=offset)
        return SparseVoxelMap(name, blocks, size)

