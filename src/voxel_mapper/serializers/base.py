"""
Serializer base class.

A serializer writes a finished SparseVoxelMap to <directory>/<name><ext>
and reads it back. Any I/O failure surfaces as SerializationError; the
converter never retries.

The map is fully encoded before the file system is touched, and written
through a temporary file that replaces the target only once complete, so
a failed write leaves any existing map untouched.
"""

from pathlib import Path
from typing import Union
import os

from ..encoding import SparseVoxelMap
from ..errors import SerializationError


class MapSerializer:
    """Common file handling for map encodings."""

    extension = ""
    binary = False

    def path_for(self, directory: Union[str, Path], name: str) -> Path:
        return Path(directory) / f"{name}{self.extension}"

    def serialize(
        self,
        voxel_map: SparseVoxelMap,
        directory: Union[str, Path],
        name: str
    ) -> Path:
        """
        Write a map to disk.

        Args:
            voxel_map: Map to write
            directory: Output directory, created if missing
            name: File name without extension

        Returns:
            Path of the written file

        Raises:
            SerializationError: If the map cannot be encoded or written
        """
        if not name:
            raise SerializationError("Map name must not be empty")

        output_path = self.path_for(directory, name)
        try:
            payload = self.encode(voxel_map)
        except ValueError as e:
            raise SerializationError(f"Cannot encode map {name!r}: {e}") from e

        temp_path = output_path.with_name(output_path.name + ".tmp")
        try:
            output_path.parent.mkdir(parents=True, exist_ok=True)
            if self.binary:
                temp_path.write_bytes(payload)
            else:
                temp_path.write_text(payload, encoding="utf-8")
            os.replace(temp_path, output_path)
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            raise SerializationError(f"Cannot write {output_path}: {e}") from e
        return output_path

    def load(self, file_path: Union[str, Path]) -> SparseVoxelMap:
        """
        Read a map from disk.

        Raises:
            SerializationError: If the file is missing or malformed
        """
        file_path = Path(file_path)
        try:
            if self.binary:
                data = file_path.read_bytes()
            else:
                data = file_path.read_text(encoding="utf-8")
            return self.decode(data)
        except (OSError, ValueError) as e:
            raise SerializationError(f"Cannot read {file_path}: {e}") from e

    def encode(self, voxel_map: SparseVoxelMap):
        raise NotImplementedError

    def decode(self, data) -> SparseVoxelMap:
        raise NotImplementedError
