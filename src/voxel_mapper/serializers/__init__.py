"""
Map serializers.

Supported encodings:
- JSON (.json) - Human-readable, easy to diff
- Binary (.vmap) - Compact, for shipping
"""

from pathlib import Path
from typing import Union

from .base import MapSerializer
from .json_serializer import JsonSerializer
from .binary_serializer import BinarySerializer

SERIALIZERS = {
    "json": JsonSerializer,
    "binary": BinarySerializer,
}


def get_serializer(name: str) -> MapSerializer:
    """Create a serializer by format name ("json" or "binary")."""
    try:
        return SERIALIZERS[name]()
    except KeyError:
        raise ValueError(f"Unknown map format: {name}") from None


def serializer_for_path(file_path: Union[str, Path]) -> MapSerializer:
    """Pick a serializer from a file extension."""
    suffix = Path(file_path).suffix.lower()
    for serializer_cls in SERIALIZERS.values():
        if serializer_cls.extension == suffix:
            return serializer_cls()
    raise ValueError(f"Unknown map file extension: {suffix!r}")


__all__ = [
    "MapSerializer",
    "JsonSerializer",
    "BinarySerializer",
    "SERIALIZERS",
    "get_serializer",
    "serializer_for_path",
]
