"""
Conversion Errors

Every failure aborts the whole conversion run. The orchestrator stamps the
pipeline stage that produced the error onto it before re-raising, so a
failed run can be diagnosed and re-run from scratch.
"""

from typing import Optional


class ConversionError(Exception):
    """Base class for all map conversion failures."""

    def __init__(self, message: str, stage: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.stage = stage

    def __str__(self) -> str:
        if self.stage:
            return f"[{self.stage}] {self.message}"
        return self.message


class EmptyInputError(ConversionError, ValueError):
    """No voxels were supplied to normalize."""


class UnknownBlockTypeError(ConversionError, KeyError):
    """A block type name or texture is not registered in the palette."""

    def __init__(self, name, stage: Optional[str] = None):
        super().__init__(f"Unknown block type: {name!r}", stage)
        self.name = name

    # KeyError quotes its argument; keep the plain message instead
    def __str__(self) -> str:
        return ConversionError.__str__(self)


class UnsupportedAxisError(ConversionError, ValueError):
    """A copy rule asked for an axis the transforms do not implement."""


class UnsupportedCopyTypeError(ConversionError, ValueError):
    """A copy rule kind outside Rotate180 / MirrorX / MirrorZ."""


class SerializationError(ConversionError):
    """The serializer could not write or read a map."""
