"""
Exception types raised by coastmesh.

Every error derives from MeshError and from the closest builtin exception,
so callers can catch either ``MeshError`` or e.g. ``ValueError``.
"""


class MeshError(Exception):
    """Base class for all mesh errors."""


class NoFilenameError(MeshError, ValueError):
    """A read was requested but no filename has been set."""


class MalformedRecordError(MeshError, ValueError):
    """A line or record could not be parsed into the expected fields."""

    def __init__(self, message: str, filename: str = None, line: int = None):
        self.filename = filename
        self.line = line
        location = ""
        if filename is not None and line is not None:
            location = f"{filename}:{line}: "
        elif filename is not None:
            location = f"{filename}: "
        super().__init__(f"{location}{message}")


class UnsupportedFormatError(MeshError, ValueError):
    """The file pattern or a declared mesh dimension is not supported."""


class IdentityNotFoundError(MeshError, KeyError):
    """No entity carries the requested external ID."""

    def __str__(self):
        # KeyError quotes its argument
        return str(self.args[0]) if self.args else ""


class DuplicateIdentityError(MeshError, ValueError):
    """The same external ID appears twice in one collection."""


class MeshIndexError(MeshError, IndexError):
    """A position-based accessor was called beyond the collection size."""


class UnassignedSlotError(MeshError):
    """A slot created by a resize has not been filled yet."""


class TransformError(MeshError, RuntimeError):
    """The geodetic or binary-table library reported an error."""


class ConfigError(MeshError, ValueError):
    """The configuration file could not be parsed."""
