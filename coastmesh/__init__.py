"""
coastmesh: unstructured triangle/quadrilateral meshes for coastal ocean models.

Read, query, reproject and write ADCIRC, SMS 2dm and DFlow-FM network meshes.
"""

from .boundary import Boundary, BoundaryKind, BoundarySegment
from .config import load_config, setup_logging
from .errors import (
    ConfigError,
    DuplicateIdentityError,
    IdentityNotFoundError,
    MalformedRecordError,
    MeshError,
    MeshIndexError,
    NoFilenameError,
    TransformError,
    UnassignedSlotError,
    UnsupportedFormatError,
)
from .formats import MeshFormat, get_mesh_format
from .geometry import Element, Node
from .mesh import Mesh

__version__ = "0.1.0"

__all__ = [
    "Boundary",
    "BoundaryKind",
    "BoundarySegment",
    "ConfigError",
    "DuplicateIdentityError",
    "Element",
    "IdentityNotFoundError",
    "MalformedRecordError",
    "Mesh",
    "MeshError",
    "MeshFormat",
    "MeshIndexError",
    "NoFilenameError",
    "Node",
    "TransformError",
    "UnassignedSlotError",
    "UnsupportedFormatError",
    "get_mesh_format",
    "load_config",
    "setup_logging",
]
