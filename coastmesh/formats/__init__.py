"""
Mesh file formats and the routing from file names to codecs.

Each codec module exposes ``read(filename, config) -> MeshContents`` and
``write(mesh, filename, config)``. Adding a format means adding a module and
a MeshFormat member; callers only go through ``get_codec``.
"""

import os
from enum import Enum
from types import ModuleType

from ..errors import UnsupportedFormatError
from . import adcirc, dflow, sms2dm
from .base import MeshContents


class MeshFormat(Enum):
    ADCIRC = "adcirc"
    SMS_2DM = "2dm"
    DFLOW = "dflow"


_CODECS = {
    MeshFormat.ADCIRC: adcirc,
    MeshFormat.SMS_2DM: sms2dm,
    MeshFormat.DFLOW: dflow,
}


def get_mesh_format(filename: str) -> MeshFormat:
    """
    Route a file name to its mesh format.

    ``.14`` and ``.grd`` are ADCIRC ASCII, ``.2dm`` is SMS, and any name
    containing ``_net.nc`` is a DFlow-FM network file.

    Raises:
        UnsupportedFormatError: If the name matches none of these.
    """
    extension = os.path.splitext(str(filename))[1].lower()
    if extension in (".14", ".grd"):
        return MeshFormat.ADCIRC
    if extension == ".2dm":
        return MeshFormat.SMS_2DM
    if "_net.nc" in os.path.basename(str(filename)):
        return MeshFormat.DFLOW
    raise UnsupportedFormatError(f"Unsupported mesh file type: {filename}")


def get_codec(fmt) -> ModuleType:
    """Codec module for a MeshFormat member or its string value."""
    try:
        return _CODECS[MeshFormat(fmt)]
    except ValueError:
        raise UnsupportedFormatError(f"Invalid mesh format selected: {fmt}") from None


__all__ = ["MeshContents", "MeshFormat", "get_codec", "get_mesh_format"]
