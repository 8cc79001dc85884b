"""Tests for file name routing to mesh codecs."""

import pytest

from coastmesh.errors import UnsupportedFormatError
from coastmesh.formats import MeshFormat, adcirc, dflow, get_codec, get_mesh_format, sms2dm


class TestFormatRouting:
    """Tests for get_mesh_format and get_codec."""

    @pytest.mark.parametrize("filename, fmt", [
        ("fort.14", MeshFormat.ADCIRC),
        ("/data/gulf.GRD", MeshFormat.ADCIRC),
        ("mesh.2dm", MeshFormat.SMS_2DM),
        ("bay_net.nc", MeshFormat.DFLOW),
        ("/runs/v2/bay_net.nc", MeshFormat.DFLOW),
    ])
    def test_known_patterns(self, filename, fmt) -> None:
        assert get_mesh_format(filename) is fmt

    @pytest.mark.parametrize("filename", ["mesh.nc", "mesh.msh", "fort14", "_net.nc/mesh.dat"])
    def test_unknown_patterns(self, filename) -> None:
        with pytest.raises(UnsupportedFormatError):
            get_mesh_format(filename)

    def test_codecs(self) -> None:
        assert get_codec(MeshFormat.ADCIRC) is adcirc
        assert get_codec("2dm") is sms2dm
        assert get_codec(MeshFormat.DFLOW) is dflow

    def test_invalid_codec_name(self) -> None:
        with pytest.raises(UnsupportedFormatError, match="Invalid mesh format"):
            get_codec("gmsh")
