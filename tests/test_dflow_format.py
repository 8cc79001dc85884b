"""Tests for the DFlow-FM netCDF codec."""

import netCDF4
import numpy as np
import pytest

from coastmesh import Mesh, Node
from coastmesh.config import default_config
from coastmesh.errors import MalformedRecordError, MeshError, UnsupportedFormatError
from coastmesh.formats import dflow

from .conftest import write_net_file


class TestDflowRead:
    """Tests for decoding."""

    def test_sample(self, sample_net_file) -> None:
        contents = dflow.read(str(sample_net_file), default_config())

        assert contents.header == "DFlowFM-NetNC"
        assert [n.id for n in contents.nodes] == [1, 2, 3, 4, 5]
        assert contents.nodes[4] == Node(5, 2.0, 0.0, 5.0)
        assert contents.num_quads == 1
        assert contents.num_triangles == 1
        assert contents.epsg == 4326
        assert contents.is_latlon is True
        assert contents.open_boundaries == []

    def test_elements_sorted_about_centroid(self, sample_net_file) -> None:
        contents = dflow.read(str(sample_net_file), default_config())

        assert contents.elements[0].nodes == (1, 2, 3, 4)
        assert contents.elements[1].nodes == (2, 5, 3)

    def test_zero_start_index(self, tmp_path) -> None:
        path = write_net_file(tmp_path / "zero_net.nc", x=[0.0, 1.0, 0.0], y=[0.0, 0.0, 1.0],
                              z=[0.0, 0.0, 0.0], elem=[[0, 1, 2]], maxnode=3, start_index=0)

        contents = dflow.read(str(path), default_config())

        assert contents.elements[0].nodes == (1, 2, 3)
        assert contents.epsg is None
        assert contents.is_latlon is None

    def test_five_nodes_per_element_is_unsupported(self, tmp_path) -> None:
        path = write_net_file(tmp_path / "pent_net.nc", x=[0.0, 1.0, 2.0, 1.0, 0.0],
                              y=[0.0, 0.0, 1.0, 2.0, 1.0], z=[0.0] * 5,
                              elem=[[1, 2, 3, 4, 5]], maxnode=5)

        with pytest.raises(UnsupportedFormatError, match="nNetElemMaxNode=5"):
            dflow.read(str(path), default_config())

    def test_degenerate_element(self, tmp_path) -> None:
        path = write_net_file(tmp_path / "bad_net.nc", x=[0.0, 1.0, 0.0], y=[0.0, 0.0, 1.0],
                              z=[0.0, 0.0, 0.0], elem=[[1, 2]], maxnode=3)

        with pytest.raises(MalformedRecordError, match="has 2 nodes"):
            dflow.read(str(path), default_config())

    def test_node_index_out_of_range(self, tmp_path) -> None:
        path = write_net_file(tmp_path / "range_net.nc", x=[0.0, 1.0, 0.0], y=[0.0, 0.0, 1.0],
                              z=[0.0, 0.0, 0.0], elem=[[1, 2, 7]], maxnode=3)

        with pytest.raises(MalformedRecordError, match="outside 1..3"):
            dflow.read(str(path), default_config())

    def test_missing_variable(self, tmp_path) -> None:
        path = tmp_path / "novar_net.nc"
        with netCDF4.Dataset(str(path), 'w') as ncf:
            ncf.createDimension('nNetNode', 3)
            ncf.createDimension('nNetElem', 1)
            ncf.createDimension('nNetElemMaxNode', 3)
            ncf.createVariable('NetNode_x', 'f8', ('nNetNode',))[:] = [0.0, 1.0, 0.0]
            ncf.createVariable('NetElemNode', 'i4', ('nNetElem', 'nNetElemMaxNode'))[:] = [[1, 2, 3]]

        with pytest.raises(MalformedRecordError, match="Missing variable 'NetNode_y'"):
            dflow.read(str(path), default_config())

    def test_missing_dimension(self, tmp_path) -> None:
        path = tmp_path / "nodim_net.nc"
        with netCDF4.Dataset(str(path), 'w') as ncf:
            ncf.createDimension('nNetNode', 3)
            ncf.createVariable('NetNode_x', 'f8', ('nNetNode',))[:] = [0.0, 1.0, 0.0]

        with pytest.raises(MalformedRecordError, match="Missing dimension 'nNetElem'"):
            dflow.read(str(path), default_config())

    def test_transposed_element_table(self, tmp_path) -> None:
        path = tmp_path / "transposed_net.nc"
        with netCDF4.Dataset(str(path), 'w') as ncf:
            ncf.createDimension('nNetNode', 3)
            ncf.createDimension('nNetElem', 1)
            ncf.createDimension('nNetElemMaxNode', 3)
            for name, values in (('NetNode_x', [0.0, 1.0, 0.0]), ('NetNode_y', [0.0, 0.0, 1.0]),
                                 ('NetNode_z', [0.0, 0.0, 0.0])):
                ncf.createVariable(name, 'f8', ('nNetNode',))[:] = values
            ncf.createVariable('NetElemNode', 'i4', ('nNetElemMaxNode', 'nNetElem'))[:] = [[1], [2], [3]]

        with pytest.raises(MalformedRecordError, match="must have dimensions"):
            dflow.read(str(path), default_config())

    def test_geographic_flag_from_epsg(self, tmp_path) -> None:
        kwargs = dict(x=[0.0, 1.0, 0.0], y=[0.0, 0.0, 1.0], z=[0.0, 0.0, 0.0], elem=[[1, 2, 3]], maxnode=3)
        geographic = write_net_file(tmp_path / "geo_net.nc", epsg=4326, **kwargs)
        projected = write_net_file(tmp_path / "utm_net.nc", epsg=32615, **kwargs)

        geo = dflow.read(str(geographic), default_config())
        utm = dflow.read(str(projected), default_config())

        assert geo.epsg == 4326
        assert geo.is_latlon is True
        assert utm.epsg == 32615
        assert utm.is_latlon is False

    def test_spherical_flag_wins_over_epsg(self, tmp_path) -> None:
        path = write_net_file(tmp_path / "flag_net.nc", x=[0.0, 1.0, 0.0], y=[0.0, 0.0, 1.0],
                              z=[0.0, 0.0, 0.0], elem=[[1, 2, 3]], maxnode=3, epsg=4326, spherical=0)

        assert dflow.read(str(path), default_config()).is_latlon is False


class TestDflowWrite:
    """Tests for encoding."""

    def test_layout(self, sample_mesh, tmp_path) -> None:
        path = tmp_path / "out_net.nc"
        sample_mesh.define_projection(32615, False)
        sample_mesh.write(str(path))

        with netCDF4.Dataset(str(path)) as ncf:
            assert ncf.dimensions['nNetNode'].size == 4
            assert ncf.dimensions['nNetElem'].size == 2
            assert ncf.dimensions['nNetElemMaxNode'].size == 3
            assert ncf.dimensions['nNetLink'].size == 5
            assert ncf.dimensions['nNetLinkPts'].size == 2
            assert ncf.Conventions == 'UGRID-0.9'
            assert int(ncf.Spherical) == 0
            assert int(ncf['crs'].EPSG) == 32615
            assert ncf['Mesh2D'].cf_role == 'mesh_topology'
            assert ncf['NetNode_x'].units == 'metre'
            assert int(ncf['NetElemNode'].start_index) == 1
            links = np.asarray(ncf['NetLink'][:])
            assert links.tolist() == [[1, 2], [1, 3], [1, 4], [2, 3], [3, 4]]
            assert np.all(np.asarray(ncf['NetLinkType'][:]) == 2)
            elem = np.asarray(ncf['NetElemNode'][:])
            assert elem.tolist() == [[1, 2, 3], [1, 3, 4]]

    def test_triangle_rows_are_padded(self, boundary_mesh, tmp_path) -> None:
        path = tmp_path / "mixed_net.nc"
        boundary_mesh.write(str(path))

        with netCDF4.Dataset(str(path)) as ncf:
            ncf.set_auto_mask(False)
            elem = np.asarray(ncf['NetElemNode'][:])

        assert elem.shape == (3, 4)
        assert elem[0].tolist() == [1, 2, 5, 4]
        assert elem[1, 3] == dflow.INT_FILL

    def test_round_trip(self, boundary_mesh, tmp_path) -> None:
        path = tmp_path / "copy_net.nc"
        boundary_mesh.define_projection(4326, True)
        boundary_mesh.write(str(path))

        copy = Mesh(str(path))
        copy.read()

        assert copy.projection == 4326
        assert copy.is_latlon
        assert copy.num_elements == 3
        np.testing.assert_allclose(copy.xyz(), boundary_mesh.xyz())
        assert copy.node_ordering_is_logical
        assert copy.num_land_boundaries == 0

    def test_mesh_without_elements(self, tmp_path) -> None:
        mesh = Mesh()
        mesh.resize(1, 0)
        mesh.add_node(0, Node(1))

        with pytest.raises(MeshError, match="without elements"):
            mesh.write(str(tmp_path / "empty_net.nc"))
