"""Shared fixtures: small meshes written in each supported file format."""

import netCDF4
import numpy as np
import pytest

from coastmesh import Mesh

SAMPLE_MESH = (
    "Sample\n"
    "2 4\n"
    "1 0.0 0.0 0.0\n"
    "2 1.0 0.0 0.0\n"
    "3 1.0 1.0 0.0\n"
    "4 0.0 1.0 0.0\n"
    "1 3 1 2 3\n"
    "2 3 1 3 4\n"
    "0\n"
    "0\n"
    "0\n"
    "0\n"
)

# Two squares side by side: a quad on the left, two triangles on the right.
# Node and element IDs are not sequential. One open boundary along the
# bottom, a generic land boundary on the left and an internal weir pairing
# the top nodes with the bottom nodes.
BOUNDARY_MESH = (
    "Mesh with boundaries\n"
    "3 6\n"
    "10 0.0 0.0 -1.0\n"
    "20 1.0 0.0 -2.0\n"
    "30 2.0 0.0 -3.0\n"
    "40 0.0 1.0 -4.0\n"
    "50 1.0 1.0 -5.0\n"
    "60 2.0 1.0 -6.0\n"
    "7 4 10 20 50 40\n"
    "8 3 20 30 60\n"
    "9 3 20 60 50\n"
    "1\n"
    "3\n"
    "3\n"
    "10\n"
    "20\n"
    "30\n"
    "2\n"
    "4\n"
    "2 0\n"
    "40\n"
    "10\n"
    "2 4\n"
    "50 20 1.5 0.8 0.9\n"
    "60 30 2.5 0.7 0.6\n"
)

# Lon/lat mesh with more digits than a projected write keeps, an external
# weir (code 13) on the left and a culvert (code 25) across the middle.
STRUCTURE_MESH = (
    "Structures\n"
    "3 6\n"
    "10 -90.123456789 29.987654321 -12.345678\n"
    "20 -90.113456789 29.987654321 -11.25\n"
    "30 -90.103456789 29.987654321 -10.0000001\n"
    "40 -90.123456789 29.997654321 -9.5\n"
    "50 -90.113456789 29.997654321 -8.123456789\n"
    "60 -90.103456789 29.997654321 -7.0\n"
    "7 4 10 20 50 40\n"
    "8 3 20 30 60\n"
    "9 3 20 60 50\n"
    "0\n"
    "0\n"
    "2\n"
    "4\n"
    "2 13\n"
    "40 1.23456 0.987654\n"
    "10 2.5 0.75\n"
    "2 25\n"
    "50 20 1.23456 0.987654 0.876543 3.14159 0.654321 1.414214\n"
    "60 30 2.0 0.8 0.9 1.5 0.6 1.2\n"
)

SAMPLE_2DM = (
    "MESH2D\n"
    'MESHNAME "Two   triangles"\n'
    "E3T 1 1 2 3 1\n"
    "E3T 2 1 3 4 1\n"
    "ND 1 0.0 0.0 5.0\n"
    "ND 2 1.0 0.0 6.0\n"
    "ND 3 1.0 1.0 7.0\n"
    "ND 4 0.0 1.0 8.0\n"
    "NS 1 2 -3\n"
)


@pytest.fixture
def sample_mesh_file(tmp_path):
    path = tmp_path / "sample.14"
    path.write_text(SAMPLE_MESH)
    return path


@pytest.fixture
def boundary_mesh_file(tmp_path):
    path = tmp_path / "boundaries.grd"
    path.write_text(BOUNDARY_MESH)
    return path


@pytest.fixture
def structure_mesh_file(tmp_path):
    path = tmp_path / "structures.14"
    path.write_text(STRUCTURE_MESH)
    return path


@pytest.fixture
def sample_2dm_file(tmp_path):
    path = tmp_path / "sample.2dm"
    path.write_text(SAMPLE_2DM)
    return path


@pytest.fixture
def sample_mesh(sample_mesh_file):
    mesh = Mesh(str(sample_mesh_file))
    mesh.read()
    return mesh


@pytest.fixture
def boundary_mesh(boundary_mesh_file):
    mesh = Mesh(str(boundary_mesh_file))
    mesh.read()
    return mesh


def write_net_file(path, x, y, z, elem, maxnode, start_index=1, epsg=None, spherical=None):
    """Write a minimal DFlow-FM network file with netCDF4."""
    fill = netCDF4.default_fillvals['i4']
    with netCDF4.Dataset(str(path), 'w', format='NETCDF4_CLASSIC') as ncf:
        ncf.createDimension('nNetNode', len(x))
        ncf.createDimension('nNetElem', len(elem))
        ncf.createDimension('nNetElemMaxNode', maxnode)
        vx = ncf.createVariable('NetNode_x', 'f8', ('nNetNode',))
        vy = ncf.createVariable('NetNode_y', 'f8', ('nNetNode',))
        vz = ncf.createVariable('NetNode_z', 'f8', ('nNetNode',))
        ve = ncf.createVariable('NetElemNode', 'i4', ('nNetElem', 'nNetElemMaxNode'), fill_value=fill)
        ve.start_index = np.int32(start_index)
        vx[:] = x
        vy[:] = y
        vz[:] = z
        table = np.full((len(elem), maxnode), fill, dtype=np.int32)
        for i, row in enumerate(elem):
            table[i, :len(row)] = row
        ve[:] = table
        if epsg is not None:
            vcrs = ncf.createVariable('crs', 'i4')
            vcrs.EPSG = np.int32(epsg)
        if spherical is not None:
            ncf.Spherical = np.int32(spherical)
    return path


@pytest.fixture
def sample_net_file(tmp_path):
    # elements listed clockwise on purpose
    return write_net_file(
        tmp_path / "sample_net.nc",
        x=[0.0, 1.0, 1.0, 0.0, 2.0],
        y=[0.0, 0.0, 1.0, 1.0, 0.0],
        z=[1.0, 2.0, 3.0, 4.0, 5.0],
        elem=[[1, 4, 3, 2], [2, 3, 5]],
        maxnode=4,
        epsg=4326,
        spherical=1,
    )
