"""
Delft3D Flexible Mesh network files (``*_net.nc``), UGRID-0.9 flavour.

Dimensions: nNetNode, nNetElem, nNetElemMaxNode (3 or 4), plus nNetLink and
nNetLinkPts on output. Node coordinates are NetNode_x/y/z; NetElemNode holds
one-based node indices with unused slots set to the fill value.
"""

import logging
from typing import Any, Dict

import netCDF4
import numpy as np
import xarray as xr

from ..errors import MalformedRecordError, MeshError, TransformError, UnsupportedFormatError
from ..geometry import Element, Node
from ..identity import DirectLookup
from ..projection import is_geographic
from ..topology import generate_link_table
from .base import MeshContents

logger = logging.getLogger(__name__)

HEADER = "DFlowFM-NetNC"

NODE_DIM = "nNetNode"
ELEM_DIM = "nNetElem"
MAXNODE_DIM = "nNetElemMaxNode"
LINK_DIM = "nNetLink"
LINKPTS_DIM = "nNetLinkPts"

REQUIRED_VARIABLES = ("NetNode_x", "NetNode_y", "NetNode_z", "NetElemNode")

INT_FILL = netCDF4.default_fillvals['i4']
INT64_FILL = netCDF4.default_fillvals['i8']


def _open(filename: str) -> xr.Dataset:
    try:
        return xr.open_dataset(filename, decode_cf=False, mask_and_scale=False)
    except (OSError, ValueError, RuntimeError) as e:
        raise TransformError(f"Error opening DFlow mesh file {filename}: {e}") from e


def _element_nodes(elem: np.ndarray, fill: int, filename: str):
    """Split a padded (nele, maxnode) table into per-element index rows."""
    is_fill = (elem == fill) | (elem == INT_FILL) | (elem == INT64_FILL)
    nvalid = elem.shape[1] - is_fill.sum(axis=1)
    bad = np.flatnonzero((nvalid != 3) & (nvalid != 4))
    if bad.size > 0:
        raise MalformedRecordError(
            f"Invalid element type detected: element {bad[0] + 1} has {nvalid[bad[0]]} nodes", filename
        )
    return [row[~mask] for row, mask in zip(elem, is_fill)]


def read(filename: str, config: Dict[str, Any]) -> MeshContents:
    """
    Decode a DFlow-FM network file.

    The nodes-per-element bound is checked before any array is loaded.
    Node and element IDs are the one-based positions in the file.

    Raises:
        MalformedRecordError: If a dimension or variable is missing, or an
            element row does not hold 3 or 4 nodes, or NetElemNode is not laid
            out as (nNetElem, nNetElemMaxNode).
        UnsupportedFormatError: If nNetElemMaxNode is not 3 or 4.
        TransformError: If the file cannot be opened, or it has no Spherical
            flag and its EPSG code is invalid.
    """
    ds = _open(filename)
    try:
        for dim in (NODE_DIM, ELEM_DIM, MAXNODE_DIM):
            if dim not in ds.sizes:
                raise MalformedRecordError(f"Missing dimension '{dim}'", filename)
        nod2d = int(ds.sizes[NODE_DIM])
        elem2d = int(ds.sizes[ELEM_DIM])
        maxnode = int(ds.sizes[MAXNODE_DIM])
        if maxnode < 3 or maxnode > 4:
            raise UnsupportedFormatError(
                f"{filename}: mesh must only contain triangles and quads (nNetElemMaxNode={maxnode})"
            )
        for var in REQUIRED_VARIABLES:
            if var not in ds.variables:
                raise MalformedRecordError(f"Missing variable '{var}'", filename)

        if tuple(ds['NetElemNode'].dims) != (ELEM_DIM, MAXNODE_DIM):
            raise MalformedRecordError(
                f"NetElemNode must have dimensions ({ELEM_DIM}, {MAXNODE_DIM}), got {tuple(ds['NetElemNode'].dims)}",
                filename,
            )

        elem_attrs = ds['NetElemNode'].attrs
        fill = int(elem_attrs.get('_FillValue', INT_FILL))
        start_index = int(elem_attrs.get('start_index', 1))

        xcoor = np.asarray(ds['NetNode_x'].values, dtype=float)
        ycoor = np.asarray(ds['NetNode_y'].values, dtype=float)
        zcoor = np.asarray(ds['NetNode_z'].values, dtype=float)
        elem = np.asarray(ds['NetElemNode'].values, dtype=np.int64)

        epsg = None
        if 'crs' in ds.variables and 'EPSG' in ds['crs'].attrs:
            epsg = int(ds['crs'].attrs['EPSG'])
        is_latlon = None
        if 'Spherical' in ds.attrs:
            is_latlon = bool(int(ds.attrs['Spherical']))
        elif epsg is not None:
            is_latlon = is_geographic(epsg)
    finally:
        ds.close()

    nodes = [Node(i + 1, xcoor[i], ycoor[i], zcoor[i]) for i in range(nod2d)]
    coords = np.column_stack([xcoor, ycoor])

    elements = []
    for i, row in enumerate(_element_nodes(elem, fill, filename)):
        positions = row - start_index
        if np.any(positions < 0) or np.any(positions >= nod2d):
            raise MalformedRecordError(f"Element {i + 1} references a node outside 1..{nod2d}", filename)
        element = Element(i + 1, tuple(int(p) + 1 for p in positions))
        elements.append(element.sorted_about_center(coords[positions]))

    return MeshContents(
        header=HEADER,
        nodes=nodes,
        elements=elements,
        node_lookup=DirectLookup(nod2d),
        element_lookup=DirectLookup(elem2d),
        epsg=epsg,
        is_latlon=is_latlon,
    )


def _set_coordinate_attributes(vid_x, vid_y, vid_z, is_latlon: bool) -> None:
    if is_latlon:
        vid_x.axis = 'theta'
        vid_x.long_name = 'longitude of vertex'
        vid_x.units = 'degrees_east'
        vid_x.standard_name = 'longitude'
        vid_y.axis = 'phi'
        vid_y.long_name = 'latitude of vertex'
        vid_y.units = 'degrees_north'
        vid_y.standard_name = 'latitude'
    else:
        vid_x.axis = 'X'
        vid_x.long_name = 'x-coordinate in Cartesian system'
        vid_x.units = 'metre'
        vid_x.standard_name = 'projection_x_coordinate'
        vid_y.axis = 'Y'
        vid_y.long_name = 'y-coordinate in Cartesian system'
        vid_y.units = 'metre'
        vid_y.standard_name = 'projection_y_coordinate'

    vid_z.axis = 'Z'
    vid_z.long_name = 'z-coordinate in Cartesian system'
    vid_z.units = 'metre'
    vid_z.standard_name = 'projection_z_coordinate'
    vid_z.mesh = 'Mesh2D'
    vid_z.location = 'node'


def write(mesh, filename: str, config: Dict[str, Any]) -> None:
    """
    Encode ``mesh`` as a DFlow-FM network file.

    Connectivity and links are written as one-based indices into the node
    arrays; triangle rows of NetElemNode are padded with the int fill value.

    Raises:
        MeshError: If the mesh has no elements.
        TransformError: If netCDF reports an error while writing.
    """
    mesh.check_complete()
    if mesh.num_elements == 0:
        raise MeshError("Cannot write a mesh without elements to DFlow format")

    nod2d = mesh.num_nodes
    elem2d = mesh.num_elements
    maxnode = mesh.max_nodes_per_element()
    coords = np.column_stack([mesh.x(), mesh.y()])
    conn = mesh.connectivity_positions()

    links = generate_link_table(np.arange(1, nod2d + 1), coords, conn)
    nlinks = links.shape[0]

    net_elem_node = np.full((elem2d, maxnode), INT_FILL, dtype=np.int32)
    for i, e in enumerate(mesh.elements):
        net_elem_node[i, :e.n] = [mesh.node_index_by_id(n) + 1 for n in e.nodes]

    try:
        ncf = netCDF4.Dataset(filename, 'w', format='NETCDF4_CLASSIC')
    except OSError as e:
        raise TransformError(f"Error creating DFlow mesh file {filename}: {e}") from e

    try:
        ncf.createDimension(NODE_DIM, nod2d)
        ncf.createDimension(LINK_DIM, nlinks)
        ncf.createDimension(ELEM_DIM, elem2d)
        ncf.createDimension(MAXNODE_DIM, maxnode)
        ncf.createDimension(LINKPTS_DIM, 2)

        vid_mesh2d = ncf.createVariable('Mesh2D', 'i4')
        vid_x = ncf.createVariable('NetNode_x', 'f8', (NODE_DIM,))
        vid_y = ncf.createVariable('NetNode_y', 'f8', (NODE_DIM,))
        vid_z = ncf.createVariable('NetNode_z', 'f8', (NODE_DIM,))
        vid_linktype = ncf.createVariable('NetLinkType', 'i4', (LINK_DIM,))
        vid_link = ncf.createVariable('NetLink', 'i4', (LINK_DIM, LINKPTS_DIM))
        vid_crs = ncf.createVariable('crs', 'i4')
        vid_elem = ncf.createVariable('NetElemNode', 'i4', (ELEM_DIM, MAXNODE_DIM), fill_value=INT_FILL)

        vid_mesh2d.cf_role = 'mesh_topology'
        vid_mesh2d.topology_dimension = np.int32(2)
        vid_mesh2d.node_coordinates = 'NetNode_x NetNode_y'
        vid_mesh2d.node_dimension = NODE_DIM
        vid_mesh2d.face_node_connectivity = 'NetElemNode'
        vid_mesh2d.face_dimension = ELEM_DIM
        vid_mesh2d.edge_node_connectivity = 'NetLink'
        vid_mesh2d.edge_dimension = LINK_DIM

        _set_coordinate_attributes(vid_x, vid_y, vid_z, mesh.is_latlon)
        ncf.Spherical = np.int32(1 if mesh.is_latlon else 0)
        vid_crs.EPSG = np.int32(mesh.projection)

        vid_link.start_index = np.int32(1)
        vid_elem.start_index = np.int32(1)
        ncf.Conventions = 'UGRID-0.9'

        vid_x[:] = coords[:, 0]
        vid_y[:] = coords[:, 1]
        vid_z[:] = mesh.z()
        vid_link[:] = links.astype(np.int32)
        vid_linktype[:] = np.full(nlinks, 2, dtype=np.int32)
        vid_elem[:] = net_elem_node
    except (RuntimeError, ValueError) as e:
        raise TransformError(f"Error writing DFlow mesh file {filename}: {e}") from e
    finally:
        ncf.close()

    logger.info(f"Mesh written to {filename} (DFlow-FM netCDF, {nlinks} links)")
