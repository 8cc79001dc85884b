"""
Convert a mesh to GIS feature sets for visualization.

Three layers are produced: nodes as points, links as lines and elements as
polygons. The builders return GeoDataFrames; the ``write_*`` helpers save
them as ESRI shapefiles.
"""

import logging

import geopandas as gpd
import numpy as np
from shapely.geometry import LineString, Point, Polygon

logger = logging.getLogger(__name__)

MISSING_NODE = -1
MISSING_Z = -9999.0


def _crs(mesh):
    return f"EPSG:{mesh.projection}" if mesh.projection > 0 else None


def node_features(mesh) -> gpd.GeoDataFrame:
    """One point per node with nodeid, longitude, latitude and elevation."""
    mesh.check_complete()
    points = []
    nodeid = []
    for n in mesh.nodes:
        points.append(Point(n.x, n.y))
        nodeid.append(n.id)
    gdf = gpd.GeoDataFrame(geometry=points, crs=_crs(mesh))
    gdf['nodeid'] = np.asarray(nodeid, dtype=np.int64)
    gdf['longitude'] = mesh.x()
    gdf['latitude'] = mesh.y()
    gdf['elevation'] = mesh.z()
    return gdf


def link_features(mesh) -> gpd.GeoDataFrame:
    """One line per unique mesh link with its end node IDs and elevations."""
    mesh.check_complete()
    lines = []
    node1, node2, znode1, znode2 = [], [], [], []
    for id1, id2 in mesh.generate_link_table():
        a = mesh.node_by_id(id1)
        b = mesh.node_by_id(id2)
        lines.append(LineString([(a.x, a.y), (b.x, b.y)]))
        node1.append(a.id)
        node2.append(b.id)
        znode1.append(a.z)
        znode2.append(b.z)
    gdf = gpd.GeoDataFrame(geometry=lines, crs=_crs(mesh))
    gdf['node1'] = np.asarray(node1, dtype=np.int64)
    gdf['node2'] = np.asarray(node2, dtype=np.int64)
    gdf['znode1'] = np.asarray(znode1, dtype=float)
    gdf['znode2'] = np.asarray(znode2, dtype=float)
    return gdf


def element_features(mesh) -> gpd.GeoDataFrame:
    """
    One polygon per element.

    Attributes are elementid, node1..node4, znode1..znode4 and zmean.
    Triangles get -1 and -9999.0 in the fourth node slot.
    """
    mesh.check_complete()
    poly = []
    rows = []
    for e in mesh.elements:
        nodes = [mesh.node_by_id(n) for n in e.nodes]
        poly.append(Polygon([(n.x, n.y, n.z) for n in nodes]))
        ids = [n.id for n in nodes]
        zs = [n.z for n in nodes]
        zmean = float(np.mean(zs))
        if e.is_triangle:
            ids.append(MISSING_NODE)
            zs.append(MISSING_Z)
        rows.append([e.id] + ids + zs + [zmean])

    columns = ['elementid', 'node1', 'node2', 'node3', 'node4',
               'znode1', 'znode2', 'znode3', 'znode4', 'zmean']
    table = np.asarray(rows, dtype=float).reshape(-1, len(columns))
    gdf = gpd.GeoDataFrame(geometry=poly, crs=_crs(mesh))
    for j, name in enumerate(columns):
        if name.startswith('z'):
            gdf[name] = table[:, j]
        else:
            gdf[name] = table[:, j].astype(np.int64)
    return gdf


def _write(gdf: gpd.GeoDataFrame, output_file: str, what: str) -> None:
    gdf.to_file(output_file, driver='ESRI Shapefile')
    logger.info(f"{len(gdf)} {what} written to {output_file}")


def write_node_shapefile(mesh, output_file: str) -> None:
    _write(node_features(mesh), output_file, "nodes")


def write_link_shapefile(mesh, output_file: str) -> None:
    _write(link_features(mesh), output_file, "links")


def write_element_shapefile(mesh, output_file: str) -> None:
    _write(element_features(mesh), output_file, "elements")
