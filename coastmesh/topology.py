"""
Derived mesh topology: node-to-element adjacency, the link (edge) table and
the per-node mesh size.

All routines work on position arrays:

- ``coords``: node coordinates, shape (nod2d, 2)
- ``elem2d_nodes``: element connectivity as node positions, shape (elem2d, 4).
  Triangles repeat their first node in the fourth column, so
  ``elnodes[0] == elnodes[3]`` marks a triangle.
"""

import logging
from typing import List, Tuple

import numpy as np
import pyproj
from numba import njit

from .geometry import sort_about_center

logger = logging.getLogger(__name__)


# =============================================================================
# Numba-accelerated kernels
# =============================================================================

@njit(cache=True)
def _numba_count_node_elements(nod2d: int, elem2d: int, elem2d_nodes: np.ndarray) -> np.ndarray:
    """Count the number of elements each node belongs to."""
    ne_num = np.zeros(nod2d, dtype=np.int32)
    for n in range(elem2d):
        elnodes = elem2d_nodes[n, :]
        q1 = 3 if elnodes[0] == elnodes[3] else 4
        for q in range(q1):
            ne_num[elnodes[q]] += 1
    return ne_num


@njit(cache=True)
def _numba_build_ne_pos(nod2d: int, elem2d: int, elem2d_nodes: np.ndarray, k: int) -> Tuple[np.ndarray, np.ndarray]:
    """Build node-to-element adjacency array, unused slots set to -1."""
    ne_num = np.zeros(nod2d, dtype=np.int32)
    ne_pos = np.full((nod2d, k), -1, dtype=np.int32)

    for n in range(elem2d):
        elnodes = elem2d_nodes[n, :]
        q1 = 3 if elnodes[0] == elnodes[3] else 4
        for q in range(q1):
            node = elnodes[q]
            ne_pos[node, ne_num[node]] = n
            ne_num[node] += 1

    return ne_num, ne_pos


@njit(cache=True)
def _numba_node_mean(nod2d: int, ne_num: np.ndarray, ne_pos: np.ndarray, elem_values: np.ndarray) -> np.ndarray:
    """Average an element quantity over the elements around each node; 0 for lonely nodes."""
    out = np.zeros(nod2d, dtype=np.float64)
    for n in range(nod2d):
        if ne_num[n] == 0:
            continue
        total = 0.0
        for k in range(ne_num[n]):
            total += elem_values[ne_pos[n, k]]
        out[n] = total / ne_num[n]
    return out


# =============================================================================
# Incident element table
# =============================================================================

class ElementTable:
    """
    Elements incident to each node.

    Args:
        nod2d (int): Number of nodes.
        elem2d_nodes (np.ndarray): Connectivity by node position. Shape: (elem2d, 4)

    Example:
        >>> table = ElementTable(mesh.num_nodes, mesh.connectivity_positions())
        >>> table.build()
        >>> table.element_list(0)
        [0, 1]
    """

    def __init__(self, nod2d: int, elem2d_nodes: np.ndarray):
        self.nod2d = nod2d
        self.elem2d_nodes = np.ascontiguousarray(elem2d_nodes, dtype=np.int32).reshape(-1, 4)
        self.ne_num = None
        self.ne_pos = None

    @property
    def initialized(self) -> bool:
        return self.ne_num is not None

    def build(self) -> None:
        elem2d = self.elem2d_nodes.shape[0]
        ne_num_temp = _numba_count_node_elements(self.nod2d, elem2d, self.elem2d_nodes)
        k = int(np.max(ne_num_temp)) if self.nod2d > 0 else 0
        self.ne_num, self.ne_pos = _numba_build_ne_pos(self.nod2d, elem2d, self.elem2d_nodes, k)
        logger.debug(f"Element table built: {self.nod2d} nodes, max {k} elements per node")

    def _require_built(self) -> None:
        if not self.initialized:
            self.build()

    def element_list(self, node: int) -> List[int]:
        """Positions of the elements that reference node position ``node``."""
        self._require_built()
        return [int(e) for e in self.ne_pos[node, :self.ne_num[node]]]

    def count(self, node: int) -> int:
        self._require_built()
        return int(self.ne_num[node])


# =============================================================================
# Link table and mesh size
# =============================================================================

def element_vertex_count(elem2d_nodes: np.ndarray) -> np.ndarray:
    """3 for triangle rows, 4 for quadrilateral rows."""
    elem2d_nodes = np.asarray(elem2d_nodes).reshape(-1, 4)
    return np.where(elem2d_nodes[:, 0] == elem2d_nodes[:, 3], 3, 4)


def generate_link_table(node_ids: np.ndarray, coords: np.ndarray, elem2d_nodes: np.ndarray) -> np.ndarray:
    """
    Unique undirected node links of the mesh.

    Each element is first ordered about its centroid so the result does not
    depend on the winding given in the file. Every link is written with the
    lower node ID first, duplicates shared by neighbouring elements are
    removed, and rows come back sorted.

    Args:
        node_ids (np.ndarray): External node IDs by position. Shape: (nod2d,)
        coords (np.ndarray): Node coordinates. Shape: (nod2d, 2)
        elem2d_nodes (np.ndarray): Connectivity by node position. Shape: (elem2d, 4)

    Returns:
        np.ndarray: Node ID pairs. Shape: (edge2d, 2)
    """
    node_ids = np.asarray(node_ids, dtype=np.int64)
    coords = np.asarray(coords, dtype=float)
    elem2d_nodes = np.asarray(elem2d_nodes).reshape(-1, 4)
    counts = element_vertex_count(elem2d_nodes)

    legs = []
    for elnodes, nv in zip(elem2d_nodes, counts):
        positions = elnodes[:nv]
        ordered = positions[sort_about_center(coords[positions])]
        legs.append(np.column_stack([ordered, np.roll(ordered, -1)]))

    if not legs:
        return np.empty((0, 2), dtype=np.int64)

    pairs = node_ids[np.concatenate(legs)]
    pairs = np.sort(pairs, axis=1)
    return np.unique(pairs, axis=0)


def _leg_lengths(a: np.ndarray, b: np.ndarray, geodesic: bool) -> np.ndarray:
    if geodesic:
        wgs84_geod = pyproj.Geod(ellps='WGS84')
        _, _, dist = wgs84_geod.inv(a[..., 0].ravel(), a[..., 1].ravel(),
                                    b[..., 0].ravel(), b[..., 1].ravel())
        return np.asarray(dist).reshape(a.shape[:-1])
    d = b - a
    return np.hypot(d[..., 0], d[..., 1])


def element_sizes(coords: np.ndarray, elem2d_nodes: np.ndarray, geodesic: bool = False) -> np.ndarray:
    """
    Mean side length of every element.

    Args:
        coords (np.ndarray): Node coordinates. Shape: (nod2d, 2)
        elem2d_nodes (np.ndarray): Connectivity by node position. Shape: (elem2d, 4)
        geodesic (bool): Treat coordinates as lon/lat and measure WGS84 distances.

    Returns:
        np.ndarray: Size per element. Shape: (elem2d,)
    """
    coords = np.asarray(coords, dtype=float)
    elem2d_nodes = np.asarray(elem2d_nodes).reshape(-1, 4)
    counts = element_vertex_count(elem2d_nodes)
    sizes = np.zeros(elem2d_nodes.shape[0], dtype=float)
    for nv in (3, 4):
        mask = counts == nv
        if not np.any(mask):
            continue
        conn = elem2d_nodes[mask, :nv]
        lengths = _leg_lengths(coords[conn], coords[np.roll(conn, -1, axis=1)], geodesic)
        sizes[mask] = lengths.mean(axis=1)
    return sizes


def compute_mesh_size(coords: np.ndarray, elem2d_nodes: np.ndarray,
                      table: ElementTable = None, geodesic: bool = False) -> np.ndarray:
    """
    Mean size of the elements around each node.

    Nodes that belong to no element get 0.0.

    Returns:
        np.ndarray: Size per node. Shape: (nod2d,)
    """
    coords = np.asarray(coords, dtype=float)
    nod2d = coords.shape[0]
    if table is None:
        table = ElementTable(nod2d, elem2d_nodes)
    if not table.initialized:
        table.build()
    sizes = element_sizes(coords, elem2d_nodes, geodesic)
    return _numba_node_mean(nod2d, table.ne_num, table.ne_pos, sizes)
