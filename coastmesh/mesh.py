"""
The Mesh aggregate: nodes, elements, boundaries and everything derived
from them.

Example:
    >>> mesh = Mesh("fort.14")
    >>> mesh.read()
    >>> mesh.define_projection(4326, True)
    >>> mesh.find_element(-90.1, 29.5)
    1234
    >>> mesh.write("mesh_net.nc")
"""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import numpy as np

from . import projection, shapefile, topology
from .boundary import OPEN_BOUNDARY_CODE, Boundary
from .cache import CacheState
from .config import resolve_config
from .errors import MeshError, MeshIndexError, NoFilenameError, UnassignedSlotError
from .formats import MeshContents, MeshFormat, get_codec, get_mesh_format
from .geometry import Element, Node, contains_point, polygon_area, polygon_centroid
from .identity import IdentityIndex
from .spatial import SearchTree, locate_point

logger = logging.getLogger(__name__)

# meshes are lon/lat WGS84 until told otherwise
DEFAULT_EPSG = 4326


class Mesh:
    """
    An unstructured triangle/quadrilateral mesh with open and land boundaries.

    The mesh owns the node storage. Elements and boundaries refer to nodes by
    external ID and are resolved through the node ID index. The ID indices and
    the two search trees are caches: every mutation made through this class
    marks them stale and they are rebuilt on the next query. Changing node
    coordinates directly on a Node object is not seen by the mesh; call
    ``invalidate_search_trees`` afterwards.

    Args:
        filename (str): Mesh file to read from. Optional.
        config (Dict[str, Any]): Partial configuration merged over the defaults.
    """

    def __init__(self, filename: Optional[str] = None, config: Optional[Dict[str, Any]] = None):
        self._filename = filename
        self.config = resolve_config(config)
        self._node_index = IdentityIndex("node")
        self._element_index = IdentityIndex("element")
        self._nodal_tree = SearchTree("nodal", self._node_points)
        self._elemental_tree = SearchTree("elemental", self._element_centroids)
        self._init()

    def _init(self) -> None:
        """Wipe all mesh data and derived caches."""
        self.header = ""
        self._nodes: List[Optional[Node]] = []
        self._elements: List[Optional[Element]] = []
        self._open_boundaries: List[Boundary] = []
        self._land_boundaries: List[Boundary] = []
        self._epsg = DEFAULT_EPSG
        self._is_latlon = True
        self._node_index.reset()
        self._element_index.reset()
        self._nodal_tree.delete()
        self._elemental_tree.delete()

    def __repr__(self):
        return (f"Mesh(header={self.header!r}, nodes={self.num_nodes}, elements={self.num_elements}, "
                f"open_boundaries={self.num_open_boundaries}, land_boundaries={self.num_land_boundaries})")

    # ------------------------------------------------------------------
    # Sizes and collections
    # ------------------------------------------------------------------

    @property
    def filename(self) -> Optional[str]:
        return self._filename

    @filename.setter
    def filename(self, filename: str) -> None:
        self._filename = filename

    @property
    def num_nodes(self) -> int:
        return len(self._nodes)

    @property
    def num_elements(self) -> int:
        return len(self._elements)

    @property
    def num_open_boundaries(self) -> int:
        return len(self._open_boundaries)

    @property
    def num_land_boundaries(self) -> int:
        return len(self._land_boundaries)

    @property
    def nodes(self) -> List[Node]:
        return list(self._nodes)

    @property
    def elements(self) -> List[Element]:
        return list(self._elements)

    @property
    def open_boundaries(self) -> List[Boundary]:
        return list(self._open_boundaries)

    @property
    def land_boundaries(self) -> List[Boundary]:
        return list(self._land_boundaries)

    def total_open_boundary_nodes(self) -> int:
        return sum(b.length for b in self._open_boundaries)

    def total_land_boundary_nodes(self) -> int:
        return sum(b.length for b in self._land_boundaries)

    def max_nodes_per_element(self) -> int:
        self.check_complete()
        return max((e.n for e in self._elements), default=0)

    def check_complete(self) -> None:
        """
        Raises:
            UnassignedSlotError: If a slot created by ``resize`` was never filled.
        """
        for label, items in (("Node", self._nodes), ("Element", self._elements)):
            for i, item in enumerate(items):
                if item is None:
                    raise UnassignedSlotError(f"{label} slot {i} has not been assigned")

    # ------------------------------------------------------------------
    # Reading and writing
    # ------------------------------------------------------------------

    def read(self, fmt=None) -> None:
        """
        Read the mesh from ``filename``, replacing all current data.

        Args:
            fmt (MeshFormat): Format of the file. Guessed from the file name if None.

        Raises:
            NoFilenameError: If no filename has been specified.
            FileNotFoundError: If the file does not exist.
            UnsupportedFormatError: If the format cannot be determined.
            MalformedRecordError: If the file content does not parse.
        """
        if not self._filename:
            raise NoFilenameError("No filename has been specified.")
        path = Path(self._filename)
        if not path.exists():
            raise FileNotFoundError(f"Mesh file not found: {path.absolute()}")

        if fmt is None:
            fmt = get_mesh_format(self._filename)
        codec = get_codec(fmt)
        fmt = MeshFormat(fmt)

        self._init()
        contents = codec.read(str(self._filename), self.config)
        self._adopt(contents)

        logger.info(f"Mesh has been read from {self._filename} ({fmt.value}): "
                    f"{self.num_nodes} nodes and {self.num_elements} elements.")
        logger.info(f"  The mesh includes {contents.num_triangles} triangles "
                    f"and {contents.num_quads} quadrilaterals")
        logger.info(f"  Open boundaries: {self.num_open_boundaries} "
                    f"({self.total_open_boundary_nodes()} nodes), land boundaries: "
                    f"{self.num_land_boundaries} ({self.total_land_boundary_nodes()} nodes)")

    def _adopt(self, contents: MeshContents) -> None:
        self.header = contents.header
        self._nodes = list(contents.nodes)
        self._elements = list(contents.elements)
        self._open_boundaries = list(contents.open_boundaries)
        self._land_boundaries = list(contents.land_boundaries)

        if contents.node_lookup is not None:
            self._node_index.adopt(contents.node_lookup)
        else:
            self._node_index.build([n.id for n in self._nodes])
        if contents.element_lookup is not None:
            self._element_index.adopt(contents.element_lookup)
        else:
            self._element_index.build([e.id for e in self._elements])

        if contents.epsg is not None:
            self._epsg = contents.epsg
        if contents.is_latlon is not None:
            self._is_latlon = contents.is_latlon

    def write(self, output_file: str, fmt=None) -> None:
        """
        Write the mesh to ``output_file``.

        Args:
            output_file (str): Destination path.
            fmt (MeshFormat): Output format. Guessed from the file name if None.
        """
        if fmt is None:
            fmt = get_mesh_format(output_file)
        get_codec(fmt).write(self, str(output_file), self.config)

    # ------------------------------------------------------------------
    # Access by position and by ID
    # ------------------------------------------------------------------

    @staticmethod
    def _at(items: list, index: int, label: str):
        if not 0 <= index < len(items):
            raise MeshIndexError(f"Mesh: {label} index {index} out of bounds")
        item = items[index]
        if item is None:
            raise UnassignedSlotError(f"{label.capitalize()} slot {index} has not been assigned")
        return item

    def node(self, index: int) -> Node:
        return self._at(self._nodes, index, "node")

    def element(self, index: int) -> Element:
        return self._at(self._elements, index, "element")

    def open_boundary(self, index: int) -> Boundary:
        return self._at(self._open_boundaries, index, "open boundary")

    def land_boundary(self, index: int) -> Boundary:
        return self._at(self._land_boundaries, index, "land boundary")

    def _node_ids(self) -> IdentityIndex:
        if self._node_index.state is not CacheState.PRESENT:
            self.check_complete()
            self._node_index.build([n.id for n in self._nodes])
        return self._node_index

    def _element_ids(self) -> IdentityIndex:
        if self._element_index.state is not CacheState.PRESENT:
            self.check_complete()
            self._element_index.build([e.id for e in self._elements])
        return self._element_index

    def node_index_by_id(self, node_id: int) -> int:
        """Position of node ``node_id``; raises IdentityNotFoundError if absent."""
        return self._node_ids().position(node_id)

    def element_index_by_id(self, element_id: int) -> int:
        return self._element_ids().position(element_id)

    def node_by_id(self, node_id: int) -> Node:
        return self._nodes[self.node_index_by_id(node_id)]

    def element_by_id(self, element_id: int) -> Element:
        return self._elements[self.element_index_by_id(element_id)]

    @property
    def node_ordering_is_logical(self) -> bool:
        """True if node IDs are 1..n in storage order."""
        return self._node_ids().is_logical

    @property
    def element_ordering_is_logical(self) -> bool:
        return self._element_ids().is_logical

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def _invalidate(self) -> None:
        self._node_index.invalidate()
        self._element_index.invalidate()
        self.invalidate_search_trees()

    def resize(self, num_nodes: int, num_elements: int,
               num_open_boundaries: Optional[int] = None, num_land_boundaries: Optional[int] = None) -> None:
        """
        Grow or shrink the collections.

        New node and element slots are unassigned until filled with
        ``add_node`` / ``add_element``. New boundaries are empty.
        """
        def fit(items, size, make):
            if size < 0:
                raise MeshError(f"Cannot resize to a negative size ({size})")
            del items[size:]
            items.extend(make() for _ in range(size - len(items)))

        fit(self._nodes, num_nodes, lambda: None)
        fit(self._elements, num_elements, lambda: None)
        if num_open_boundaries is not None:
            fit(self._open_boundaries, num_open_boundaries, lambda: Boundary(OPEN_BOUNDARY_CODE))
        if num_land_boundaries is not None:
            fit(self._land_boundaries, num_land_boundaries, lambda: Boundary(0))
        self._invalidate()

    def add_node(self, index: int, node: Node) -> None:
        """Place ``node`` in slot ``index``, replacing what was there."""
        if not 0 <= index < self.num_nodes:
            raise MeshIndexError(f"Mesh: node index {index} > number of nodes")
        self._nodes[index] = node
        self._invalidate()

    def delete_node(self, index: int) -> None:
        """
        Remove the node at ``index``; later nodes shift forward.

        Elements or boundaries that still reference the node's ID fail to
        resolve afterwards.
        """
        if not 0 <= index < self.num_nodes:
            raise MeshIndexError(f"Mesh: node index {index} > number of nodes")
        del self._nodes[index]
        self._invalidate()

    def add_element(self, index: int, element: Element) -> None:
        if not 0 <= index < self.num_elements:
            raise MeshIndexError(f"Mesh: element index {index} > number of elements")
        self._elements[index] = element
        self._invalidate()

    def delete_element(self, index: int) -> None:
        if not 0 <= index < self.num_elements:
            raise MeshIndexError(f"Mesh: element index {index} > number of elements")
        del self._elements[index]
        self._invalidate()

    def add_open_boundary(self, boundary: Boundary) -> None:
        if not boundary.is_open:
            raise MeshError(f"Open boundaries must use code {OPEN_BOUNDARY_CODE}, got {boundary.code}")
        self._check_boundary_nodes(boundary)
        self._open_boundaries.append(boundary)

    def add_land_boundary(self, boundary: Boundary) -> None:
        if boundary.is_open:
            raise MeshError("Land boundaries need a boundary condition code")
        self._check_boundary_nodes(boundary)
        self._land_boundaries.append(boundary)

    def _check_boundary_nodes(self, boundary: Boundary) -> None:
        index = self._node_ids()
        for node_id in boundary.node_ids():
            index.position(node_id)

    def set_z(self, z) -> None:
        """Set the z value of every node from a sequence in node order."""
        z = np.asarray(z, dtype=float).ravel()
        if z.size != self.num_nodes:
            raise MeshError(f"Expected {self.num_nodes} z values, got {z.size}")
        self.check_complete()
        for n, value in zip(self._nodes, z):
            n.z = float(value)

    # ------------------------------------------------------------------
    # Array views
    # ------------------------------------------------------------------

    def x(self) -> np.ndarray:
        self.check_complete()
        return np.array([n.x for n in self._nodes], dtype=float)

    def y(self) -> np.ndarray:
        self.check_complete()
        return np.array([n.y for n in self._nodes], dtype=float)

    def z(self) -> np.ndarray:
        self.check_complete()
        return np.array([n.z for n in self._nodes], dtype=float)

    def xyz(self) -> np.ndarray:
        """Node coordinates and z. Shape: (nod2d, 3)"""
        return np.column_stack([self.x(), self.y(), self.z()]).reshape(-1, 3)

    def connectivity(self) -> List[Tuple[int, ...]]:
        """Node IDs of every element."""
        self.check_complete()
        return [e.nodes for e in self._elements]

    def connectivity_positions(self) -> np.ndarray:
        """
        Element connectivity as node positions. Shape: (elem2d, 4)

        Triangles repeat their first node in the fourth column.
        """
        self.check_complete()
        index = self._node_ids()
        elem2d_nodes = np.empty((self.num_elements, 4), dtype=np.int32)
        for i, e in enumerate(self._elements):
            positions = [index.position(n) for n in e.nodes]
            if e.is_triangle:
                positions.append(positions[0])
            elem2d_nodes[i, :] = positions
        return elem2d_nodes

    def element_xy(self, index: int) -> np.ndarray:
        """Vertex coordinates of element ``index``. Shape: (n, 2)"""
        e = self.element(index)
        nodes = [self.node_by_id(n) for n in e.nodes]
        return np.array([(n.x, n.y) for n in nodes], dtype=float)

    def element_centroid(self, index: int) -> Tuple[float, float]:
        return polygon_centroid(self.element_xy(index))

    def element_area(self, index: int) -> float:
        return polygon_area(self.element_xy(index))

    def element_contains(self, index: int, x: float, y: float) -> bool:
        return contains_point(self.element_xy(index), x, y)

    # ------------------------------------------------------------------
    # Topology
    # ------------------------------------------------------------------

    def element_table(self) -> topology.ElementTable:
        """Incident-element table; node and element entries are positions."""
        table = topology.ElementTable(self.num_nodes, self.connectivity_positions())
        table.build()
        return table

    def generate_link_table(self) -> List[Tuple[int, int]]:
        """Unique undirected links as (lower node ID, higher node ID), sorted."""
        coords = np.column_stack([self.x(), self.y()])
        node_ids = np.array([n.id for n in self._nodes], dtype=np.int64)
        links = topology.generate_link_table(node_ids, coords, self.connectivity_positions())
        return [(int(a), int(b)) for a, b in links]

    def compute_mesh_size(self, geodesic: bool = False) -> np.ndarray:
        """
        Average size of the elements connected to each node.

        Args:
            geodesic (bool): Measure WGS84 distances; needs a geographic mesh.

        Returns:
            np.ndarray: Size per node, 0.0 for nodes outside every element.
        """
        if geodesic and not self._is_latlon:
            raise MeshError("Geodesic mesh size needs a geographic (lat/lon) mesh")
        coords = np.column_stack([self.x(), self.y()])
        conn = self.connectivity_positions()
        table = topology.ElementTable(self.num_nodes, conn)
        return topology.compute_mesh_size(coords, conn, table, geodesic)

    # ------------------------------------------------------------------
    # Projection
    # ------------------------------------------------------------------

    def define_projection(self, epsg: int, is_latlon: bool) -> None:
        """Record the reference system of the coordinates. Does not reproject."""
        self._epsg = int(epsg)
        self._is_latlon = bool(is_latlon)

    @property
    def projection(self) -> int:
        """EPSG code of the current reference system (4326 until defined)."""
        return self._epsg

    @property
    def is_latlon(self) -> bool:
        return self._is_latlon

    def reproject(self, epsg: int) -> None:
        """
        Convert all node coordinates to EPSG ``epsg``.

        All points are converted before any node is touched, so on error the
        coordinates and the projection descriptor are unchanged.

        Raises:
            TransformError: If the current or target system is invalid or a
                point cannot be converted.
        """
        epsg = int(epsg)
        if epsg == self._epsg:
            logger.info(f"Mesh is already in EPSG:{epsg}")
            return
        xout, yout, is_latlon = projection.transform(self._epsg, epsg, self.x(), self.y())
        for n, xi, yi in zip(self._nodes, xout, yout):
            n.x = float(xi)
            n.y = float(yi)
        logger.info(f"Mesh reprojected from EPSG:{self._epsg} to EPSG:{epsg}")
        self.define_projection(epsg, is_latlon)
        self.invalidate_search_trees()

    def cpp(self, lambda0: float, phi0: float) -> None:
        """Convert node coordinates to the CPP projection about (lambda0, phi0)."""
        xout, yout = projection.cpp(lambda0, phi0, self.x(), self.y())
        self._set_xy(xout, yout)

    def inverse_cpp(self, lambda0: float, phi0: float) -> None:
        """Convert node coordinates back from the CPP projection."""
        xout, yout = projection.inverse_cpp(lambda0, phi0, self.x(), self.y())
        self._set_xy(xout, yout)

    def _set_xy(self, x: np.ndarray, y: np.ndarray) -> None:
        for n, xi, yi in zip(self._nodes, x, y):
            n.x = float(xi)
            n.y = float(yi)
        self.invalidate_search_trees()

    # ------------------------------------------------------------------
    # Spatial search
    # ------------------------------------------------------------------

    def _node_points(self) -> np.ndarray:
        return np.column_stack([self.x(), self.y()]).reshape(-1, 2)

    def _element_centroids(self) -> np.ndarray:
        coords = self._node_points()
        conn = self.connectivity_positions()
        if conn.shape[0] == 0:
            return np.empty((0, 2), dtype=float)
        counts = topology.element_vertex_count(conn)
        sums = coords[conn[:, :3]].sum(axis=1)
        sums += np.where((counts == 4)[:, None], coords[conn[:, 3]], 0.0)
        return sums / counts[:, None]

    def build_nodal_search_tree(self) -> None:
        self._nodal_tree.build()

    def build_elemental_search_tree(self) -> None:
        self._elemental_tree.build()

    def delete_nodal_search_tree(self) -> None:
        self._nodal_tree.delete()

    def delete_elemental_search_tree(self) -> None:
        self._elemental_tree.delete()

    def nodal_search_tree_initialized(self) -> bool:
        return self._nodal_tree.initialized

    def elemental_search_tree_initialized(self) -> bool:
        return self._elemental_tree.initialized

    def invalidate_search_trees(self) -> None:
        """Mark both trees stale after coordinates or connectivity changed."""
        self._nodal_tree.invalidate()
        self._elemental_tree.invalidate()

    def find_nearest_node(self, x: float, y: float) -> int:
        """Position of the node closest to (x, y)."""
        return self._nodal_tree.nearest(x, y)

    def find_nearest_element(self, x: float, y: float) -> int:
        """Position of the element whose centroid is closest to (x, y)."""
        return self._elemental_tree.nearest(x, y)

    def find_nearest_elements(self, x: float, y: float, k: int) -> List[int]:
        """Positions of the ``k`` elements with the closest centroids, nearest first."""
        return self._elemental_tree.nearest_k(x, y, k)

    def find_element(self, x: float, y: float) -> Optional[int]:
        """
        Position of the element containing (x, y).

        Only the ``search.element_search_depth`` elements with the closest
        centroids are tested.

        Returns:
            Optional[int]: Element position, or None if no candidate contains the point.
        """
        depth = int(self.config["search"]["element_search_depth"])
        return locate_point(self._elemental_tree, x, y, depth, self.element_contains)

    # ------------------------------------------------------------------
    # GIS export
    # ------------------------------------------------------------------

    def to_node_shapefile(self, output_file: str) -> None:
        shapefile.write_node_shapefile(self, output_file)

    def to_connectivity_shapefile(self, output_file: str) -> None:
        shapefile.write_link_shapefile(self, output_file)

    def to_element_shapefile(self, output_file: str) -> None:
        shapefile.write_element_shapefile(self, output_file)
