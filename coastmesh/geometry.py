"""
Geometry primitives: nodes, elements and polygon helpers.

Elements reference nodes by external ID only. Coordinates are resolved by the
owning Mesh, which hands ``(n, 2)`` coordinate arrays to the helpers below.
"""

from dataclasses import dataclass
from typing import List, Tuple

import numpy as np
from shapely.geometry import Point, Polygon

from .errors import MeshError


@dataclass
class Node:
    """A mesh vertex: external ID, planar position and elevation/depth."""
    id: int
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __post_init__(self):
        self.id = int(self.id)
        self.x = float(self.x)
        self.y = float(self.y)
        self.z = float(self.z)

    @property
    def coordinates(self) -> Tuple[float, float]:
        return self.x, self.y


@dataclass
class Element:
    """
    A triangle or quadrilateral given as an ordered tuple of node IDs.

    Args:
        id (int): External element ID.
        nodes (Tuple[int, ...]): 3 or 4 node IDs.

    Raises:
        MeshError: If the element does not reference 3 or 4 nodes.
    """
    id: int
    nodes: Tuple[int, ...]

    def __post_init__(self):
        self.id = int(self.id)
        self.nodes = tuple(int(n) for n in self.nodes)
        if len(self.nodes) not in (3, 4):
            raise MeshError(
                f"Element {self.id}: expected 3 or 4 nodes, got {len(self.nodes)}"
            )

    @property
    def n(self) -> int:
        return len(self.nodes)

    @property
    def is_triangle(self) -> bool:
        return self.n == 3

    @property
    def is_quad(self) -> bool:
        return self.n == 4

    def leg(self, j: int) -> Tuple[int, int]:
        """Return the j-th edge as (node j, node j+1), wrapping at the end."""
        return self.nodes[j % self.n], self.nodes[(j + 1) % self.n]

    def legs(self) -> List[Tuple[int, int]]:
        return [self.leg(j) for j in range(self.n)]

    def sorted_about_center(self, xy: np.ndarray) -> 'Element':
        """
        Return a copy whose vertices run counter-clockwise about the centroid.

        Args:
            xy (np.ndarray): Vertex coordinates in the current node order. Shape: (n, 2)

        Returns:
            Element: New element with reordered node IDs.
        """
        order = sort_about_center(xy)
        return Element(self.id, tuple(self.nodes[i] for i in order))


def polygon_centroid(xy: np.ndarray) -> Tuple[float, float]:
    """Mean of the vertex coordinates."""
    xy = np.asarray(xy, dtype=float)
    return float(np.mean(xy[:, 0])), float(np.mean(xy[:, 1]))


def polygon_area(xy: np.ndarray) -> float:
    """Unsigned shoelace area of a simple polygon."""
    xy = np.asarray(xy, dtype=float)
    x = xy[:, 0]
    y = xy[:, 1]
    return 0.5 * abs(float(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))))


def sort_about_center(xy: np.ndarray) -> np.ndarray:
    """
    Vertex order that runs counter-clockwise around the centroid.

    Ties in angle keep their original relative order, so the result only
    depends on the coordinates.
    """
    xy = np.asarray(xy, dtype=float)
    cx, cy = polygon_centroid(xy)
    angles = np.arctan2(xy[:, 1] - cy, xy[:, 0] - cx)
    return np.argsort(angles, kind="stable")


def contains_point(xy: np.ndarray, x: float, y: float) -> bool:
    """
    True if (x, y) lies inside or on the boundary of the polygon.

    Args:
        xy (np.ndarray): Polygon vertices. Shape: (n, 2)
        x (float): Query x coordinate.
        y (float): Query y coordinate.
    """
    polygon = Polygon(np.asarray(xy, dtype=float))
    return bool(polygon.covers(Point(x, y)))


def edge_lengths(xy: np.ndarray) -> np.ndarray:
    """Length of each polygon side, side j running from vertex j to j+1."""
    xy = np.asarray(xy, dtype=float)
    d = np.roll(xy, -1, axis=0) - xy
    return np.hypot(d[:, 0], d[:, 1])


def element_size(xy: np.ndarray) -> float:
    """Mean side length of an element."""
    return float(np.mean(edge_lengths(xy)))
