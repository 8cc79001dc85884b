"""
Nearest-neighbour search over node positions and element centroids.

Trees are built lazily on the first query and kept until the owning mesh
marks them stale. A stale or absent tree is rebuilt before the next query.
"""

import logging
from typing import Callable, List, Optional

import numpy as np
from scipy.spatial import cKDTree

from .cache import CacheState
from .errors import MeshError

logger = logging.getLogger(__name__)


class SearchTree:
    """
    A cKDTree over a set of 2D points supplied by a callback.

    Args:
        label (str): Name used in log messages ("nodal", "elemental").
        points (Callable[[], np.ndarray]): Returns the current points. Shape: (n, 2)
    """

    def __init__(self, label: str, points: Callable[[], np.ndarray]):
        self.label = label
        self._points = points
        self._tree = None
        self._count = 0
        self.state = CacheState.ABSENT

    def __repr__(self):
        return f"SearchTree({self.label!r}, state={self.state.value})"

    @property
    def initialized(self) -> bool:
        return self.state is CacheState.PRESENT

    @property
    def size(self) -> int:
        self.ensure()
        return self._count

    def build(self) -> None:
        points = np.asarray(self._points(), dtype=float).reshape(-1, 2)
        self._count = points.shape[0]
        self._tree = cKDTree(points) if self._count > 0 else None
        self.state = CacheState.PRESENT
        logger.debug(f"Built {self.label} search tree with {points.shape[0]} points")

    def ensure(self) -> None:
        if self.state is not CacheState.PRESENT:
            self.build()

    def invalidate(self) -> None:
        if self.state is CacheState.PRESENT:
            self.state = CacheState.STALE

    def delete(self) -> None:
        self._tree = None
        self._count = 0
        self.state = CacheState.ABSENT

    def nearest(self, x: float, y: float) -> int:
        """Position of the closest point to (x, y)."""
        self.ensure()
        if self._count == 0:
            raise MeshError(f"The {self.label} search tree is empty")
        _, ind = self._tree.query([x, y], k=1)
        return int(ind)

    def nearest_k(self, x: float, y: float, k: int) -> List[int]:
        """
        Positions of the ``k`` closest points, nearest first.

        Fewer than ``k`` positions come back when the tree holds fewer points.
        """
        self.ensure()
        if k < 1:
            raise ValueError(f"k must be positive, got {k}")
        k = min(k, self._count)
        if k == 0:
            return []
        _, inds = self._tree.query([x, y], k=k)
        return [int(i) for i in np.atleast_1d(inds)]


def locate_point(tree: SearchTree, x: float, y: float, depth: int,
                 contains: Callable[[int, float, float], bool]) -> Optional[int]:
    """
    Find the element holding (x, y) among the ``depth`` nearest centroids.

    Candidates are tried in order of centroid distance. The search does not
    widen beyond ``depth`` candidates.

    Returns:
        Optional[int]: Element position, or None when no candidate holds the point.
    """
    for candidate in tree.nearest_k(x, y, depth):
        if contains(candidate, x, y):
            return candidate
    return None
