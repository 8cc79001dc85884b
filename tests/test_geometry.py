"""Unit tests for Node, Element and the polygon helpers."""

import numpy as np
import pytest

from coastmesh.errors import MeshError
from coastmesh.geometry import (
    Element,
    Node,
    contains_point,
    edge_lengths,
    element_size,
    polygon_area,
    polygon_centroid,
    sort_about_center,
)

UNIT_SQUARE = np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0]])


class TestNode:
    """Tests for the Node class."""

    def test_node_defaults(self) -> None:
        node = Node(1)

        assert node.x == 0.0
        assert node.y == 0.0
        assert node.z == 0.0

    def test_node_casts_types(self) -> None:
        node = Node("3", "1.5", 2, np.float32(4.0))

        assert node.id == 3
        assert isinstance(node.x, float)
        assert node.y == 2.0
        assert node.z == 4.0

    def test_node_equality(self) -> None:
        assert Node(1, 1.0, 2.0, 3.0) == Node(1, 1.0, 2.0, 3.0)
        assert Node(1, 1.0, 2.0, 3.0) != Node(2, 1.0, 2.0, 3.0)

    def test_node_coordinates_property(self) -> None:
        assert Node(1, 100.0, 200.0).coordinates == (100.0, 200.0)


class TestElement:
    """Tests for the Element class."""

    def test_triangle(self) -> None:
        elem = Element(1, (1, 2, 3))

        assert elem.n == 3
        assert elem.is_triangle
        assert not elem.is_quad

    def test_quad(self) -> None:
        elem = Element(2, [1, 2, 3, 4])

        assert elem.nodes == (1, 2, 3, 4)
        assert elem.is_quad

    @pytest.mark.parametrize("nodes", [(1, 2), (1, 2, 3, 4, 5)])
    def test_invalid_vertex_count(self, nodes) -> None:
        with pytest.raises(MeshError, match="3 or 4 nodes"):
            Element(1, nodes)

    def test_legs_wrap_around(self) -> None:
        elem = Element(1, (5, 6, 7))

        assert elem.leg(0) == (5, 6)
        assert elem.leg(2) == (7, 5)
        assert elem.legs() == [(5, 6), (6, 7), (7, 5)]

    def test_sorted_about_center_is_counter_clockwise(self) -> None:
        # clockwise input
        elem = Element(1, (1, 4, 3, 2))
        xy = UNIT_SQUARE[[0, 3, 2, 1]]

        ordered = elem.sorted_about_center(xy)

        assert ordered.id == 1
        assert ordered.nodes == (1, 2, 3, 4)
        assert elem.nodes == (1, 4, 3, 2)


class TestPolygonHelpers:
    """Tests for centroid, area, ordering and containment."""

    def test_centroid(self) -> None:
        assert polygon_centroid(UNIT_SQUARE) == (0.5, 0.5)

    def test_area_ignores_winding(self) -> None:
        assert polygon_area(UNIT_SQUARE) == pytest.approx(1.0)
        assert polygon_area(UNIT_SQUARE[::-1]) == pytest.approx(1.0)

    def test_triangle_area(self) -> None:
        assert polygon_area(UNIT_SQUARE[:3]) == pytest.approx(0.5)

    def test_sort_about_center_starts_at_smallest_angle(self) -> None:
        order = sort_about_center(UNIT_SQUARE[[2, 0, 3, 1]])

        # angles about (0.5, 0.5): (0,0) is -135 degrees, the smallest
        assert list(order) == [1, 3, 0, 2]

    def test_contains_interior_point(self) -> None:
        assert contains_point(UNIT_SQUARE, 0.25, 0.75)

    def test_contains_point_on_edge(self) -> None:
        assert contains_point(UNIT_SQUARE, 1.0, 0.5)
        assert contains_point(UNIT_SQUARE, 0.0, 0.0)

    def test_does_not_contain_outside_point(self) -> None:
        assert not contains_point(UNIT_SQUARE, 1.5, 0.5)

    def test_edge_lengths_and_size(self) -> None:
        tri = np.array([[0.0, 0.0], [3.0, 0.0], [3.0, 4.0]])

        np.testing.assert_allclose(edge_lengths(tri), [3.0, 4.0, 5.0])
        assert element_size(tri) == pytest.approx(4.0)
