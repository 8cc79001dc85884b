"""Tests for the pyproj bridge and the CPP projection."""

import numpy as np
import pytest

from coastmesh.errors import TransformError
from coastmesh.projection import cpp, inverse_cpp, is_geographic, transform


class TestTransform:
    """Tests for EPSG to EPSG conversion."""

    def test_geographic_to_web_mercator(self) -> None:
        x, y, geographic = transform(4326, 3857, np.array([0.0, 180.0]), np.array([0.0, 0.0]))

        np.testing.assert_allclose(x, [0.0, 20037508.342789244], atol=1e-3)
        np.testing.assert_allclose(y, [0.0, 0.0], atol=1e-6)
        assert geographic is False

    def test_back_to_geographic(self) -> None:
        x, y, _ = transform(4326, 3857, np.array([-90.5]), np.array([29.25]))
        lon, lat, geographic = transform(3857, 4326, x, y)

        np.testing.assert_allclose(lon, [-90.5])
        np.testing.assert_allclose(lat, [29.25])
        assert geographic is True

    def test_is_geographic(self) -> None:
        assert is_geographic(4326)
        assert not is_geographic(32615)

    @pytest.mark.parametrize("source, target", [(-1, 4326), (4326, 999999)])
    def test_invalid_code(self, source, target) -> None:
        with pytest.raises(TransformError, match="Invalid reference system"):
            transform(source, target, np.array([0.0]), np.array([0.0]))


class TestCpp:
    """Tests for the Carte Parallelogrammatique projection."""

    def test_origin_maps_to_zero_x(self) -> None:
        x, y = cpp(-90.0, 30.0, np.array([-90.0]), np.array([0.0]))

        assert x[0] == pytest.approx(0.0)
        assert y[0] == pytest.approx(0.0)

    def test_one_degree_of_latitude(self) -> None:
        _, y = cpp(0.0, 0.0, np.array([0.0]), np.array([1.0]))

        assert y[0] == pytest.approx(6378206.4 * np.pi / 180.0)

    def test_inverse(self) -> None:
        lon = np.array([-91.2, -89.7])
        lat = np.array([28.9, 30.4])

        x, y = cpp(-90.0, 29.5, lon, lat)
        lon2, lat2 = inverse_cpp(-90.0, 29.5, x, y)

        np.testing.assert_allclose(lon2, lon)
        np.testing.assert_allclose(lat2, lat)
