"""
Tests for great-circle distance.
"""
import pytest

from discovery_service.geo import calculate_distance, haversine
from discovery_service.schemas import Coordinate

MUMBAI = Coordinate(latitude=19.0760, longitude=72.8777)
BANDRA = Coordinate(latitude=19.0544, longitude=72.8181)


class TestCalculateDistance:
    """Tests for calculate_distance."""

    @pytest.mark.parametrize(
        "a,b",
        [
            (MUMBAI, BANDRA),
            (Coordinate(latitude=51.5, longitude=-0.12), Coordinate(latitude=40.71, longitude=-74.0)),
            (Coordinate(latitude=-33.86, longitude=151.2), Coordinate(latitude=35.68, longitude=139.69)),
            (Coordinate(latitude=89.9, longitude=10), Coordinate(latitude=-89.9, longitude=-170)),
        ],
    )
    def test_symmetric(self, a, b):
        assert calculate_distance(a, b) == calculate_distance(b, a)

    def test_same_point_is_zero(self):
        assert calculate_distance(MUMBAI, MUMBAI) == pytest.approx(0.0, abs=1e-9)

    def test_mumbai_to_bandra(self):
        """Seed customer in Bandra West is ~6.7 km from central Mumbai."""
        assert calculate_distance(MUMBAI, BANDRA) == pytest.approx(6.71, abs=0.2)

    def test_antipodal_points_are_stable(self):
        a = Coordinate(latitude=0, longitude=0)
        b = Coordinate(latitude=0, longitude=180)
        assert calculate_distance(a, b) == pytest.approx(6371.0 * 3.141592653589793, rel=1e-9)

    def test_near_identical_points(self):
        d = haversine(10.0, 10.0, 10.0, 10.0 + 1e-12)
        assert 0.0 <= d < 1e-6

    def test_never_negative(self):
        assert haversine(-45, -179.999, 45, 179.999) >= 0
