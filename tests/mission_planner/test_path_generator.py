"""Path interpolation between waypoints."""

import pytest

from geosim.errors import BoundaryNotSet, InsufficientWaypoints, InvalidStepCount, OutOfBounds
from geosim.models.geofence import Coordinate
from geosim.modules.mission_planner.path_generator import (
    LegJoinPolicy,
    PathGenerator,
    path_length_meters,
    resolve_step_count,
    validate_waypoints,
)

A = Coordinate(0.1, 0.2)
B = Coordinate(0.7, 0.9)
C = Coordinate(0.3, 0.5)


@pytest.fixture
def generator():
    return PathGenerator()


class TestInterpolate:
    @pytest.mark.parametrize("n", [2, 3, 10, 57])
    def test_single_leg_point_count_and_exact_endpoints(self, generator, n):
        path = generator.interpolate([A, B], n)

        assert len(path) == n
        assert path[0] == A
        assert path[-1] == B

    def test_intermediate_points_are_linear(self, generator):
        path = generator.interpolate([A, B], 5)

        for i, point in enumerate(path):
            t = i / 4
            assert point.latitude == pytest.approx(A.latitude + t * (B.latitude - A.latitude))
            assert point.longitude == pytest.approx(A.longitude + t * (B.longitude - A.longitude))

    def test_duplicate_policy_repeats_shared_waypoint(self, generator):
        path = generator.interpolate([A, B, C], 4)

        assert len(path) == 8
        assert path[3] == B
        assert path[4] == B
        assert path[-1] == C

    def test_deduplicate_policy(self):
        path = PathGenerator(LegJoinPolicy.DEDUPLICATE).interpolate([A, B, C], 4)

        assert len(path) == 7
        assert path[3] == B
        assert path[4] != B
        assert path[-1] == C

    def test_policy_override_per_call(self, generator):
        assert len(generator.interpolate([A, B, C], 4, "deduplicate")) == 7

    def test_accepts_plain_pairs(self, generator):
        path = generator.interpolate([(0, 0), (0, 1)], 3)
        assert path[1] == Coordinate(0, 0.5)

    def test_deterministic(self, generator):
        assert generator.interpolate([A, B, C], 6) == generator.interpolate([A, B, C], 6)

    def test_input_not_mutated(self, generator):
        waypoints = [A, B]
        generator.interpolate(waypoints, 4)
        assert waypoints == [A, B]

    @pytest.mark.parametrize("waypoints", [[], [A]])
    def test_insufficient_waypoints(self, generator, waypoints):
        with pytest.raises(InsufficientWaypoints):
            generator.interpolate(waypoints, 5)

    @pytest.mark.parametrize("steps", [1, 0, -3, 2.5, "5", True, None])
    def test_invalid_step_count(self, generator, steps):
        with pytest.raises(InvalidStepCount):
            generator.interpolate([A, B], steps)


class TestResolveStepCount:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("5", 5),
            (" 12 ", 12),
            ("12.0", 12),
            (7.9, 7),
            (20, 20),
            ("abc", 10),
            ("", 10),
            (None, 10),
            ("1", 10),
            (0, 10),
            (-4, 10),
            (float("nan"), 10),
            ("1e400", 10),
        ],
    )
    def test_fallback(self, raw, expected):
        assert resolve_step_count(raw) == expected

    def test_custom_default(self):
        assert resolve_step_count("x", default=25) == 25


class TestWaypointValidation:
    def test_requires_boundary(self):
        with pytest.raises(BoundaryNotSet):
            validate_waypoints(None, [A, B])

    def test_inside(self, square_manager):
        assert validate_waypoints(square_manager.boundary, [(0.1, 0.1), (0.9, 0.9)]) == [
            Coordinate(0.1, 0.1),
            Coordinate(0.9, 0.9),
        ]

    def test_reports_offending_index(self, square_manager):
        with pytest.raises(OutOfBounds, match="Waypoint 1"):
            validate_waypoints(square_manager.boundary, [(0.1, 0.1), (1.5, 0.5), (0.2, 0.2)])


def test_path_length_meters():
    path = PathGenerator().interpolate([(0, 0), (0, 1)], 11)
    assert path_length_meters(path) == pytest.approx(111_319.5, rel=1e-3)
