"""
Path Generator - Densify waypoint sequences into playback paths

This module generates:
- Evenly spaced lat/lon points along each leg between waypoints
- Multi-leg routes with a configurable leg join policy
- Step count fallback for free-form user input
- Boundary checks and geodesic length for waypoint sequences
"""

import math
from enum import Enum
from typing import Any, List, Optional, Sequence, Union

import numpy as np

from geosim.errors import BoundaryNotSet, InsufficientWaypoints, InvalidStepCount, OutOfBounds
from geosim.models.geofence import Boundary, Coordinate, to_coordinates
from geosim.modules.geofence_manager.spatial_operations import SpatialOperations
from geosim.utils.logger import get_logger

DEFAULT_STEPS_PER_LEG = 10


class LegJoinPolicy(Enum):
    """How the waypoint shared by two consecutive legs is emitted"""
    DUPLICATE = "duplicate"
    DEDUPLICATE = "deduplicate"


def resolve_step_count(raw: Any, default: int = DEFAULT_STEPS_PER_LEG) -> int:
    """Parse a user supplied step count, falling back to default when unusable"""

    if raw is None or isinstance(raw, bool):
        return default

    try:
        if isinstance(raw, str):
            raw = raw.strip()
            steps = int(float(raw)) if raw else default
        else:
            value = float(raw)
            if math.isnan(value) or math.isinf(value):
                return default
            steps = int(value)
    except (TypeError, ValueError, OverflowError):
        return default

    return steps if steps >= 2 else default


def validate_waypoints(boundary: Optional[Boundary], waypoints: Sequence[Any],
                       spatial_ops: Optional[SpatialOperations] = None) -> List[Coordinate]:
    """Every waypoint must lie inside the boundary"""

    if boundary is None:
        raise BoundaryNotSet()

    spatial_ops = spatial_ops or SpatialOperations()
    points = to_coordinates(waypoints)

    for i, point in enumerate(points):
        if not spatial_ops.point_in_polygon(point, boundary.polygon):
            raise OutOfBounds(f"Waypoint {i} {point} must be inside the boundary polygon.")

    return points


def path_length_meters(path: Sequence[Coordinate],
                       spatial_ops: Optional[SpatialOperations] = None) -> float:
    """Geodesic length of a path in meters"""

    spatial_ops = spatial_ops or SpatialOperations()
    return spatial_ops.path_length(path)


class PathGenerator:
    """Generates playback paths from waypoint sequences"""

    def __init__(self, leg_join_policy: Union[LegJoinPolicy, str] = LegJoinPolicy.DUPLICATE):
        self.logger = get_logger(__name__)
        self.leg_join_policy = LegJoinPolicy(leg_join_policy)

    def interpolate_leg(self, start: Coordinate, end: Coordinate, steps: int) -> List[Coordinate]:
        """steps points from start to end inclusive, linear in lat/lon"""

        lats = np.linspace(start.latitude, end.latitude, steps)
        lons = np.linspace(start.longitude, end.longitude, steps)

        return [Coordinate(float(lat), float(lon)) for lat, lon in zip(lats, lons)]

    def interpolate(self, waypoints: Sequence[Any], steps_per_leg: int,
                    leg_join_policy: Optional[Union[LegJoinPolicy, str]] = None) -> List[Coordinate]:
        """Densify a waypoint sequence into a path"""

        points = to_coordinates(waypoints)

        if len(points) < 2:
            raise InsufficientWaypoints(f"At least 2 waypoints required, got {len(points)}")

        if isinstance(steps_per_leg, bool) or not isinstance(steps_per_leg, (int, np.integer)):
            raise InvalidStepCount(f"Steps per leg must be an integer, got {steps_per_leg!r}")

        if steps_per_leg < 2:
            raise InvalidStepCount(f"Steps per leg must be at least 2, got {steps_per_leg}")

        policy = LegJoinPolicy(leg_join_policy) if leg_join_policy else self.leg_join_policy

        path: List[Coordinate] = []
        for i in range(len(points) - 1):
            leg = self.interpolate_leg(points[i], points[i + 1], int(steps_per_leg))

            # Shared waypoint already emitted as the previous leg's end
            if i > 0 and policy is LegJoinPolicy.DEDUPLICATE:
                leg = leg[1:]

            path.extend(leg)

        self.logger.debug(
            f"Generated {len(path)} points over {len(points) - 1} legs ({policy.value})"
        )

        return path
