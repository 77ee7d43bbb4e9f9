"""
Mission Planner Module Package - Path generation

This package provides:
- Linear lat/lon interpolation between waypoints
- Multi-leg routes with configurable leg joins
- Waypoint boundary validation and path length
"""

from geosim.modules.mission_planner.path_generator import (
    PathGenerator,
    LegJoinPolicy,
    resolve_step_count,
    validate_waypoints,
    path_length_meters,
    DEFAULT_STEPS_PER_LEG
)

__all__ = [
    "PathGenerator",
    "LegJoinPolicy",
    "resolve_step_count",
    "validate_waypoints",
    "path_length_meters",
    "DEFAULT_STEPS_PER_LEG"
]
