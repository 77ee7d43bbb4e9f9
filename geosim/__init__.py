"""
geosim - Geofence simulation engine

This package contains the core of the geofence playground:
- models: coordinates, boundary/zone geometry, agents and events
- modules.geofence_manager: boundary and zone geometry, containment testing
- modules.mission_planner: path generation between waypoints
- modules.simulation_manager: zone transition tracking and playback scheduling
- modules.authoring: click-mode controller for authoring tools
- engine: the GeofenceEngine facade that collaborators talk to
"""

from geosim.engine import GeofenceEngine
from geosim.models.geofence import Coordinate, Boundary, Zone
from geosim.models.agent import Agent, RunState
from geosim.models.events import EventType, SimulationEvent

__all__ = [
    "GeofenceEngine",
    "Coordinate",
    "Boundary",
    "Zone",
    "Agent",
    "RunState",
    "EventType",
    "SimulationEvent"
]

# Version information
__version__ = "1.0.0"
__author__ = "geosim Development Team"
