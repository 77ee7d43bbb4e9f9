"""Data models shared by geosim modules"""

from geosim.models.geofence import Coordinate, Boundary, Zone, to_coordinates
from geosim.models.agent import Agent, RunState
from geosim.models.events import EventType, SimulationEvent, ZoneTransition

__all__ = [
    "Coordinate",
    "Boundary",
    "Zone",
    "to_coordinates",
    "Agent",
    "RunState",
    "EventType",
    "SimulationEvent",
    "ZoneTransition"
]
