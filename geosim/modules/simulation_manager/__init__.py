"""
Simulation Manager Module Package - Playback and zone transitions

This package provides:
- Zone transition tracking per agent
- Timed playback for single agents and fleets
- Event fan-out and the activity log
- Engine configuration parameters
"""

from geosim.modules.simulation_manager.zone_tracker import ZoneTransitionTracker
from geosim.modules.simulation_manager.scheduler import SimulationScheduler
from geosim.modules.simulation_manager.event_bus import EventBus
from geosim.modules.simulation_manager.activity_log import ActivityLog
from geosim.modules.simulation_manager.configuration import (
    SimulationConfiguration,
    ConfigurationParameter,
    ParameterType
)

__all__ = [
    "ZoneTransitionTracker",
    "SimulationScheduler",
    "EventBus",
    "ActivityLog",
    "SimulationConfiguration",
    "ConfigurationParameter",
    "ParameterType"
]
