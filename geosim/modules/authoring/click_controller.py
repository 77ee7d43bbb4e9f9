"""
Click Mode Controller - Translate map clicks into engine commands

This module handles:
- Arming an authoring mode (zone, A/B path, vehicle start, destination)
- Boundary checks on every placement click
- Returning to idle once a placement completes
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from geosim.engine import GeofenceEngine
from geosim.errors import BoundaryNotSet, OutOfBounds, UnknownAgent
from geosim.models.agent import Agent
from geosim.models.geofence import Coordinate
from geosim.modules.mission_planner.path_generator import resolve_step_count
from geosim.utils.logger import get_logger


class ClickMode(Enum):
    """What the next map click means"""
    IDLE = "idle"
    ZONE = "zone"
    SET_AB = "set_ab"
    SET_VEHICLE_START = "set_vehicle_start"
    ADD_DESTINATION = "add_destination"


@dataclass
class ClickResult:
    """Outcome of one click"""
    mode: ClickMode
    action: str
    point: Optional[Coordinate] = None
    value: Any = None

    @property
    def handled(self) -> bool:
        return self.action != "ignored"


class ClickModeController:
    """Finite-state authoring controller sitting in front of the engine"""

    def __init__(self, engine: GeofenceEngine):
        self.logger = get_logger(__name__)
        self.engine = engine

        self.mode = ClickMode.IDLE
        self.zone_radius: Optional[float] = None
        self.point_a: Optional[Coordinate] = None
        self.path_agent: Optional[Agent] = None
        self.steps_input: Any = None
        self.current_vehicle: Optional[Agent] = None

    def _require_boundary(self) -> None:
        if not self.engine.geofence.has_boundary:
            raise BoundaryNotSet()

    def _require_vehicle(self) -> Agent:
        if self.current_vehicle is None:
            raise UnknownAgent("No vehicle selected. Add a vehicle first.")
        return self.current_vehicle

    def _set_mode(self, mode: ClickMode) -> None:
        if mode is not self.mode:
            self.logger.debug(f"Click mode {self.mode.value} -> {mode.value}")
        self.mode = mode

    # Arming

    def arm_zone(self, radius_meters: Any) -> float:
        """Next click places a zone of radius_meters"""

        self.zone_radius = self.engine.geofence.check_zone_allowed(radius_meters)
        self._set_mode(ClickMode.ZONE)
        self.logger.info(f"Click on the map to place a zone with radius {self.zone_radius:.0f} m")
        return self.zone_radius

    def arm_set_ab(self, agent: Optional[Any] = None, steps_input: Any = None) -> Agent:
        """Next two clicks set points A and B of a straight path"""

        self._require_boundary()

        if agent is not None:
            self.path_agent = self.engine.get_agent(agent)
        elif self.path_agent is None:
            self.path_agent = self.engine.create_agent()

        self.steps_input = steps_input
        self.point_a = None
        self._set_mode(ClickMode.SET_AB)
        self.logger.info("Click on the map to set point A")
        return self.path_agent

    def add_vehicle(self) -> Agent:
        """Create a vehicle, select it and wait for its start point"""

        self._require_boundary()

        self.current_vehicle = self.engine.create_agent()
        self._set_mode(ClickMode.SET_VEHICLE_START)
        self.logger.info(f"Click on the map to set the start of {self.current_vehicle.agent_id}")
        return self.current_vehicle

    def select_vehicle(self, agent: Any) -> Agent:
        self.current_vehicle = self.engine.get_agent(agent)
        return self.current_vehicle

    def arm_vehicle_start(self) -> Agent:
        self._require_boundary()
        vehicle = self._require_vehicle()
        self._set_mode(ClickMode.SET_VEHICLE_START)
        return vehicle

    def arm_add_destination(self) -> Agent:
        self._require_boundary()
        vehicle = self._require_vehicle()
        self._set_mode(ClickMode.ADD_DESTINATION)
        self.logger.info(f"Click on the map to add a destination for {vehicle.agent_id}")
        return vehicle

    def cancel(self) -> None:
        self.point_a = None
        self._set_mode(ClickMode.IDLE)

    # Clicks

    def click(self, point: Any) -> ClickResult:
        """Interpret one map click according to the armed mode"""

        mode = self.mode
        if mode is ClickMode.IDLE:
            return ClickResult(mode, "ignored")

        point = Coordinate.from_value(point)

        self._require_boundary()
        if not self.engine.geofence.in_boundary(point):
            raise OutOfBounds(f"Click {point} must be inside the boundary polygon.")

        if mode is ClickMode.ZONE:
            zone = self.engine.add_zone(point, self.zone_radius)
            self._set_mode(ClickMode.IDLE)
            return ClickResult(mode, "zone_added", point, zone)

        if mode is ClickMode.SET_AB:
            if self.point_a is None:
                self.point_a = point
                self.logger.info(f"Point A set at {point}. Click to set point B")
                return ClickResult(mode, "point_a_set", point)

            steps = resolve_step_count(self.steps_input, self.engine.config.default_steps_per_leg)
            path = self.engine.set_agent_path(self.path_agent, [self.point_a, point], steps)
            self.point_a = None
            self._set_mode(ClickMode.IDLE)
            return ClickResult(mode, "path_generated", point, path)

        vehicle = self._require_vehicle()

        if mode is ClickMode.SET_VEHICLE_START:
            self.engine.set_agent_start(vehicle, point)
            self._set_mode(ClickMode.IDLE)
            return ClickResult(mode, "start_set", point, vehicle)

        index = self.engine.add_agent_destination(vehicle, point)
        self._set_mode(ClickMode.IDLE)
        return ClickResult(mode, "destination_added", point, index)
