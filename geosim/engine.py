"""
Geofence Engine - Facade owning boundary, zones, agents and playback

This module handles:
- Boundary and zone commands with event notification
- Agent registry with paths, start points and destination routes
- Single agent and fleet playback through the scheduler
- Subscriptions, activity log and runtime configuration
"""

from collections import deque
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence, Union

from geosim.errors import AlreadyRunning, InsufficientWaypoints, UnknownAgent
from geosim.models.agent import Agent, RunState
from geosim.models.events import EventType, SimulationEvent
from geosim.models.geofence import Boundary, Coordinate, Zone
from geosim.modules.geofence_manager.geofence_controller import GeofenceManager
from geosim.modules.geofence_manager.spatial_operations import SpatialOperations
from geosim.modules.mission_planner.path_generator import LegJoinPolicy, PathGenerator, validate_waypoints
from geosim.modules.simulation_manager.activity_log import ActivityLog
from geosim.modules.simulation_manager.configuration import SimulationConfiguration
from geosim.modules.simulation_manager.event_bus import EventBus, EventHandler
from geosim.modules.simulation_manager.scheduler import SimulationScheduler
from geosim.modules.simulation_manager.zone_tracker import ZoneTransitionTracker
from geosim.utils.logger import get_logger

AgentRef = Union[Agent, str]


class GeofenceEngine:
    """Explicit engine instance replacing ambient global simulation state"""

    def __init__(self, config: Optional[Union[SimulationConfiguration, Dict[str, Any]]] = None,
                 loop: Optional[Any] = None):
        self.logger = get_logger(__name__)

        if isinstance(config, SimulationConfiguration):
            self.config = config
        else:
            self.config = SimulationConfiguration(config)

        self.spatial_ops = SpatialOperations(self.config.earth_radius_m)
        self.geofence = GeofenceManager(
            max_zones=self.config.max_zones,
            circle_steps=self.config.circle_steps,
            spatial_ops=self.spatial_ops
        )
        self.path_generator = PathGenerator(self.config.leg_join_policy)
        self.tracker = ZoneTransitionTracker(self.spatial_ops)

        self.event_bus = EventBus()
        self.activity_log = ActivityLog(self.config.activity_log_size, zone_labels=self._zone_label)
        self.event_bus.subscribe(self.activity_log)

        self.scheduler = SimulationScheduler(
            tracker=self.tracker,
            zones_provider=lambda: self.geofence.zones,
            publish=self.event_bus.publish,
            tick_interval=self.config.tick_interval_seconds,
            loop=loop
        )

        self.agents: Dict[str, Agent] = {}
        self._agent_counter = 0

    # Helpers

    @property
    def boundary(self) -> Optional[Boundary]:
        return self.geofence.boundary

    @property
    def zones(self) -> Sequence[Zone]:
        return self.geofence.zones

    def _emit(self, event_type: EventType, agent: Optional[Agent] = None, **kwargs: Any) -> None:
        self.event_bus.publish(SimulationEvent(
            event_type=event_type,
            agent_id=agent.agent_id if agent else None,
            **kwargs
        ))

    def _zone_label(self, index: int) -> str:
        zones = self.geofence.zones
        if index is not None and 0 <= index < len(zones):
            return zones[index].label
        return f"Zone{(index or 0) + 1}"

    def get_agent(self, agent: AgentRef) -> Agent:
        """Resolve an agent or agent id registered with this engine"""

        agent_id = agent.agent_id if isinstance(agent, Agent) else agent
        if agent_id not in self.agents:
            raise UnknownAgent(f"Unknown agent: {agent_id}")
        return self.agents[agent_id]

    def _ensure_not_running(self, agent: Agent, action: str) -> None:
        if agent.is_running:
            raise AlreadyRunning(f"Cannot {action} while {agent.agent_id} is running. Stop it first.")

    # Geometry commands

    def set_boundary(self, ring: Sequence[Any]) -> Boundary:
        """Activate a boundary ring, replacing any previous one"""

        replaced = self.geofence.has_boundary
        boundary = self.geofence.set_boundary(ring)

        self._emit(EventType.BOUNDARY_SET, data={
            "replaced": replaced,
            "warnings": list(boundary.warnings),
            **boundary.statistics
        })
        return boundary

    def clear_boundary(self) -> int:
        """Remove the boundary together with every zone"""

        running = [agent.agent_id for agent in self.agents.values() if agent.is_running]
        if running:
            raise AlreadyRunning(f"Cannot clear the boundary while {running} are running.")

        removed = self.geofence.clear_boundary()
        for agent in self.agents.values():
            agent.sync_zone_state(0)

        self._emit(EventType.BOUNDARY_CLEARED, data={"zones_removed": removed})
        return removed

    def add_zone(self, center: Any, radius_meters: Any, name: Optional[str] = None) -> Zone:
        """Create a circular zone; every agent gains an outside flag for it"""

        zone = self.geofence.add_zone(center, radius_meters, name)

        for agent in self.agents.values():
            agent.sync_zone_state(self.geofence.zone_count)

        self._emit(EventType.ZONE_ADDED, zone_index=zone.index, point=zone.center, data={
            "radius_meters": zone.radius_meters,
            "label": zone.label,
            "steps": zone.steps
        })
        return zone

    def contains_point(self, region: Optional[Union[Boundary, Zone]], point: Any) -> bool:
        return self.geofence.contains_point(region, point)

    def zones_containing(self, point: Any) -> List[int]:
        return self.geofence.zones_containing(point)

    # Agent commands

    def create_agent(self, agent_id: Optional[str] = None) -> Agent:
        """Register a new agent; ids default to Vehicle1, Vehicle2, ..."""

        if agent_id is None:
            self._agent_counter += 1
            agent_id = f"Vehicle{self._agent_counter}"
            while agent_id in self.agents:
                self._agent_counter += 1
                agent_id = f"Vehicle{self._agent_counter}"
        elif agent_id in self.agents:
            raise ValueError(f"Agent {agent_id} already exists")

        agent = Agent(agent_id=agent_id, inside_zone=[False] * self.geofence.zone_count)
        self.agents[agent_id] = agent

        self.logger.info(f"Created agent {agent_id}")
        self._emit(EventType.AGENT_CREATED, agent)
        return agent

    def set_agent_path(self, agent: AgentRef, waypoints: Sequence[Any],
                       steps_per_leg: Optional[int] = None) -> List[Coordinate]:
        """Generate and atomically install a path through waypoints"""

        agent = self.get_agent(agent)
        self._ensure_not_running(agent, "regenerate the path")

        points = validate_waypoints(self.geofence.boundary, waypoints, self.spatial_ops)
        if steps_per_leg is None:
            steps_per_leg = self.config.default_steps_per_leg

        path = self.path_generator.interpolate(points, steps_per_leg)
        agent.replace_path(path, self.geofence.zone_count)
        agent.steps_per_leg = steps_per_leg
        if agent.state is not RunState.IDLE:
            agent.state = RunState.IDLE

        length_m = self.spatial_ops.path_length(path)
        self.logger.info(
            f"Path generated for {agent.agent_id}: {len(path)} points, {length_m:.0f} m"
        )
        self._emit(EventType.PATH_GENERATED, agent, data={
            "point_count": len(path),
            "waypoint_count": len(points),
            "steps_per_leg": steps_per_leg,
            "length_m": length_m
        })
        return list(path)

    def clear_agent_path(self, agent: AgentRef) -> None:
        agent = self.get_agent(agent)
        self._ensure_not_running(agent, "clear the path")

        agent.replace_path([], self.geofence.zone_count)
        agent.state = RunState.IDLE

        self._emit(EventType.PATH_CLEARED, agent)

    def set_agent_start(self, agent: AgentRef, point: Any) -> Coordinate:
        """Set the first waypoint of a multi-leg route"""

        agent = self.get_agent(agent)
        point = validate_waypoints(self.geofence.boundary, [point], self.spatial_ops)[0]

        agent.start = point
        self.logger.info(f"Start of {agent.agent_id} set at {point}")
        return point

    def add_agent_destination(self, agent: AgentRef, point: Any) -> int:
        """Append a destination and return its position"""

        agent = self.get_agent(agent)
        point = validate_waypoints(self.geofence.boundary, [point], self.spatial_ops)[0]

        agent.destinations.append(point)
        self.logger.info(f"Destination {len(agent.destinations)} of {agent.agent_id} added at {point}")
        return len(agent.destinations) - 1

    def reorder_agent_destinations(self, agent: AgentRef, order: Sequence[int]) -> List[Coordinate]:
        """Rearrange destinations; order is a permutation of current positions"""

        agent = self.get_agent(agent)
        order = list(order)

        if sorted(order) != list(range(len(agent.destinations))):
            raise ValueError(
                f"Order {order} is not a permutation of {len(agent.destinations)} destinations"
            )

        agent.destinations = [agent.destinations[i] for i in order]
        return list(agent.destinations)

    def move_agent_destination(self, agent: AgentRef, index: int, offset: int) -> List[Coordinate]:
        """Move one destination up (negative offset) or down the list"""

        agent = self.get_agent(agent)
        count = len(agent.destinations)

        if not 0 <= index < count:
            raise IndexError(f"Destination {index} out of range for {count} destinations")

        target = min(max(index + offset, 0), count - 1)
        order = list(range(count))
        order.insert(target, order.pop(index))
        return self.reorder_agent_destinations(agent, order)

    def clear_agent_destinations(self, agent: AgentRef) -> None:
        agent = self.get_agent(agent)
        agent.destinations = []

    def generate_agent_route(self, agent: AgentRef,
                             steps_per_leg: Optional[int] = None) -> List[Coordinate]:
        """Path through start and destinations"""

        agent = self.get_agent(agent)
        waypoints = agent.route_waypoints

        if len(waypoints) < 2:
            raise InsufficientWaypoints(
                f"{agent.agent_id} needs a start and at least one destination."
            )

        return self.set_agent_path(agent, waypoints, steps_per_leg)

    # Playback

    def start(self, agent: AgentRef) -> None:
        self.scheduler.start(self.get_agent(agent))

    def stop(self, agent: AgentRef, strict: bool = False) -> bool:
        return self.scheduler.stop(self.get_agent(agent), strict=strict)

    def advance(self, agent: AgentRef) -> bool:
        return self.scheduler.advance(self.get_agent(agent))

    def start_all(self) -> List[Agent]:
        """Run every registered agent on the shared fleet loop"""

        return self.scheduler.start_fleet(self.agents.values())

    def stop_all(self) -> int:
        """Stop fleet and individual playback; returns agents stopped"""

        running_before = sum(1 for agent in self.agents.values() if agent.is_running)
        self.scheduler.stop_fleet()

        for agent in self.agents.values():
            if agent.is_running:
                self.scheduler.stop(agent)

        return running_before

    async def wait(self, agent: AgentRef) -> Optional[RunState]:
        return await self.scheduler.wait(self.get_agent(agent).agent_id)

    async def wait_all(self) -> None:
        """Resolve once no agent is running"""

        await self.scheduler.wait_fleet()
        for agent in list(self.agents.values()):
            if agent.is_running:
                await self.scheduler.wait(agent.agent_id)

    # Subscriptions and configuration

    def subscribe(self, handler: EventHandler,
                  event_types: Optional[Iterable[EventType]] = None) -> Callable[[], None]:
        return self.event_bus.subscribe(handler, event_types)

    def update_configuration(self, updates: Dict[str, Any]) -> Dict[str, Any]:
        """Apply configuration updates to the running engine"""

        parameters = self.config.update(updates)

        self.geofence.max_zones = self.config.max_zones
        self.geofence.circle_steps = self.config.circle_steps
        self.spatial_ops.earth_radius = self.config.earth_radius_m
        self.path_generator.leg_join_policy = LegJoinPolicy(self.config.leg_join_policy)
        self.scheduler.tick_interval = self.config.tick_interval_seconds

        if self.activity_log.lines.maxlen != self.config.activity_log_size:
            self.activity_log.lines = deque(self.activity_log.lines,
                                            maxlen=self.config.activity_log_size)

        return parameters

    def summary(self) -> Dict[str, Any]:
        """Snapshot of engine state"""

        return {
            "geofence": self.geofence.get_status(),
            "agents": {agent_id: agent.get_status() for agent_id, agent in self.agents.items()},
            "scheduler": self.scheduler.get_status(),
            "configuration": self.config.to_dict(),
            "events_published": self.event_bus.events_published
        }
