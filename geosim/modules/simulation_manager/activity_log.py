"""
Activity Log - Human readable timeline of simulation events

Each event becomes one timestamped line such as
"[12:00:01] ENTERED Zone1 (Vehicle1)". Lines are kept in a bounded history
and mirrored to the logger.
"""

import logging
from collections import deque
from typing import Callable, Dict, List, Optional

from geosim.models.events import EventType, SimulationEvent
from geosim.utils.logger import get_logger


class ActivityLog:
    """Event bus subscriber rendering events to text"""

    def __init__(self, max_lines: int = 500, zone_labels: Optional[Callable[[int], str]] = None):
        self.logger = get_logger(__name__)
        self.lines = deque(maxlen=max_lines)
        self.zone_labels = zone_labels or (lambda index: f"Zone{index + 1}")

        self._formatters: Dict[EventType, Callable[[SimulationEvent], str]] = {
            EventType.BOUNDARY_SET: self._format_boundary_set,
            EventType.BOUNDARY_CLEARED: lambda e: "Boundary cleared.",
            EventType.ZONE_ADDED: self._format_zone_added,
            EventType.AGENT_CREATED: lambda e: f"{e.agent_id} created.",
            EventType.PATH_GENERATED: self._format_path_generated,
            EventType.PATH_CLEARED: lambda e: f"Path cleared for {e.agent_id}.",
            EventType.STARTED: lambda e: f"Simulation started for {e.agent_id}.",
            EventType.MOVED: lambda e: f"{e.agent_id} at {e.point}",
            EventType.ENTERED: lambda e: f"ENTERED {self.zone_labels(e.zone_index)} ({e.agent_id})",
            EventType.EXITED: lambda e: f"EXITED {self.zone_labels(e.zone_index)} ({e.agent_id})",
            EventType.FINISHED: lambda e: f"End of simulation path reached for {e.agent_id}.",
            EventType.STOPPED: self._format_stopped,
            EventType.NOT_RUNNING: lambda e: f"Simulation is not running for {e.agent_id}.",
            EventType.ALL_FINISHED: lambda e: "All vehicles finished their routes."
        }

    def __call__(self, event: SimulationEvent) -> None:
        self.record(event)

    def record(self, event: SimulationEvent) -> str:
        """Render event, append it to the history and return the line"""

        line = f"[{event.timestamp.strftime('%H:%M:%S')}] {self.format_event(event)}"
        self.lines.append(line)

        # Per-tick movement is only interesting when debugging
        level = logging.DEBUG if event.event_type is EventType.MOVED else logging.INFO
        self.logger.log(level, line)
        return line

    def format_event(self, event: SimulationEvent) -> str:
        formatter = self._formatters.get(event.event_type)
        if formatter is None:
            return event.event_type.value
        return formatter(event)

    def tail(self, count: int = 20) -> List[str]:
        """Most recent lines, oldest first"""

        if count <= 0:
            return []
        return list(self.lines)[-count:]

    def clear(self) -> None:
        self.lines.clear()

    def _format_boundary_set(self, event: SimulationEvent) -> str:
        vertices = event.data.get("vertex_count", "?")
        area = event.data.get("area_m2")
        if area is None:
            return f"Boundary set with {vertices} vertices."
        return f"Boundary set with {vertices} vertices ({area / 1e6:.2f} km2)."

    def _format_zone_added(self, event: SimulationEvent) -> str:
        radius = event.data.get("radius_meters", 0)
        return f"{self.zone_labels(event.zone_index)} created at {event.point} r={radius:.0f}m"

    def _format_path_generated(self, event: SimulationEvent) -> str:
        points = event.data.get("point_count", 0)
        length = event.data.get("length_m")
        suffix = f", {length:.0f} m" if length is not None else ""
        return f"Path generated for {event.agent_id} with {points} points{suffix}."

    def _format_stopped(self, event: SimulationEvent) -> str:
        reason = event.data.get("reason")
        if reason == "error":
            return f"Simulation aborted for {event.agent_id}: {event.data.get('error', 'unknown error')}"
        return f"Simulation stopped for {event.agent_id}."
