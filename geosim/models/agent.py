"""
Agent Model - Simulated mobile entity following a precomputed path
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from geosim.models.geofence import Coordinate


class RunState(Enum):
    """Playback state of an agent"""
    IDLE = "idle"
    RUNNING = "running"
    FINISHED = "finished"
    STOPPED = "stopped"


@dataclass(eq=False)
class Agent:
    """Simulated agent with its path, cursor and per-zone inside flags"""
    agent_id: str
    path: Tuple[Coordinate, ...] = ()
    cursor: int = 0
    inside_zone: List[bool] = field(default_factory=list)
    state: RunState = RunState.IDLE
    start: Optional[Coordinate] = None
    destinations: List[Coordinate] = field(default_factory=list)
    steps_per_leg: Optional[int] = None
    last_position: Optional[Coordinate] = None
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def is_running(self) -> bool:
        return self.state is RunState.RUNNING

    @property
    def has_remaining_path(self) -> bool:
        return self.cursor < len(self.path)

    @property
    def remaining_points(self) -> int:
        return max(0, len(self.path) - self.cursor)

    @property
    def route_waypoints(self) -> List[Coordinate]:
        """Start followed by destinations, empty when no start is set"""

        if self.start is None:
            return []
        return [self.start, *self.destinations]

    def sync_zone_state(self, zone_count: int) -> None:
        """Keep inside_zone parallel to the zone list"""

        if len(self.inside_zone) < zone_count:
            self.inside_zone.extend([False] * (zone_count - len(self.inside_zone)))
        elif len(self.inside_zone) > zone_count:
            del self.inside_zone[zone_count:]

    def reset_playback(self, zone_count: int) -> None:
        """Rewind cursor and mark every zone as outside"""

        self.cursor = 0
        self.last_position = None
        self.inside_zone = [False] * zone_count

    def replace_path(self, path: List[Coordinate], zone_count: int) -> None:
        """Swap in a freshly generated path"""

        self.path = tuple(path)
        self.reset_playback(zone_count)

    def get_status(self) -> Dict[str, Any]:
        """Get agent status information"""

        return {
            "agent_id": self.agent_id,
            "state": self.state.value,
            "cursor": self.cursor,
            "path_length": len(self.path),
            "inside_zones": [i for i, inside in enumerate(self.inside_zone) if inside],
            "start": self.start.to_dict() if self.start else None,
            "destinations": [d.to_dict() for d in self.destinations],
            "last_position": self.last_position.to_dict() if self.last_position else None,
            "created_at": self.created_at.isoformat()
        }
