"""
Simulation Events - Notifications pushed to engine subscribers
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from geosim.models.geofence import Coordinate


class EventType(Enum):
    """Kinds of events emitted by the engine"""
    BOUNDARY_SET = "boundary_set"
    BOUNDARY_CLEARED = "boundary_cleared"
    ZONE_ADDED = "zone_added"
    AGENT_CREATED = "agent_created"
    PATH_GENERATED = "path_generated"
    PATH_CLEARED = "path_cleared"
    STARTED = "started"
    MOVED = "moved"
    ENTERED = "entered"
    EXITED = "exited"
    FINISHED = "finished"
    STOPPED = "stopped"
    NOT_RUNNING = "not_running"
    ALL_FINISHED = "all_finished"


@dataclass(frozen=True)
class ZoneTransition:
    """Enter/exit of one agent-zone pair"""
    agent_id: str
    zone_index: int
    entered: bool

    @property
    def event_type(self) -> EventType:
        return EventType.ENTERED if self.entered else EventType.EXITED


@dataclass
class SimulationEvent:
    """Event delivered to subscribers"""
    event_type: EventType
    agent_id: Optional[str] = None
    zone_index: Optional[int] = None
    point: Optional[Coordinate] = None
    data: Dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=datetime.now)
    event_id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary with timestamp formatting"""

        return {
            "event_id": self.event_id,
            "event_type": self.event_type.value,
            "agent_id": self.agent_id,
            "zone_index": self.zone_index,
            "point": self.point.to_dict() if self.point else None,
            "data": self.data,
            "timestamp": self.timestamp.isoformat()
        }
