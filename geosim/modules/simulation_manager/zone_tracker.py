"""
Zone Transition Tracker - Edge detection of agent zone membership

For each zone, in index order, the containment of the new point is compared
with the agent's stored flag. Only changes produce a transition.
"""

from typing import List, Optional, Sequence

from geosim.models.agent import Agent
from geosim.models.events import ZoneTransition
from geosim.models.geofence import Coordinate, Zone
from geosim.modules.geofence_manager.spatial_operations import SpatialOperations


class ZoneTransitionTracker:
    """Detects ENTERED/EXITED transitions for one point at a time"""

    def __init__(self, spatial_ops: Optional[SpatialOperations] = None):
        self.spatial_ops = spatial_ops or SpatialOperations()

    def step(self, agent: Agent, zones: Sequence[Zone], point: Coordinate) -> List[ZoneTransition]:
        """Update agent.inside_zone for point and return the transitions"""

        agent.sync_zone_state(len(zones))

        transitions = []
        for i, zone in enumerate(zones):
            inside = self.spatial_ops.point_in_polygon(point, zone.polygon)

            if inside != agent.inside_zone[i]:
                agent.inside_zone[i] = inside
                transitions.append(ZoneTransition(agent.agent_id, i, inside))

        return transitions
