"""
Geofence Manager - Boundary polygon and circular zone management

This module handles:
- Setting, replacing and clearing the single active boundary
- Append-only circular zones nested inside the boundary
- Containment testing against the boundary or a zone
"""

from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from geosim.errors import BoundaryNotSet, ZoneLimitReached
from geosim.models.geofence import Boundary, Coordinate, Zone
from geosim.modules.geofence_manager.spatial_operations import SpatialOperations
from geosim.modules.geofence_manager.zone_validator import ZoneValidator
from geosim.utils.logger import get_logger


class GeofenceManager:
    """Owns the active boundary and the zone list"""

    def __init__(self, max_zones: int = 10, circle_steps: int = 64,
                 spatial_ops: Optional[SpatialOperations] = None):
        self.logger = get_logger(__name__)
        self.spatial_ops = spatial_ops or SpatialOperations()
        self.zone_validator = ZoneValidator(self.spatial_ops)

        self.max_zones = max_zones
        self.circle_steps = circle_steps

        self.boundary: Optional[Boundary] = None
        self._zones: List[Zone] = []

    @property
    def zones(self) -> Tuple[Zone, ...]:
        return tuple(self._zones)

    @property
    def zone_count(self) -> int:
        return len(self._zones)

    @property
    def has_boundary(self) -> bool:
        return self.boundary is not None

    def set_boundary(self, points: Sequence[Any]) -> Boundary:
        """Validate and activate a boundary ring, replacing any previous one"""

        result = self.zone_validator.validate_boundary(points)

        polygon = result.corrected_geometry or self.spatial_ops.build_polygon(result.ring)
        boundary = Boundary(
            ring=tuple(result.ring),
            polygon=polygon,
            statistics=self.spatial_ops.polygon_statistics(result.ring),
            warnings=list(result.warnings)
        )

        for warning in result.warnings:
            self.logger.warning(f"Boundary validation: {warning}")

        replaced = self.boundary is not None
        self.boundary = boundary

        self.logger.info(
            f"Boundary {'replaced' if replaced else 'set'} with {boundary.vertex_count} vertices "
            f"({boundary.statistics['area_m2']:.0f} m2)"
        )

        return boundary

    def clear_boundary(self) -> int:
        """Remove the boundary and all zones; returns the number of zones removed"""

        removed = len(self._zones)
        self.boundary = None
        self._zones = []

        self.logger.info(f"Boundary cleared, {removed} zones removed")
        return removed

    def contains_point(self, region: Optional[Union[Boundary, Zone]], point: Any) -> bool:
        """Point-in-polygon over a boundary or zone; no region means False"""

        if region is None:
            return False

        return self.spatial_ops.point_in_polygon(Coordinate.from_value(point), region.polygon)

    def in_boundary(self, point: Any) -> bool:
        return self.contains_point(self.boundary, point)

    def check_zone_allowed(self, radius_meters: Any) -> float:
        """Checks a zone request must pass before a center is known"""

        if self.boundary is None:
            raise BoundaryNotSet()

        radius = self.zone_validator.validate_radius(radius_meters)

        if len(self._zones) >= self.max_zones:
            raise ZoneLimitReached(f"Maximum of {self.max_zones} zones reached.")

        return radius

    def add_zone(self, center: Any, radius_meters: Any, name: Optional[str] = None) -> Zone:
        """Create a circular zone at center; must lie inside the boundary"""

        radius = self.check_zone_allowed(radius_meters)

        center = Coordinate.from_value(center)
        self.zone_validator.validate_placement(self.boundary, center, "Zone center")

        vertices = self.spatial_ops.create_circular_polygon(center, radius, self.circle_steps)
        zone = Zone(
            index=len(self._zones),
            center=center,
            radius_meters=radius,
            vertices=tuple(vertices),
            polygon=self.spatial_ops.build_polygon(vertices),
            steps=self.circle_steps,
            name=name
        )
        self._zones.append(zone)

        self.logger.info(f"{zone.label} created at {center} with radius {radius:.0f} m")
        return zone

    def zones_containing(self, point: Any) -> List[int]:
        """Indices of every zone that contains point"""

        point = Coordinate.from_value(point)
        return [zone.index for zone in self._zones if self.contains_point(zone, point)]

    def distance_to_zone_edge(self, zone: Zone, point: Any) -> float:
        """Signed distance in meters from point to the zone edge (negative inside)"""

        point = Coordinate.from_value(point)
        return self.spatial_ops.distance_between(zone.center, point) - zone.radius_meters

    def get_status(self) -> Dict[str, Any]:
        """Get geofence status information"""

        return {
            "boundary": self.boundary.to_dict() if self.boundary else None,
            "zones": [zone.to_dict() for zone in self._zones],
            "zone_count": len(self._zones),
            "max_zones": self.max_zones,
            "circle_steps": self.circle_steps
        }
