"""
Zone Validator - Validate boundary rings, zone radii and placement

This module provides:
- Boundary ring normalisation (distinct points, closing vertex)
- Polygon validity checks with automatic correction
- Zone radius validation
- Zone placement checks against the active boundary
"""

import math
from dataclasses import dataclass, field
from typing import Any, List, Optional, Sequence

from shapely.geometry.base import BaseGeometry
from shapely.validation import explain_validity, make_valid

from geosim.errors import BoundaryNotSet, InvalidGeometry, InvalidRadius, OutOfBounds
from geosim.models.geofence import Boundary, Coordinate, to_coordinates
from geosim.modules.geofence_manager.spatial_operations import SpatialOperations


@dataclass
class ValidationResult:
    """Boundary validation result"""
    valid: bool
    ring: List[Coordinate]
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    corrected_geometry: Optional[BaseGeometry] = None


class ZoneValidator:
    """Validate boundary and zone geometry"""

    def __init__(self, spatial_ops: Optional[SpatialOperations] = None):
        self.spatial_ops = spatial_ops or SpatialOperations()

        # Validation parameters
        self.min_vertices = 3
        self.min_area_m2 = 1.0

    def normalize_ring(self, points: Sequence[Any]) -> List[Coordinate]:
        """Convert points and close the ring; reject fewer than 3 distinct vertices"""

        if points is None:
            raise InvalidGeometry("Boundary ring is required")

        ring = to_coordinates(points)
        distinct = {c.as_tuple() for c in ring}

        if len(distinct) < self.min_vertices:
            raise InvalidGeometry(
                f"Boundary needs at least {self.min_vertices} distinct points, got {len(distinct)}"
            )

        if ring[0] != ring[-1]:
            ring.append(ring[0])

        return ring

    def validate_boundary(self, points: Sequence[Any]) -> ValidationResult:
        """Validate a boundary ring; invalid shapes are kept with warnings"""

        ring = self.normalize_ring(points)
        result = ValidationResult(valid=True, ring=ring)

        polygon = self.spatial_ops.build_polygon(ring)

        if not polygon.is_valid:
            result.valid = False
            result.warnings.append(f"Invalid polygon: {explain_validity(polygon)}")

            # Containment runs against the repaired geometry
            result.corrected_geometry = make_valid(polygon)
            result.warnings.append("Polygon was corrected automatically")
        else:
            area_m2 = self.spatial_ops.geod.geometry_area_perimeter(polygon)[0]
            if abs(area_m2) < self.min_area_m2:
                result.warnings.append("Very small polygon area")

        return result

    def validate_radius(self, radius_meters: Any) -> float:
        """Return the radius as float or raise InvalidRadius"""

        if isinstance(radius_meters, bool):
            raise InvalidRadius(f"Radius must be a number, got {radius_meters!r}")

        try:
            radius = float(radius_meters)
        except (TypeError, ValueError):
            raise InvalidRadius(f"Radius must be a number, got {radius_meters!r}")

        if math.isnan(radius) or math.isinf(radius) or radius <= 0:
            raise InvalidRadius("Please enter a valid positive radius in meters.")

        return radius

    def validate_placement(self, boundary: Optional[Boundary], point: Coordinate,
                           label: str = "Point") -> None:
        """Raise unless point lies inside the boundary"""

        if boundary is None:
            raise BoundaryNotSet()

        if not self.spatial_ops.point_in_polygon(point, boundary.polygon):
            raise OutOfBounds(f"{label} {point} must be inside the boundary polygon.")
