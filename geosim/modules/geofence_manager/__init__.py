"""
Geofence Manager Module Package - Boundary and zone geometry

This package provides the geometry side of the engine:
- Boundary ring validation and activation
- Circular zone creation inside the boundary
- Spatial operations and containment testing
"""

from geosim.modules.geofence_manager.geofence_controller import GeofenceManager
from geosim.modules.geofence_manager.zone_validator import ZoneValidator, ValidationResult
from geosim.modules.geofence_manager.spatial_operations import SpatialOperations

__all__ = [
    "GeofenceManager",
    "ZoneValidator",
    "ValidationResult",
    "SpatialOperations"
]
