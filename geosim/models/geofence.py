"""
Geofence Models - Coordinates, boundary ring and circular zones

Coordinates are (latitude, longitude) in decimal degrees. Shapely geometry
attached to boundaries and zones is stored in (longitude, latitude) order.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from shapely.geometry.base import BaseGeometry

from geosim.errors import InvalidGeometry


@dataclass(frozen=True)
class Coordinate:
    """Immutable geographic position"""
    latitude: float
    longitude: float

    def __post_init__(self):
        try:
            latitude = float(self.latitude)
            longitude = float(self.longitude)
        except (TypeError, ValueError):
            raise InvalidGeometry(
                f"Coordinate values must be numeric, got ({self.latitude!r}, {self.longitude!r})"
            )

        if math.isnan(latitude) or math.isnan(longitude):
            raise InvalidGeometry("Coordinate values must not be NaN")
        if not -90.0 <= latitude <= 90.0:
            raise InvalidGeometry(f"Latitude {latitude} outside [-90, 90]")
        if not -180.0 <= longitude <= 180.0:
            raise InvalidGeometry(f"Longitude {longitude} outside [-180, 180]")

        object.__setattr__(self, "latitude", latitude)
        object.__setattr__(self, "longitude", longitude)

    @classmethod
    def from_value(cls, value: Any) -> "Coordinate":
        """Build a coordinate from a Coordinate, (lat, lon) pair or mapping"""

        if isinstance(value, Coordinate):
            return value

        if isinstance(value, dict):
            lat = value.get("latitude", value.get("lat"))
            lon = value.get("longitude", value.get("lng", value.get("lon")))
            if lat is None or lon is None:
                raise InvalidGeometry(f"Mapping {value!r} lacks latitude/longitude keys")
            return cls(lat, lon)

        if isinstance(value, (list, tuple)) and len(value) >= 2:
            return cls(value[0], value[1])

        raise InvalidGeometry(f"Cannot interpret {value!r} as a coordinate")

    def as_tuple(self) -> Tuple[float, float]:
        """Return (latitude, longitude)"""
        return (self.latitude, self.longitude)

    def to_lonlat(self) -> Tuple[float, float]:
        """Return (longitude, latitude) for shapely"""
        return (self.longitude, self.latitude)

    def to_dict(self) -> Dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}

    def __str__(self) -> str:
        return f"[{self.latitude:.5f}, {self.longitude:.5f}]"


def to_coordinates(values: Sequence[Any]) -> List[Coordinate]:
    """Convert a sequence of coordinate-like values"""

    return [Coordinate.from_value(value) for value in values]


@dataclass
class Boundary:
    """Closed ring delimiting the area where zones and waypoints may be placed"""
    ring: Tuple[Coordinate, ...]
    polygon: BaseGeometry = field(repr=False, compare=False)
    statistics: Dict[str, Any] = field(default_factory=dict, compare=False)
    warnings: List[str] = field(default_factory=list, compare=False)
    created_at: datetime = field(default_factory=datetime.now, compare=False)

    @property
    def vertex_count(self) -> int:
        """Number of distinct vertices (closing vertex excluded)"""
        return len(self.ring) - 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ring": [c.to_dict() for c in self.ring],
            "vertex_count": self.vertex_count,
            "statistics": self.statistics,
            "warnings": list(self.warnings),
            "created_at": self.created_at.isoformat()
        }


@dataclass
class Zone:
    """Circular geofence nested inside the boundary"""
    index: int
    center: Coordinate
    radius_meters: float
    vertices: Tuple[Coordinate, ...] = field(repr=False)
    polygon: BaseGeometry = field(repr=False, compare=False)
    steps: int = 64
    name: Optional[str] = None
    created_at: datetime = field(default_factory=datetime.now, compare=False)

    @property
    def label(self) -> str:
        """Display label, 1-based like the authoring UI"""
        return self.name or f"Zone{self.index + 1}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "label": self.label,
            "center": self.center.to_dict(),
            "radius_meters": self.radius_meters,
            "steps": self.steps,
            "created_at": self.created_at.isoformat()
        }
