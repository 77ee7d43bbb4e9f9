"""
Spatial Operations - Geographic and geometric calculations for geofencing

This module provides:
- Geodesic distance calculations
- Spherical destination-point projection
- Circular zone polygon approximation
- Point-in-polygon tests (edges count as inside)
- Geodesic polygon area, perimeter and bounds
"""

import math
from typing import Any, Dict, List, Sequence, Tuple

import pyproj
from geopy.distance import geodesic
from shapely.geometry import Point, Polygon
from shapely.geometry.base import BaseGeometry

from geosim.models.geofence import Coordinate

DEFAULT_EARTH_RADIUS = 6371008.8


class SpatialOperations:
    """Spatial operations for geofencing and path playback"""

    def __init__(self, earth_radius: float = DEFAULT_EARTH_RADIUS):
        # Spherical radius used for circle projection
        self.earth_radius = earth_radius

        # Ellipsoid used for area and perimeter
        self.geod = pyproj.Geod(ellps="WGS84")

    def calculate_distance(self, lat1: float, lon1: float,
                           lat2: float, lon2: float) -> float:
        """Calculate geodesic distance between two points in meters"""

        return geodesic((lat1, lon1), (lat2, lon2)).meters

    def distance_between(self, a: Coordinate, b: Coordinate) -> float:
        return self.calculate_distance(a.latitude, a.longitude, b.latitude, b.longitude)

    def path_length(self, points: Sequence[Coordinate]) -> float:
        """Total geodesic length of a polyline in meters"""

        return sum(
            self.distance_between(points[i], points[i + 1])
            for i in range(len(points) - 1)
        )

    def calculate_destination_point(self, lat: float, lon: float,
                                    bearing: float, distance: float) -> Tuple[float, float]:
        """Calculate destination point given start point, bearing, and distance"""

        lat_rad = math.radians(lat)
        lon_rad = math.radians(lon)
        bearing_rad = math.radians(bearing)

        # Angular distance
        angular_dist = distance / self.earth_radius

        dest_lat_rad = math.asin(
            math.sin(lat_rad) * math.cos(angular_dist) +
            math.cos(lat_rad) * math.sin(angular_dist) * math.cos(bearing_rad)
        )

        dest_lon_rad = lon_rad + math.atan2(
            math.sin(bearing_rad) * math.sin(angular_dist) * math.cos(lat_rad),
            math.cos(angular_dist) - math.sin(lat_rad) * math.sin(dest_lat_rad)
        )

        dest_lon = (math.degrees(dest_lon_rad) + 540.0) % 360.0 - 180.0

        return math.degrees(dest_lat_rad), dest_lon

    def create_circular_polygon(self, center: Coordinate,
                                radius_meters: float, num_points: int = 64) -> List[Coordinate]:
        """Create closed circle approximation, vertex 0 due north then clockwise"""

        vertices = []

        for i in range(num_points):
            bearing = 360.0 * i / num_points

            point_lat, point_lon = self.calculate_destination_point(
                center.latitude, center.longitude, bearing, radius_meters
            )

            vertices.append(Coordinate(point_lat, point_lon))

        # Close the polygon
        vertices.append(vertices[0])

        return vertices

    @staticmethod
    def build_polygon(ring: Sequence[Coordinate]) -> Polygon:
        """Shapely polygon in (lon, lat) order"""

        return Polygon([c.to_lonlat() for c in ring])

    @staticmethod
    def point_in_polygon(point: Coordinate, polygon: BaseGeometry) -> bool:
        """Check if point is inside polygon or on its edge"""

        return polygon.covers(Point(point.to_lonlat()))

    def polygon_statistics(self, ring: Sequence[Coordinate]) -> Dict[str, Any]:
        """Geodesic area, perimeter, centroid and bounds of a closed ring"""

        polygon = self.build_polygon(ring)
        area, perimeter = self.geod.geometry_area_perimeter(polygon)
        centroid = polygon.centroid

        if centroid.is_empty:
            # Degenerate ring: arithmetic mean of distinct vertices
            distinct = ring[:-1]
            centroid_lat = sum(c.latitude for c in distinct) / len(distinct)
            centroid_lon = sum(c.longitude for c in distinct) / len(distinct)
        else:
            centroid_lat, centroid_lon = centroid.y, centroid.x

        return {
            "area_m2": abs(area),
            "perimeter_m": perimeter,
            "vertex_count": len(ring) - 1,
            "centroid": {"latitude": centroid_lat, "longitude": centroid_lon},
            "bounds": self.calculate_polygon_bounds(ring)
        }

    @staticmethod
    def calculate_polygon_bounds(ring: Sequence[Coordinate]) -> Dict[str, float]:
        """Calculate polygon bounding box"""

        if not ring:
            return {"min_lat": 0, "max_lat": 0, "min_lon": 0, "max_lon": 0}

        lats = [c.latitude for c in ring]
        lons = [c.longitude for c in ring]

        return {
            "min_lat": min(lats),
            "max_lat": max(lats),
            "min_lon": min(lons),
            "max_lon": max(lons)
        }
