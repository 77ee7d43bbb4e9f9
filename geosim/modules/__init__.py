"""
geosim Modules Package - Core modules of the geofence simulation engine

This package contains:
- geofence_manager: boundary and circular zone geometry
- mission_planner: path generation between waypoints
- simulation_manager: zone tracking, playback scheduling, events and configuration
- authoring: click-mode controller for map-based authoring
"""
