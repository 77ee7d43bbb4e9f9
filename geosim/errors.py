"""
Errors - Recoverable error kinds raised by the engine

Every error here is a local validation failure reported back to the caller.
None of them leaves the engine in a modified state.
"""


class GeofenceSimError(Exception):
    """Base class for all engine errors"""


class InvalidGeometry(GeofenceSimError, ValueError):
    """Ring or coordinate cannot form valid geometry"""


class BoundaryNotSet(InvalidGeometry):
    """Operation needs a boundary but none is active"""

    def __init__(self, message: str = "Boundary polygon not set. Draw it first."):
        super().__init__(message)


class OutOfBounds(GeofenceSimError, ValueError):
    """Coordinate lies outside the active boundary"""


class InvalidRadius(GeofenceSimError, ValueError):
    """Zone radius must be a positive number of meters"""


class ZoneLimitReached(GeofenceSimError):
    """Configured maximum number of zones already created"""


class InsufficientWaypoints(GeofenceSimError, ValueError):
    """Path generation needs at least two waypoints"""


class InvalidStepCount(GeofenceSimError, ValueError):
    """Steps per leg must be at least two"""


class InsufficientPath(GeofenceSimError, ValueError):
    """Playback needs a path of at least two points"""


class AlreadyRunning(GeofenceSimError, RuntimeError):
    """Agent (or fleet) playback is already active"""


class NotRunning(GeofenceSimError, RuntimeError):
    """Agent playback is not active"""


class UnknownAgent(GeofenceSimError, KeyError):
    """No agent registered under the given identifier"""


class ConfigurationError(GeofenceSimError, ValueError):
    """Configuration parameter failed validation"""
