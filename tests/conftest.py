"""Shared fixtures: unit-square engine with a fast tick."""

import pytest

from geosim.engine import GeofenceEngine
from geosim.modules.geofence_manager.geofence_controller import GeofenceManager

UNIT_SQUARE = [(0, 0), (0, 1), (1, 1), (1, 0)]

# Playback in tests ticks every millisecond
FAST_CONFIG = {"tick_interval_ms": 1}


class EventRecorder:
    """Collects every event published by an engine"""

    def __init__(self):
        self.events = []

    def __call__(self, event):
        self.events.append(event)

    def types(self, *only):
        return [e.event_type for e in self.events if not only or e.event_type in only]

    def of(self, event_type):
        return [e for e in self.events if e.event_type is event_type]


@pytest.fixture
def engine():
    return GeofenceEngine(FAST_CONFIG)


@pytest.fixture
def square_engine(engine):
    engine.set_boundary(UNIT_SQUARE)
    return engine


@pytest.fixture
def recorder(square_engine):
    rec = EventRecorder()
    square_engine.subscribe(rec)
    return rec


@pytest.fixture
def square_manager():
    manager = GeofenceManager()
    manager.set_boundary(UNIT_SQUARE)
    return manager
