"""
Authoring Module Package - Interactive authoring on top of the engine

This package provides the click-mode controller that turns map clicks
into zone, path and vehicle route commands.
"""

from geosim.modules.authoring.click_controller import ClickModeController, ClickMode, ClickResult

__all__ = [
    "ClickModeController",
    "ClickMode",
    "ClickResult"
]
