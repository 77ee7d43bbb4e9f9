"""
Scenario Runner - Build and play a simulation described in JSON

A scenario file looks like:

    {
      "config": {"tick_interval_ms": 50},
      "boundary": [[0, 0], [0, 1], [1, 1], [1, 0]],
      "zones": [{"center": [0.5, 0.5], "radius": 50000}],
      "agents": [
        {"id": "Device", "waypoints": [[0.5, 0.2], [0.5, 0.8]], "steps_per_leg": 3},
        {"start": [0.2, 0.2], "destinations": [[0.8, 0.8], [0.2, 0.8]]}
      ],
      "fleet": false
    }

Coordinates are [latitude, longitude] pairs or objects with latitude and
longitude keys.
"""

import asyncio
import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from geosim.engine import GeofenceEngine
from geosim.errors import ConfigurationError
from geosim.models.agent import Agent
from geosim.modules.mission_planner.path_generator import resolve_step_count
from geosim.utils.logger import get_logger

logger = get_logger(__name__)


def load_scenario(file_path: Union[str, Path]) -> Dict[str, Any]:
    """Read a scenario file"""

    try:
        with open(file_path, "r", encoding="utf-8") as f:
            scenario = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid scenario file {file_path}: {e}") from e

    if not isinstance(scenario, dict):
        raise ConfigurationError(f"Scenario file {file_path} must hold a JSON object")

    if "boundary" not in scenario:
        raise ConfigurationError("Scenario is missing the boundary ring")

    return scenario


def build_engine(scenario: Dict[str, Any],
                 overrides: Optional[Dict[str, Any]] = None) -> GeofenceEngine:
    """Create an engine with the scenario's boundary, zones and agents"""

    config = dict(scenario.get("config", {}))
    config.update(overrides or {})

    engine = GeofenceEngine(config)
    engine.set_boundary(scenario["boundary"])

    for zone in scenario.get("zones", []):
        engine.add_zone(zone["center"], zone.get("radius", zone.get("radius_meters")), zone.get("name"))

    default_steps = engine.config.default_steps_per_leg

    for entry in scenario.get("agents", []):
        agent = engine.create_agent(entry.get("id"))
        steps = resolve_step_count(entry.get("steps_per_leg"), default_steps)

        if "waypoints" in entry:
            engine.set_agent_path(agent, entry["waypoints"], steps)
        elif "start" in entry:
            engine.set_agent_start(agent, entry["start"])
            for destination in entry.get("destinations", []):
                engine.add_agent_destination(agent, destination)
            engine.generate_agent_route(agent, steps)

    return engine


async def play(engine: GeofenceEngine, fleet: Optional[bool] = None) -> List[Agent]:
    """Play every agent with a path and wait until all are done"""

    playable = [agent for agent in engine.agents.values() if len(agent.path) >= 2]

    if fleet is None:
        fleet = len(playable) > 1

    if fleet:
        engine.start_all()
    else:
        for agent in playable:
            engine.start(agent)

    await engine.wait_all()
    return playable


def run_scenario(scenario: Dict[str, Any], overrides: Optional[Dict[str, Any]] = None,
                 fleet: Optional[bool] = None) -> GeofenceEngine:
    """Build and play a scenario on a fresh event loop"""

    engine = build_engine(scenario, overrides)
    if fleet is None:
        fleet = scenario.get("fleet")

    async def _run() -> None:
        played = await play(engine, fleet)
        logger.info(f"Scenario finished with {len(played)} agents")

    asyncio.run(_run())
    return engine
