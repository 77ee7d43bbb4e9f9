"""
Simulation Scheduler - Timed playback of agents along their paths

This module handles:
- Per agent run state machine (IDLE -> RUNNING -> FINISHED | STOPPED)
- Tick scheduling with cancellable asyncio timer handles
- Shared tick loop for fleets of agents
- Awaitable completion for scripts and tests
"""

import asyncio
from typing import Any, Callable, Dict, Iterable, List, Optional, Sequence

from geosim.errors import AlreadyRunning, InsufficientPath, NotRunning
from geosim.models.agent import Agent, RunState
from geosim.models.events import EventType, SimulationEvent
from geosim.models.geofence import Zone
from geosim.modules.simulation_manager.zone_tracker import ZoneTransitionTracker
from geosim.utils.logger import get_logger


class SimulationScheduler:
    """Drives agents through their paths one point per tick"""

    def __init__(self, tracker: ZoneTransitionTracker,
                 zones_provider: Callable[[], Sequence[Zone]],
                 publish: Callable[[SimulationEvent], None],
                 tick_interval: float = 1.2,
                 loop: Optional[asyncio.AbstractEventLoop] = None):
        self.logger = get_logger(__name__)
        self.tracker = tracker
        self.zones_provider = zones_provider
        self.publish = publish
        self.tick_interval = tick_interval
        self._loop = loop

        self._agents: Dict[str, Agent] = {}
        self._handles: Dict[str, asyncio.TimerHandle] = {}
        self._done_events: Dict[str, asyncio.Event] = {}
        self._generations: Dict[str, int] = {}

        # Fleet playback
        self._fleet: List[Agent] = []
        self._fleet_finished: List[str] = []
        self._fleet_handle: Optional[asyncio.TimerHandle] = None
        self._fleet_done: Optional[asyncio.Event] = None
        self.fleet_running = False

    def _get_loop(self) -> asyncio.AbstractEventLoop:
        return self._loop or asyncio.get_running_loop()

    def _emit(self, event_type: EventType, agent: Optional[Agent] = None, **kwargs: Any) -> None:
        self.publish(SimulationEvent(
            event_type=event_type,
            agent_id=agent.agent_id if agent else None,
            **kwargs
        ))

    # Single agent playback

    def start(self, agent: Agent) -> None:
        """Reset and start playback; the first point is consumed immediately"""

        if agent.is_running:
            raise AlreadyRunning(f"{agent.agent_id} is already running.")

        if len(agent.path) < 2:
            raise InsufficientPath(
                f"{agent.agent_id} needs a path of at least 2 points, has {len(agent.path)}."
            )

        # Resolve the loop before mutating state so a missing loop changes nothing
        self._get_loop()

        self._begin_run(agent, len(self.zones_provider()))

        self.logger.info(f"Simulation started for {agent.agent_id} ({len(agent.path)} points)")
        self._emit(EventType.STARTED, agent, data={"path_length": len(agent.path)})

        self._tick(agent)

    def _begin_run(self, agent: Agent, zone_count: int) -> None:
        """Rewind agent into RUNNING under a fresh run generation"""

        agent.reset_playback(zone_count)
        agent.state = RunState.RUNNING
        self._agents[agent.agent_id] = agent
        self._generations[agent.agent_id] = self._generations.get(agent.agent_id, 0) + 1

    def advance(self, agent: Agent) -> bool:
        """Advance a running agent now instead of waiting for its timer"""

        if not agent.is_running:
            raise NotRunning(f"{agent.agent_id} is not running.")

        if self.is_fleet_member(agent):
            raise AlreadyRunning(f"{agent.agent_id} is driven by the fleet loop.")

        handle = self._handles.pop(agent.agent_id, None)
        if handle:
            handle.cancel()

        self._tick(agent)
        return agent.is_running

    def stop(self, agent: Agent, strict: bool = False) -> bool:
        """Stop playback; a non running agent is reported, not changed"""

        if not agent.is_running:
            if strict:
                raise NotRunning(f"{agent.agent_id} is not running.")

            self.logger.info(f"Simulation is not running for {agent.agent_id}")
            self._emit(EventType.NOT_RUNNING, agent, data={"state": agent.state.value})
            return False

        handle = self._handles.pop(agent.agent_id, None)
        if handle:
            handle.cancel()

        agent.state = RunState.STOPPED
        if agent in self._fleet:
            self._fleet.remove(agent)

        self.logger.info(f"Simulation stopped for {agent.agent_id} at point {agent.cursor}/{len(agent.path)}")
        self._release(agent)
        self._emit(EventType.STOPPED, agent, point=agent.last_position, data={"reason": "stopped"})
        return True

    def _tick(self, agent: Agent) -> None:
        """Timer callback for one agent"""

        self._handles.pop(agent.agent_id, None)

        if not agent.is_running:
            return

        try:
            self._step(agent)
        except Exception as e:
            self._abort(agent, e)
            return

        # A handler may have stopped or restarted the agent meanwhile
        if agent.is_running and agent.agent_id not in self._handles:
            self._handles[agent.agent_id] = self._get_loop().call_later(
                self.tick_interval, self._tick, agent
            )

    def _step(self, agent: Agent) -> None:
        """Consume the next point or finish"""

        if not agent.has_remaining_path:
            agent.state = RunState.FINISHED
            if agent in self._fleet:
                self._fleet.remove(agent)
                self._fleet_finished.append(agent.agent_id)

            self.logger.info(f"End of simulation path reached for {agent.agent_id}")
            self._release(agent)
            self._emit(EventType.FINISHED, agent, point=agent.last_position,
                       data={"path_length": len(agent.path)})
            return

        generation = self._generations.get(agent.agent_id)
        point = agent.path[agent.cursor]
        agent.cursor += 1
        agent.last_position = point

        self._emit(EventType.MOVED, agent, point=point,
                   data={"cursor": agent.cursor, "remaining": agent.remaining_points})

        # Stopped or restarted by a MOVED handler
        if not agent.is_running or self._generations.get(agent.agent_id) != generation:
            return

        for transition in self.tracker.step(agent, self.zones_provider(), point):
            self.logger.info(
                f"{transition.event_type.name} zone {transition.zone_index} ({agent.agent_id})"
            )
            self._emit(transition.event_type, agent, zone_index=transition.zone_index, point=point)

    def _abort(self, agent: Agent, error: Exception) -> None:
        """Leave agent STOPPED after a failed tick"""

        self.logger.error(f"Tick failed for {agent.agent_id}: {error}")

        handle = self._handles.pop(agent.agent_id, None)
        if handle:
            handle.cancel()

        agent.state = RunState.STOPPED
        if agent in self._fleet:
            self._fleet.remove(agent)

        self._release(agent)
        self._emit(EventType.STOPPED, agent, point=agent.last_position,
                   data={"reason": "error", "error": str(error)})

    def _release(self, agent: Agent) -> None:
        event = self._done_events.pop(agent.agent_id, None)
        if event:
            event.set()

    # Fleet playback

    def start_fleet(self, agents: Iterable[Agent]) -> List[Agent]:
        """Start every agent with a playable path on one shared tick loop"""

        agents = list(agents)

        if self.fleet_running:
            raise AlreadyRunning("Fleet playback is already running.")

        for agent in agents:
            if agent.is_running:
                raise AlreadyRunning(f"{agent.agent_id} is already running.")

        members = [agent for agent in agents if agent.path]
        if not members:
            raise InsufficientPath("No vehicle has a path to follow.")

        self._get_loop()

        zone_count = len(self.zones_provider())
        for agent in members:
            self._begin_run(agent, zone_count)

        self._fleet = list(members)
        self._fleet_finished = []
        self.fleet_running = True

        skipped = [agent.agent_id for agent in agents if agent not in members]
        if skipped:
            self.logger.warning(f"Skipping vehicles without a path: {skipped}")

        self.logger.info(f"Fleet simulation started with {len(members)} vehicles")
        for agent in members:
            self._emit(EventType.STARTED, agent,
                       data={"path_length": len(agent.path), "fleet": True})

        self._fleet_tick()
        return list(members)

    def _fleet_tick(self) -> None:
        """Shared timer callback advancing every running member in order"""

        self._fleet_handle = None

        if not self.fleet_running:
            return

        for agent in list(self._fleet):
            # Members stopped or handed to their own timer during this tick
            if not agent.is_running or agent not in self._fleet:
                continue

            try:
                self._step(agent)
            except Exception as e:
                self._abort(agent, e)

        if not self.fleet_running:
            return

        if any(agent.is_running for agent in self._fleet):
            if self._fleet_handle is None:
                self._fleet_handle = self._get_loop().call_later(self.tick_interval, self._fleet_tick)
            return

        finished = list(self._fleet_finished)
        self._end_fleet()

        self.logger.info("All vehicles finished their routes")
        self._emit(EventType.ALL_FINISHED, data={"finished": finished})

    def stop_fleet(self) -> bool:
        """Cancel the shared timer and stop every running member"""

        if not self.fleet_running:
            self.logger.info("Fleet simulation is not running")
            return False

        members = list(self._fleet)
        self._end_fleet()

        for agent in members:
            if agent.is_running:
                agent.state = RunState.STOPPED
                self._release(agent)
                self._emit(EventType.STOPPED, agent, point=agent.last_position,
                           data={"reason": "fleet_stopped"})

        self.logger.info(f"Fleet simulation stopped ({len(members)} vehicles)")
        return True

    def _end_fleet(self) -> None:
        if self._fleet_handle:
            self._fleet_handle.cancel()
            self._fleet_handle = None

        self.fleet_running = False
        self._fleet = []
        self._fleet_finished = []

        if self._fleet_done:
            self._fleet_done.set()
            self._fleet_done = None

    # Completion

    async def wait(self, agent_id: str) -> Optional[RunState]:
        """Resolve once the agent leaves RUNNING"""

        agent = self._agents.get(agent_id)
        if agent is None:
            return None

        # Restarted agents keep the waiter until the new run ends
        while agent.is_running:
            event = self._done_events.setdefault(agent_id, asyncio.Event())
            await event.wait()

        return agent.state

    async def wait_fleet(self) -> None:
        """Resolve once the fleet loop has ended"""

        if not self.fleet_running:
            return

        if self._fleet_done is None:
            self._fleet_done = asyncio.Event()
        await self._fleet_done.wait()

    def is_fleet_member(self, agent: Agent) -> bool:
        return self.fleet_running and agent in self._fleet

    def get_status(self) -> Dict[str, Any]:
        return {
            "tick_interval": self.tick_interval,
            "running_agents": [a.agent_id for a in self._agents.values() if a.is_running],
            "pending_timers": len(self._handles),
            "fleet_running": self.fleet_running,
            "fleet_members": [a.agent_id for a in self._fleet]
        }
