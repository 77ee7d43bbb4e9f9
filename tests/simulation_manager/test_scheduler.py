"""Playback scheduling through the engine with a millisecond tick."""

import asyncio

import pytest

from geosim.engine import GeofenceEngine
from geosim.errors import AlreadyRunning, InsufficientPath, NotRunning
from geosim.models.agent import RunState
from geosim.models.events import EventType
from geosim.models.geofence import Coordinate

from tests.conftest import FAST_CONFIG, UNIT_SQUARE, EventRecorder

TRANSITIONS = (EventType.ENTERED, EventType.EXITED, EventType.FINISHED)


def run(coro):
    return asyncio.run(asyncio.wait_for(coro, timeout=5))


@pytest.fixture
def two_zone_engine(square_engine):
    square_engine.add_zone((0.5, 0.25), 10_000)
    square_engine.add_zone((0.5, 0.75), 10_000)
    return square_engine


class TestSingleAgent:
    def test_unit_square_scenario(self, square_engine, recorder):
        square_engine.add_zone((0.5, 0.5), 50_000)
        agent = square_engine.create_agent("Device")
        path = square_engine.set_agent_path(agent, [(0.5, 0.2), (0.5, 0.8)], 3)

        async def scenario():
            square_engine.start(agent)
            return await square_engine.wait(agent)

        assert run(scenario()) is RunState.FINISHED

        assert recorder.types(*TRANSITIONS) == [EventType.ENTERED, EventType.FINISHED]

        entered = recorder.of(EventType.ENTERED)[0]
        assert entered.zone_index == 0
        assert entered.point == path[0]

        # Entered right after the first move
        moved_before = recorder.types(EventType.MOVED, EventType.ENTERED).index(EventType.ENTERED)
        assert moved_before == 1

    def test_two_disjoint_zones(self, two_zone_engine):
        rec = EventRecorder()
        two_zone_engine.subscribe(rec)
        agent = two_zone_engine.create_agent()
        two_zone_engine.set_agent_path(agent, [(0.5, 0.05), (0.5, 0.95)], 19)

        async def scenario():
            two_zone_engine.start(agent)
            await two_zone_engine.wait(agent)

        run(scenario())

        sequence = [(e.event_type, e.zone_index) for e in rec.events if e.event_type in TRANSITIONS]
        assert sequence == [
            (EventType.ENTERED, 0),
            (EventType.EXITED, 0),
            (EventType.ENTERED, 1),
            (EventType.EXITED, 1),
            (EventType.FINISHED, None),
        ]

    def test_enter_and_exit_steps(self, two_zone_engine):
        rec = EventRecorder()
        two_zone_engine.subscribe(rec)
        agent = two_zone_engine.create_agent()
        two_zone_engine.set_agent_path(agent, [(0.5, 0.05), (0.5, 0.95)], 19)

        async def scenario():
            two_zone_engine.start(agent)
            await two_zone_engine.wait(agent)

        run(scenario())

        step = -1
        zone0 = []
        for event in rec.events:
            if event.event_type is EventType.MOVED:
                step += 1
            elif event.zone_index == 0 and event.event_type in (EventType.ENTERED, EventType.EXITED):
                zone0.append((event.event_type, step))

        # Longitudes 0.20..0.30 lie within 10 km of the zone center at 0.25
        assert zone0 == [(EventType.ENTERED, 3), (EventType.EXITED, 6)]

    def test_first_advance_is_synchronous(self, square_engine, recorder):
        agent = square_engine.create_agent()
        square_engine.set_agent_path(agent, [(0.1, 0.1), (0.9, 0.9)], 5)

        async def scenario():
            square_engine.start(agent)
            assert agent.cursor == 1
            assert agent.is_running
            assert recorder.types(EventType.STARTED, EventType.MOVED) == [
                EventType.STARTED,
                EventType.MOVED,
            ]
            square_engine.stop(agent)

        run(scenario())

    def test_finished_one_tick_after_last_point(self, square_engine, recorder):
        agent = square_engine.create_agent()
        square_engine.set_agent_path(agent, [(0.1, 0.1), (0.9, 0.9)], 4)

        async def scenario():
            square_engine.start(agent)
            await square_engine.wait(agent)

        run(scenario())

        assert len(recorder.of(EventType.MOVED)) == 4
        assert recorder.events[-1].event_type is EventType.FINISHED
        assert agent.cursor == 4

    def test_restart_resets_zone_state(self, square_engine, recorder):
        square_engine.add_zone((0.5, 0.5), 50_000)
        agent = square_engine.create_agent()
        square_engine.set_agent_path(agent, [(0.5, 0.2), (0.5, 0.8)], 3)

        async def scenario():
            square_engine.start(agent)
            await square_engine.wait(agent)
            assert agent.inside_zone == [True]

            square_engine.start(agent)
            assert agent.cursor == 1
            await square_engine.wait(agent)

        run(scenario())

        assert len(recorder.of(EventType.ENTERED)) == 2
        assert recorder.of(EventType.EXITED) == []
        assert len(recorder.of(EventType.STARTED)) == 2

    def test_insufficient_path(self, square_engine):
        agent = square_engine.create_agent()
        with pytest.raises(InsufficientPath):
            square_engine.start(agent)
        assert agent.state is RunState.IDLE

    def test_start_while_running_rejected(self, square_engine):
        agent = square_engine.create_agent()
        square_engine.set_agent_path(agent, [(0.1, 0.1), (0.9, 0.9)], 50)

        async def scenario():
            square_engine.start(agent)
            cursor = agent.cursor
            with pytest.raises(AlreadyRunning):
                square_engine.start(agent)
            assert agent.cursor == cursor
            square_engine.stop(agent)

        run(scenario())

    def test_stop_cancels_pending_tick(self):
        engine = GeofenceEngine({"tick_interval_ms": 20})
        engine.set_boundary(UNIT_SQUARE)
        rec = EventRecorder()
        engine.subscribe(rec)
        agent = engine.create_agent()
        engine.set_agent_path(agent, [(0.1, 0.1), (0.9, 0.9)], 10)

        async def scenario():
            engine.start(agent)
            assert engine.stop(agent) is True
            await asyncio.sleep(0.1)

        run(scenario())

        assert agent.state is RunState.STOPPED
        assert agent.cursor == 1
        assert len(rec.of(EventType.MOVED)) == 1
        assert rec.events[-1].event_type is EventType.STOPPED
        assert rec.events[-1].data["reason"] == "stopped"

    def test_stop_when_not_running_is_informational(self, square_engine, recorder):
        agent = square_engine.create_agent()
        square_engine.set_agent_path(agent, [(0.1, 0.1), (0.9, 0.9)], 5)

        assert square_engine.stop(agent) is False
        assert agent.state is RunState.IDLE
        assert agent.cursor == 0
        assert recorder.events[-1].event_type is EventType.NOT_RUNNING

    def test_strict_stop_raises(self, square_engine):
        agent = square_engine.create_agent()
        with pytest.raises(NotRunning):
            square_engine.stop(agent, strict=True)
        assert agent.state is RunState.IDLE

    def test_stop_from_subscriber(self, square_engine):
        square_engine.add_zone((0.5, 0.5), 20_000)
        agent = square_engine.create_agent()
        square_engine.set_agent_path(agent, [(0.5, 0.1), (0.5, 0.9)], 9)
        square_engine.subscribe(lambda event: square_engine.stop(event.agent_id), [EventType.ENTERED])

        async def scenario():
            square_engine.start(agent)
            return await square_engine.wait(agent)

        assert run(scenario()) is RunState.STOPPED
        assert agent.inside_zone == [True]
        assert agent.cursor < len(agent.path)

    def test_restart_from_moved_subscriber(self, square_engine, recorder):
        square_engine.add_zone((0.5, 0.1), 15_000)
        agent = square_engine.create_agent()
        path = square_engine.set_agent_path(agent, [(0.5, 0.1), (0.5, 0.9)], 5)
        restarted = []

        def restart(event):
            if event.data["cursor"] == 3 and not restarted:
                restarted.append(True)
                square_engine.stop(agent)
                square_engine.start(agent)

        square_engine.subscribe(restart, [EventType.MOVED])

        async def scenario():
            square_engine.start(agent)
            return await square_engine.wait(agent)

        assert run(scenario()) is RunState.FINISHED

        assert recorder.types(EventType.ENTERED, EventType.EXITED) == [
            EventType.ENTERED, EventType.EXITED, EventType.ENTERED, EventType.EXITED,
        ]
        assert [e.point for e in recorder.of(EventType.EXITED)] == [path[1], path[1]]
        assert agent.inside_zone == [False]

    def test_manual_advance(self):
        engine = GeofenceEngine({"tick_interval_ms": 60_000})
        engine.set_boundary(UNIT_SQUARE)
        agent = engine.create_agent()
        engine.set_agent_path(agent, [(0.1, 0.1), (0.9, 0.9)], 2)

        async def scenario():
            engine.start(agent)
            assert engine.advance(agent) is True
            assert agent.cursor == 2
            assert engine.advance(agent) is False
            assert agent.state is RunState.FINISHED

        run(scenario())

    def test_error_during_advance_stops_agent(self, square_engine, recorder, monkeypatch):
        agent = square_engine.create_agent()
        square_engine.set_agent_path(agent, [(0.1, 0.1), (0.9, 0.9)], 5)

        def broken(*args, **kwargs):
            raise RuntimeError("geometry exploded")

        monkeypatch.setattr(square_engine.tracker, "step", broken)

        async def scenario():
            square_engine.start(agent)

        run(scenario())

        assert agent.state is RunState.STOPPED
        stopped = recorder.of(EventType.STOPPED)
        assert len(stopped) == 1
        assert stopped[0].data["reason"] == "error"
        assert "geometry exploded" in stopped[0].data["error"]

    def test_path_changes_rejected_while_running(self, square_engine):
        agent = square_engine.create_agent()
        square_engine.set_agent_path(agent, [(0.1, 0.1), (0.9, 0.9)], 50)

        async def scenario():
            square_engine.start(agent)
            original = agent.path
            with pytest.raises(AlreadyRunning):
                square_engine.set_agent_path(agent, [(0.2, 0.2), (0.3, 0.3)], 5)
            with pytest.raises(AlreadyRunning):
                square_engine.clear_agent_path(agent)
            assert agent.path is original
            square_engine.stop(agent)

        run(scenario())


class TestFleet:
    def _fleet(self, engine):
        first = engine.create_agent()
        second = engine.create_agent()
        idle = engine.create_agent()
        engine.set_agent_path(first, [(0.1, 0.1), (0.2, 0.2)], 3)
        engine.set_agent_path(second, [(0.5, 0.5), (0.6, 0.6)], 5)
        return first, second, idle

    def test_runs_until_all_finished(self, square_engine, recorder):
        first, second, idle = self._fleet(square_engine)

        async def scenario():
            members = square_engine.start_all()
            assert members == [first, second]
            await square_engine.wait_all()

        run(scenario())

        assert first.state is RunState.FINISHED
        assert second.state is RunState.FINISHED
        assert idle.state is RunState.IDLE
        assert recorder.events[-1].event_type is EventType.ALL_FINISHED
        assert recorder.events[-1].data["finished"] == [first.agent_id, second.agent_id]

        finished = [e.agent_id for e in recorder.of(EventType.FINISHED)]
        assert finished == [first.agent_id, second.agent_id]

    def test_registration_order_within_tick(self, square_engine, recorder):
        first, second, _ = self._fleet(square_engine)

        async def scenario():
            square_engine.start_all()
            await square_engine.wait_all()

        run(scenario())

        moved = [e.agent_id for e in recorder.of(EventType.MOVED)]
        assert moved[:6] == [first.agent_id, second.agent_id] * 3
        assert moved[6:] == [second.agent_id] * 2

    def test_fleet_rejections(self, square_engine):
        with pytest.raises(InsufficientPath):
            square_engine.start_all()

        first, second, _ = self._fleet(square_engine)

        async def scenario():
            square_engine.start(first)
            with pytest.raises(AlreadyRunning):
                square_engine.start_all()
            square_engine.stop(first)

            square_engine.start_all()
            with pytest.raises(AlreadyRunning):
                square_engine.start_all()
            with pytest.raises(AlreadyRunning):
                square_engine.advance(first)
            assert square_engine.stop_all() == 2

        run(scenario())

        assert first.state is RunState.STOPPED
        assert second.state is RunState.STOPPED

    def test_individual_stop_leaves_fleet(self, square_engine, recorder):
        first, second, _ = self._fleet(square_engine)

        async def scenario():
            square_engine.start_all()
            square_engine.stop(first)
            await square_engine.wait_all()

        run(scenario())

        assert first.state is RunState.STOPPED
        assert first.cursor == 1
        assert second.state is RunState.FINISHED
        assert recorder.events[-1].data["finished"] == [second.agent_id]

    def test_restarted_member_leaves_fleet_loop(self, square_engine, recorder):
        short = square_engine.create_agent()
        long = square_engine.create_agent()
        square_engine.set_agent_path(short, [(0.1, 0.1), (0.2, 0.2)], 2)
        square_engine.set_agent_path(long, [(0.5, 0.1), (0.5, 0.9)], 40)
        seen = {}

        def restart(event):
            if event.agent_id != short.agent_id or seen:
                return
            square_engine.set_agent_path(short, [(0.1, 0.1), (0.3, 0.3)], 10)
            square_engine.start(short)
            seen["member"] = square_engine.scheduler.is_fleet_member(short)
            seen["fleet"] = square_engine.scheduler.get_status()["fleet_members"]
            seen["advanced"] = square_engine.advance(short)

        square_engine.subscribe(restart, [EventType.FINISHED])

        async def scenario():
            square_engine.start_all()
            await square_engine.wait_all()

        run(scenario())

        assert seen == {"member": False, "fleet": [long.agent_id], "advanced": True}
        assert short.state is RunState.FINISHED
        assert long.state is RunState.FINISHED

        short_moves = [e for e in recorder.of(EventType.MOVED) if e.agent_id == short.agent_id]
        assert len(short_moves) == 2 + 10
        assert recorder.of(EventType.ALL_FINISHED)[0].data["finished"] == [short.agent_id, long.agent_id]

    def test_single_point_member_moves_once(self, square_engine, recorder):
        single = square_engine.create_agent()
        empty = square_engine.create_agent()
        single.replace_path([Coordinate(0.3, 0.3)], 0)

        async def scenario():
            assert square_engine.start_all() == [single]
            await square_engine.wait_all()

        run(scenario())

        assert single.state is RunState.FINISHED
        assert empty.state is RunState.IDLE
        assert len(recorder.of(EventType.MOVED)) == 1
        assert recorder.events[-1].data["finished"] == [single.agent_id]

    def test_stop_all_without_playback(self, square_engine):
        assert square_engine.stop_all() == 0


def test_scheduler_uses_configured_interval():
    engine = GeofenceEngine(dict(FAST_CONFIG, tick_interval_ms=250))
    assert engine.scheduler.tick_interval == pytest.approx(0.25)
