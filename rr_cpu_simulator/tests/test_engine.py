"""
Tests for the Round Robin engine state machine.
"""

import pytest

from ..backend.core import (
    ConfigurationError, ProcessDefinition, ProcessState, ReadyQueue, Process,
    SchedulerInvariantError,
)
from ..backend.engine import RoundRobinEngine
from ..backend.events import EventType, SchedulerListener


def defs(*rows):
    """Build definitions from (pid, burst, arrival) tuples."""
    return [ProcessDefinition(pid=pid, burst_time=burst, arrival_time=arrival) for pid, burst, arrival in rows]


def kinds(events):
    return [(e.type, e.pid, e.time) for e in events]


class RecordingListener(SchedulerListener):
    def __init__(self):
        self.calls = []

    def on_reset(self):
        self.calls.append(("reset",))

    def on_arrived(self, process):
        self.calls.append(("arrived", process.pid))

    def on_dispatched(self, process):
        self.calls.append(("dispatched", process.pid))

    def on_preempted(self, process):
        self.calls.append(("preempted", process.pid))

    def on_finished(self, process, completion_time):
        self.calls.append(("finished", process.pid, completion_time))

    def on_tick(self, current_time):
        self.calls.append(("tick", current_time))

    def on_simulation_complete(self):
        self.calls.append(("complete",))


class TestReadyQueue:
    """Test the FIFO ready queue."""

    def test_fifo_order(self):
        queue = ReadyQueue()
        for pid in ("A", "B", "C"):
            queue.push(Process(pid=pid, burst_time=1, arrival_time=0))
        assert [p.pid for p in queue] == ["A", "B", "C"]
        assert queue.pop().pid == "A"
        assert queue.peek().pid == "B"
        assert len(queue) == 2
        assert "A" not in queue and "B" in queue

    def test_pop_empty(self):
        queue = ReadyQueue()
        assert queue.pop() is None
        assert queue.is_empty()

    def test_double_push_is_rejected(self):
        queue = ReadyQueue()
        p = Process(pid="A", burst_time=1, arrival_time=0)
        queue.push(p)
        with pytest.raises(SchedulerInvariantError):
            queue.push(p)


def test_process_remaining_time_defaults_to_burst():
    assert Process(pid="A", burst_time=4, arrival_time=0).remaining_time == 4
    assert Process(pid="A", burst_time=4, arrival_time=0, remaining_time=1).remaining_time == 1


class TestReset:
    """Test engine construction and reset."""

    def test_fresh_state(self, scenario_b_defs):
        engine = RoundRobinEngine(scenario_b_defs, quantum=2)
        assert engine.current_time == 0
        assert engine.running is None
        assert len(engine.ready_queue) == 0
        for p in engine.processes:
            assert p.remaining_time == p.burst_time
            assert p.waiting_time == 0
            assert p.completion_time is None
            assert not p.arrived and not p.finished
            assert p.state == ProcessState.NEW

    def test_reset_is_idempotent(self, default_defs):
        engine = RoundRobinEngine(default_defs, quantum=3)
        engine.reset(default_defs, 3)
        first = engine.snapshot()
        engine.reset(default_defs, 3)
        assert engine.snapshot() == first

    def test_reset_after_running_restores_initial_state(self, default_defs):
        engine = RoundRobinEngine(default_defs, quantum=2)
        initial = engine.snapshot()
        for _ in range(10):
            engine.tick()
        assert engine.snapshot() != initial
        engine.reset()
        assert engine.snapshot() == initial
        assert engine.metrics.logger.entries == []

    def test_processes_are_fresh_copies(self, scenario_b_defs):
        engine = RoundRobinEngine(scenario_b_defs, quantum=2)
        before = engine.get_process("P1")
        engine.run_until_complete()
        engine.reset()
        after = engine.get_process("P1")
        assert after is not before
        assert before.finished and not after.finished

    def test_reset_notifies_listeners(self, scenario_b_defs):
        engine = RoundRobinEngine(scenario_b_defs, quantum=2)
        listener = RecordingListener()
        engine.subscribe(listener)
        engine.reset()
        assert listener.calls == [("reset",)]


class TestConfigurationErrors:
    """Invalid configuration is rejected and leaves state untouched."""

    @pytest.mark.parametrize("bad", [
        defs(("P1", 3, 0), ("P1", 2, 1)),
        defs(("P1", 0, 0)),
        defs(("P1", -2, 0)),
        defs(("P1", 3, -1)),
        defs(("", 3, 0)),
        [ProcessDefinition(pid="P1", burst_time=2.5, arrival_time=0)],
        [ProcessDefinition(pid="P1", burst_time=True, arrival_time=0)],
        [],
    ])
    def test_bad_definitions(self, bad):
        with pytest.raises(ConfigurationError):
            RoundRobinEngine(bad, quantum=2)

    @pytest.mark.parametrize("quantum", [0, -1, 1.5, "2", True])
    def test_bad_quantum(self, scenario_b_defs, quantum):
        with pytest.raises(ConfigurationError):
            RoundRobinEngine(scenario_b_defs, quantum=quantum)

    def test_rejected_reset_keeps_prior_state(self, default_defs):
        engine = RoundRobinEngine(default_defs, quantum=2)
        for _ in range(5):
            engine.tick()
        before = engine.snapshot()
        with pytest.raises(ConfigurationError):
            engine.reset(defs(("X", 1, 0), ("X", 1, 0)), 2)
        with pytest.raises(ConfigurationError):
            engine.reset(default_defs, 0)
        assert engine.snapshot() == before

    def test_rejected_quantum_change_keeps_quantum(self, scenario_b_defs):
        engine = RoundRobinEngine(scenario_b_defs, quantum=2)
        with pytest.raises(ConfigurationError):
            engine.set_quantum(0)
        assert engine.quantum == 2


class TestScenarios:
    """Concrete schedules."""

    def test_single_process_runs_to_completion(self):
        engine = RoundRobinEngine(defs(("P1", 8, 0)), quantum=8)
        first = engine.tick()
        assert (EventType.DISPATCHED, "P1", 0) in kinds(first)
        assert engine.current_time == 1
        for _ in range(7):
            events = engine.tick()
            assert all(e.type != EventType.PREEMPTED for e in events)
        p = engine.get_process("P1")
        assert engine.current_time == 8
        assert p.finished and p.completion_time == 8
        assert p.waiting_time == 0
        assert engine.is_complete

    def test_two_processes_quantum_two(self, scenario_b_defs):
        engine = RoundRobinEngine(scenario_b_defs, quantum=2)

        assert kinds(engine.tick()) == [
            (EventType.ARRIVED, "P1", 0),
            (EventType.DISPATCHED, "P1", 0),
            (EventType.ARRIVED, "P2", 1),
            (EventType.TICK, None, 1),
        ]
        assert [p.pid for p in engine.ready_queue] == ["P2"]

        assert kinds(engine.tick()) == [
            (EventType.PREEMPTED, "P1", 2),
            (EventType.TICK, None, 2),
        ]
        assert [p.pid for p in engine.ready_queue] == ["P2", "P1"]
        assert engine.running is None

        assert kinds(engine.tick()) == [
            (EventType.DISPATCHED, "P2", 2),
            (EventType.TICK, None, 3),
        ]
        assert kinds(engine.tick()) == [
            (EventType.FINISHED, "P2", 4),
            (EventType.TICK, None, 4),
        ]
        assert kinds(engine.tick()) == [
            (EventType.DISPATCHED, "P1", 4),
            (EventType.FINISHED, "P1", 5),
            (EventType.TICK, None, 5),
            (EventType.SIMULATION_COMPLETE, None, 5),
        ]

        p1, p2 = engine.get_process("P1"), engine.get_process("P2")
        assert (p1.completion_time, p2.completion_time) == (5, 4)
        assert (p1.waiting_time, p2.waiting_time) == (2, 1)
        assert [p.pid for p in engine.finished_processes] == ["P2", "P1"]

    def test_idle_gap_before_first_arrival(self):
        engine = RoundRobinEngine(defs(("P1", 2, 5)), quantum=2)
        for expected_time in range(1, 5):
            events = engine.tick()
            assert engine.current_time == expected_time
            assert engine.running is None
            assert len(engine.ready_queue) == 0
            assert kinds(events) == [(EventType.TICK, None, expected_time)]

        events = engine.tick()
        assert engine.current_time == 5
        assert engine.running is None
        assert [p.pid for p in engine.ready_queue] == ["P1"]
        assert (EventType.ARRIVED, "P1", 5) in kinds(events)

        engine.tick()
        engine.tick()
        p = engine.get_process("P1")
        assert p.completion_time == 7
        assert p.waiting_time == 0

    def test_same_arrival_keeps_declaration_order(self):
        engine = RoundRobinEngine(defs(("B", 2, 0), ("A", 2, 0), ("C", 2, 0)), quantum=1)
        events = engine.tick()
        arrivals = [e.pid for e in events if e.type == EventType.ARRIVED]
        assert arrivals == ["B", "A", "C"]
        # B ran the first unit and went to the tail behind A and C
        assert [p.pid for p in engine.ready_queue] == ["A", "C", "B"]

    def test_preempted_process_queues_behind_same_tick_arrival(self):
        engine = RoundRobinEngine(defs(("P1", 4, 0), ("P2", 1, 2)), quantum=2)
        engine.tick()
        events = engine.tick()
        assert kinds(events)[:2] == [(EventType.ARRIVED, "P2", 2), (EventType.PREEMPTED, "P1", 2)]
        assert [p.pid for p in engine.ready_queue] == ["P2", "P1"]

    def test_completion_wins_over_quantum_expiry(self):
        engine = RoundRobinEngine(defs(("P1", 2, 0), ("P2", 1, 0)), quantum=2)
        engine.tick()
        events = engine.tick()
        types = [e.type for e in events]
        assert EventType.FINISHED in types
        assert EventType.PREEMPTED not in types

    def test_quantum_is_captured_at_dispatch(self):
        engine = RoundRobinEngine(defs(("P1", 10, 0), ("P2", 10, 0)), quantum=3)
        engine.tick()
        assert engine.cpu.quantum_remaining == 2
        engine.set_quantum(1)
        engine.tick()
        assert engine.running.pid == "P1"
        assert engine.cpu.quantum_remaining == 1
        events = engine.tick()
        assert (EventType.PREEMPTED, "P1", 3) in kinds(events)
        events = engine.tick()
        # P2 gets the new quantum of 1 and is preempted right away
        assert (EventType.DISPATCHED, "P2", 3) in kinds(events)
        assert (EventType.PREEMPTED, "P2", 4) in kinds(events)
        assert [p.pid for p in engine.ready_queue] == ["P1", "P2"]

    def test_tick_after_completion_is_noop(self, scenario_b_defs):
        engine = RoundRobinEngine(scenario_b_defs, quantum=2)
        engine.run_until_complete()
        before = engine.snapshot()
        assert engine.tick() == []
        assert engine.tick() == []
        assert engine.snapshot() == before

    def test_default_workload(self, default_defs):
        engine = RoundRobinEngine(default_defs, quantum=2)
        assert engine.run_until_complete() == 31
        completion = {p.pid: p.completion_time for p in engine.processes}
        assert completion == {"P1": 21, "P2": 17, "P3": 31, "P4": 25}
        waiting = {p.pid: p.waiting_time for p in engine.processes}
        assert waiting == {"P1": 13, "P2": 10, "P3": 15, "P4": 13}
        assert [p.pid for p in engine.finished_processes] == ["P2", "P1", "P4", "P3"]


class TestListeners:
    """Observer notifications."""

    def test_listener_sees_every_transition(self, scenario_b_defs):
        engine = RoundRobinEngine(scenario_b_defs, quantum=2)
        listener = RecordingListener()
        engine.subscribe(listener)
        engine.run_until_complete()
        assert listener.calls == [
            ("arrived", "P1"), ("dispatched", "P1"), ("arrived", "P2"), ("tick", 1),
            ("preempted", "P1"), ("tick", 2),
            ("dispatched", "P2"), ("tick", 3),
            ("finished", "P2", 4), ("tick", 4),
            ("dispatched", "P1"), ("finished", "P1", 5), ("tick", 5),
            ("complete",),
        ]

    def test_on_tick_fires_once_per_tick(self):
        engine = RoundRobinEngine(defs(("P1", 1, 3)), quantum=1)
        listener = RecordingListener()
        engine.subscribe(listener)
        engine.run_until_complete()
        ticks = [c[1] for c in listener.calls if c[0] == "tick"]
        assert ticks == [1, 2, 3, 4]

    def test_unsubscribe(self, scenario_b_defs):
        engine = RoundRobinEngine(scenario_b_defs, quantum=2)
        listener = RecordingListener()
        engine.subscribe(listener)
        engine.unsubscribe(listener)
        engine.tick()
        assert listener.calls == []

    def test_metrics_cannot_be_unsubscribed(self, scenario_b_defs):
        engine = RoundRobinEngine(scenario_b_defs, quantum=2)
        engine.unsubscribe(engine.metrics)
        engine.run_until_complete()
        assert len(engine.metrics.completed) == 2


WORKLOADS = [
    defs(("P1", 8, 0), ("P2", 5, 2), ("P3", 12, 4), ("P4", 6, 6)),
    defs(("A", 1, 0), ("B", 1, 0), ("C", 1, 0)),
    defs(("A", 5, 3), ("B", 2, 10), ("C", 7, 10), ("D", 1, 30)),
    defs(("A", 4, 1), ("B", 3, 1), ("C", 9, 2), ("D", 2, 2), ("E", 6, 5)),
]


@pytest.mark.parametrize("workload", WORKLOADS)
@pytest.mark.parametrize("quantum", [1, 2, 3, 5])
def test_invariants_hold_every_tick(workload, quantum):
    engine = RoundRobinEngine(workload, quantum=quantum)
    bursts = {d.pid: d.burst_time for d in workload}
    first_arrival = min(d.arrival_time for d in workload)
    gaps = 0

    while not engine.is_complete:
        before = {p.pid: p.remaining_time for p in engine.processes}
        clock = engine.current_time
        events = engine.tick()
        assert engine.current_time == clock + 1

        ran = [pid for pid in before if engine.get_process(pid).remaining_time != before[pid]]
        assert len(ran) <= 1
        for pid in ran:
            assert before[pid] - engine.get_process(pid).remaining_time == 1
        if not ran:
            gaps += 1

        queued = [p.pid for p in engine.ready_queue]
        running = [engine.running.pid] if engine.running else []
        finished = [p.pid for p in engine.finished_processes]
        placed = queued + running + finished
        assert len(placed) == len(set(placed))

        for p in engine.processes:
            assert 0 <= p.remaining_time <= bursts[p.pid]
            if p.finished:
                assert p.remaining_time == 0
        assert events[-1].type in (EventType.TICK, EventType.SIMULATION_COMPLETE)

    for p in engine.processes:
        assert p.waiting_time == (p.completion_time - p.arrival_time) - p.burst_time
    assert engine.current_time <= sum(bursts.values()) + gaps
    assert gaps >= first_arrival
