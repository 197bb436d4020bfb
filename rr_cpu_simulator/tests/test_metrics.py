import json

import pytest

from ..backend.core import Process, ProcessDefinition, SchedulerInvariantError
from ..backend.engine import RoundRobinEngine
from ..backend.metrics import SystemMetrics
from ..backend.utils import EventLogger, compute_avg, compute_waiting_times


@pytest.fixture
def finished_engine(scenario_b_defs):
    engine = RoundRobinEngine(scenario_b_defs, quantum=2)
    engine.run_until_complete()
    return engine


def test_averages_unset_before_first_completion(scenario_b_defs):
    engine = RoundRobinEngine(scenario_b_defs, quantum=2)
    engine.tick()
    assert engine.metrics.get_avg_turnaround_time() is None
    assert engine.metrics.get_avg_waiting_time() is None
    assert engine.metrics.process_rows() == []


def test_metrics_after_completion(finished_engine):
    m = finished_engine.metrics
    assert m.turnaround_times == {"P2": 3, "P1": 5}
    assert m.waiting_times == {"P2": 1, "P1": 2}
    assert m.completion_times == {"P2": 4, "P1": 5}
    assert m.get_avg_turnaround_time() == pytest.approx(4.0)
    assert m.get_avg_waiting_time() == pytest.approx(1.5)
    assert m.context_switches == 3
    assert [row["pid"] for row in m.process_rows()] == ["P2", "P1"]


def test_partial_averages_cover_only_finished(default_defs):
    engine = RoundRobinEngine(default_defs, quantum=2)
    while not engine.finished_processes:
        engine.tick()
    # P2 is the first to finish, at t=17
    assert engine.metrics.get_avg_turnaround_time() == pytest.approx(15.0)
    assert engine.metrics.get_avg_waiting_time() == pytest.approx(10.0)


def test_waiting_identity_matches_derived_value(default_defs):
    engine = RoundRobinEngine(default_defs, quantum=3)
    engine.run_until_complete()
    assert engine.metrics.waiting_times == compute_waiting_times(engine.processes)


def test_event_log_messages(finished_engine):
    assert finished_engine.metrics.logger.entries == [
        (0, "P1 arrived and joined Ready Queue"),
        (0, "P1 moved to CPU"),
        (1, "P2 arrived and joined Ready Queue"),
        (2, "P1 quantum expired, returned to Ready Queue"),
        (2, "P2 moved to CPU"),
        (4, "P2 finished (CT=4)"),
        (4, "P1 moved to CPU"),
        (5, "P1 finished (CT=5)"),
    ]
    assert finished_engine.metrics.logger.format_entries()[0] == "[t=0] P1 arrived and joined Ready Queue"


def test_event_log_cleared_on_reset(finished_engine):
    assert finished_engine.metrics.logger.entries
    finished_engine.reset()
    assert finished_engine.metrics.logger.entries == []
    assert finished_engine.metrics.logger.timeline == []


def test_timeline_merges_contiguous_slices(finished_engine):
    slices = [(s["start"], s["end"], s["pid"]) for s in finished_engine.metrics.logger.timeline]
    assert slices == [(0, 2, "P1"), (2, 4, "P2"), (4, 5, "P1")]


def test_idle_time_and_utilization():
    engine = RoundRobinEngine([ProcessDefinition("P1", burst_time=2, arrival_time=5)], quantum=2)
    engine.run_until_complete()
    m = engine.metrics
    slices = [(s["start"], s["end"], s["pid"], s["reason"]) for s in m.logger.timeline]
    assert slices == [(0, 5, None, "idle"), (5, 7, "P1", None)]
    assert m.idle_time == 5
    assert m.cpu_busy_time == 2
    assert m.get_cpu_utilization() == pytest.approx(200 / 7)
    assert m.get_throughput() == pytest.approx(1 / 7)


def test_summary_keys(finished_engine):
    summary = finished_engine.metrics.summary()
    assert summary["time"] == 5
    assert summary["completed"] == 2
    assert summary["cpu_utilization"] == pytest.approx(100.0)


class _Clock:
    current_time = 7


def test_inconsistent_waiting_time_is_an_invariant_error():
    metrics = SystemMetrics(_Clock())
    p = Process(pid="X", burst_time=3, arrival_time=0, remaining_time=0,
                waiting_time=1, completion_time=7, arrived=True, finished=True)
    metrics.reset([p])
    with pytest.raises(SchedulerInvariantError):
        metrics.on_finished(p, 7)


def test_compute_avg_empty():
    assert compute_avg([]) is None
    assert compute_avg([1, 2]) == pytest.approx(1.5)


def test_logger_exports(tmp_path, finished_engine):
    logger: EventLogger = finished_engine.metrics.logger
    json_path = tmp_path / "run.json"
    logger.export_json(str(json_path))
    data = json.loads(json_path.read_text(encoding="utf-8"))
    assert len(data["process_events"]) == 8
    assert data["timeline"][0]["pid"] == "P1"

    base = tmp_path / "run"
    logger.export_csv(str(base))
    events_csv = (tmp_path / "run_events.csv").read_text(encoding="utf-8").splitlines()
    assert events_csv[0] == "time,pid,event,message"
    assert len(events_csv) == 9
    assert (tmp_path / "run_timeline.csv").exists()
