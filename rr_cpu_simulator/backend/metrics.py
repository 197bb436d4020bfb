"""
Timing metrics and the event log, fed by engine notifications.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Any

from .core import Process, SchedulerInvariantError
from .events import SchedulerListener
from .utils import EventLogger, compute_avg, compute_throughput, compute_turnaround_times, compute_waiting_times


class SystemMetrics(SchedulerListener):
    """Derives per-process and aggregate figures from engine transitions.

    Waiting time is never computed here: the engine accrues it tick by tick
    and this class only checks that it agrees with
    ``turnaround - burst`` once a process finishes.
    """

    def __init__(self, clock) -> None:
        # clock: object exposing ``current_time`` (the engine)
        self._clock = clock
        self.logger = EventLogger()
        self.processes: List[Process] = []
        self.completed: List[Process] = []
        self.turnaround_times: Dict[str, int] = {}
        self.waiting_times: Dict[str, int] = {}
        self.context_switches = 0
        self.cpu_busy_time = 0
        self.idle_time = 0
        self.sim_elapsed = 0
        self._running: Optional[str] = None
        self._releasing = False

    def reset(self, processes: List[Process]) -> None:
        self.logger.clear()
        self.processes = list(processes)
        self.completed = []
        self.turnaround_times = {}
        self.waiting_times = {}
        self.context_switches = 0
        self.cpu_busy_time = 0
        self.idle_time = 0
        self.sim_elapsed = 0
        self._running = None
        self._releasing = False

    # -- engine notifications -------------------------------------------------

    def on_arrived(self, process: Process) -> None:
        self.logger.log_process_event(self._clock.current_time, process.pid, "arrived",
                                      f"{process.pid} arrived and joined Ready Queue")

    def on_dispatched(self, process: Process) -> None:
        self.context_switches += 1
        self._running = process.pid
        self.logger.log_process_event(self._clock.current_time, process.pid, "dispatched",
                                      f"{process.pid} moved to CPU")

    def on_preempted(self, process: Process) -> None:
        self._releasing = True
        self.logger.log_process_event(self._clock.current_time, process.pid, "preempted",
                                      f"{process.pid} quantum expired, returned to Ready Queue")

    def on_finished(self, process: Process, completion_time: int) -> None:
        self._releasing = True
        self.completed.append(process)
        self.logger.log_process_event(completion_time, process.pid, "finished",
                                      f"{process.pid} finished (CT={completion_time})")
        self.recompute()

    def on_tick(self, current_time: int) -> None:
        # The slice covers the unit that just elapsed
        self.logger.log_timeline_slice(current_time - 1, current_time, self._running,
                                       None if self._running else "idle")
        if self._running is None:
            self.idle_time += 1
        else:
            self.cpu_busy_time += 1
        self.sim_elapsed = current_time
        if self._releasing:
            self._running = None
            self._releasing = False

    # -- derived values -------------------------------------------------------

    def recompute(self) -> None:
        """Rebuild turnaround/waiting tables over finished processes."""
        self.turnaround_times = compute_turnaround_times(self.completed)
        expected = compute_waiting_times(self.completed)
        for p in self.completed:
            if p.waiting_time != expected[p.pid]:
                raise SchedulerInvariantError(
                    f"{p.pid}: tracked waiting time {p.waiting_time} != turnaround - burst ({expected[p.pid]})"
                )
        self.waiting_times = expected

    @property
    def completion_times(self) -> Dict[str, int]:
        return {p.pid: p.completion_time for p in self.completed}

    def get_avg_turnaround_time(self) -> Optional[float]:
        """Average turnaround over finished processes, None if none finished."""
        return compute_avg(list(self.turnaround_times.values()))

    def get_avg_waiting_time(self) -> Optional[float]:
        """Average waiting time over finished processes, None if none finished."""
        return compute_avg(list(self.waiting_times.values()))

    def get_throughput(self) -> float:
        return compute_throughput(self.processes, self.sim_elapsed)

    def get_cpu_utilization(self) -> float:
        """CPU utilization percentage over elapsed ticks."""
        if self.sim_elapsed <= 0:
            return 0.0
        return (self.cpu_busy_time / self.sim_elapsed) * 100

    def process_rows(self) -> List[Dict[str, Any]]:
        """One row per finished process, in completion order."""
        return [
            {
                "pid": p.pid,
                "arrival_time": p.arrival_time,
                "burst_time": p.burst_time,
                "completion_time": p.completion_time,
                "turnaround_time": self.turnaround_times[p.pid],
                "waiting_time": self.waiting_times[p.pid],
            }
            for p in self.completed
        ]

    def summary(self) -> Dict[str, Any]:
        return {
            "time": self.sim_elapsed,
            "completed": len(self.completed),
            "avg_turnaround_time": self.get_avg_turnaround_time(),
            "avg_waiting_time": self.get_avg_waiting_time(),
            "throughput": self.get_throughput(),
            "cpu_utilization": self.get_cpu_utilization(),
            "context_switches": self.context_switches,
            "idle_time": self.idle_time,
        }
