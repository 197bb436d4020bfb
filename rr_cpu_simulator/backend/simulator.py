from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from .core import Process, ProcessDefinition
from .config import DEFAULT_QUANTUM
from .engine import RoundRobinEngine
from .events import SchedulerEvent
from .utils import EventLogger

logger = logging.getLogger(__name__)


@dataclass
class SimulationResult:
    processes: List[Process]
    quantum: int
    total_time: int
    completion_times: Dict[str, int]
    waiting_times: Dict[str, int]
    turnaround_times: Dict[str, int]
    avg_waiting_time: Optional[float]
    avg_turnaround_time: Optional[float]
    throughput: float
    cpu_utilization: float
    context_switches: int
    logger: EventLogger


def collect_result(engine: RoundRobinEngine) -> SimulationResult:
    m = engine.metrics
    return SimulationResult(
        processes=engine.processes,
        quantum=engine.quantum,
        total_time=engine.current_time,
        completion_times=m.completion_times,
        waiting_times=dict(m.waiting_times),
        turnaround_times=dict(m.turnaround_times),
        avg_waiting_time=m.get_avg_waiting_time(),
        avg_turnaround_time=m.get_avg_turnaround_time(),
        throughput=m.get_throughput(),
        cpu_utilization=m.get_cpu_utilization(),
        context_switches=m.context_switches,
        logger=m.logger,
    )


def simulate(definitions: Iterable[ProcessDefinition], quantum: int = DEFAULT_QUANTUM) -> SimulationResult:
    """Run a whole simulation synchronously and return its metrics."""
    engine = RoundRobinEngine(definitions, quantum)
    engine.run_until_complete()
    logger.info("simulation finished at t=%d", engine.current_time)
    return collect_result(engine)


class SimulationDriver:
    """Serializes ticks coming from a timer or a manual step button.

    A step requested while another tick is still running is skipped, so two
    ticks never run against the engine at once. Stopping is just not
    stepping any more.
    """

    def __init__(self, engine: RoundRobinEngine):
        self.engine = engine
        self.running = False
        self._in_tick = False
        self.skipped_steps = 0

    def start(self) -> bool:
        if self.running or self.engine.is_complete:
            return False
        self.running = True
        return True

    def stop(self) -> None:
        self.running = False

    def step(self) -> List[SchedulerEvent]:
        if self._in_tick:
            self.skipped_steps += 1
            logger.debug("tick already in progress, step skipped")
            return []
        self._in_tick = True
        try:
            events = self.engine.tick()
        finally:
            self._in_tick = False
        if self.engine.is_complete:
            self.stop()
        return events

    def reset(self, definitions: Optional[Iterable[ProcessDefinition]] = None, quantum: Optional[int] = None) -> None:
        """Stop and reset the engine; a rejected configuration keeps the old state."""
        self.stop()
        self.engine.reset(definitions, quantum)
