"""
Round-Robin scheduler engine.

The engine owns the clock, the process records, the ready queue and the CPU
slot, and advances them one discrete time unit per ``tick()``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional

from .core import (
    CpuSlot, Process, ProcessDefinition, ProcessState, ReadyQueue,
    SchedulerInvariantError, validate_definitions, validate_quantum,
)
from .config import DEFAULT_PROCESSES, DEFAULT_QUANTUM
from .events import EventType, SchedulerEvent, SchedulerListener
from .metrics import SystemMetrics

logger = logging.getLogger(__name__)


class RoundRobinEngine:
    """Single-CPU preemptive Round-Robin scheduler driven by ``tick()``."""

    def __init__(self, definitions: Optional[Iterable[ProcessDefinition]] = None, quantum: int = DEFAULT_QUANTUM):
        self._definitions: List[ProcessDefinition] = []
        self.quantum: int = DEFAULT_QUANTUM
        self.current_time = 0
        self.ready_queue = ReadyQueue()
        self.cpu: Optional[CpuSlot] = None
        self._processes: List[Process] = []
        self._finished: List[Process] = []
        self._events: List[SchedulerEvent] = []
        self._complete_signalled = False

        self.metrics = SystemMetrics(self)
        self._listeners: List[SchedulerListener] = [self.metrics]

        self.reset(DEFAULT_PROCESSES if definitions is None else definitions, quantum)

    # -- configuration --------------------------------------------------------

    def subscribe(self, listener: SchedulerListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def unsubscribe(self, listener: SchedulerListener) -> None:
        if listener is self.metrics:
            return
        if listener in self._listeners:
            self._listeners.remove(listener)

    def set_quantum(self, quantum: int) -> None:
        """Change the quantum for future dispatches.

        A process already on the CPU keeps the quantum it was dispatched with.
        """
        self.quantum = validate_quantum(quantum)
        logger.debug("quantum set to %d at t=%d", quantum, self.current_time)

    def reset(self, definitions: Optional[Iterable[ProcessDefinition]] = None, quantum: Optional[int] = None) -> None:
        """Rebuild every process from its definition and rewind the clock.

        Omitted arguments reuse the last accepted configuration. Invalid
        input raises ConfigurationError and leaves the current state as is.
        """
        defs = self._definitions if definitions is None else validate_definitions(definitions)
        q = self.quantum if quantum is None else validate_quantum(quantum)

        self._definitions = list(defs)
        self.quantum = q
        self.current_time = 0
        self.cpu = None
        self.ready_queue.clear()
        self._processes = [Process.from_definition(d) for d in self._definitions]
        self._finished = []
        self._events = []
        self._complete_signalled = False

        self.metrics.reset(self._processes)
        for listener in list(self._listeners):
            listener.on_reset()
        logger.debug("reset with %d processes, quantum=%d", len(self._processes), self.quantum)

    # -- read-only views ------------------------------------------------------

    @property
    def definitions(self) -> List[ProcessDefinition]:
        return list(self._definitions)

    @property
    def processes(self) -> List[Process]:
        return list(self._processes)

    @property
    def running(self) -> Optional[Process]:
        return self.cpu.process if self.cpu else None

    @property
    def finished_processes(self) -> List[Process]:
        """Finished processes in completion order."""
        return list(self._finished)

    @property
    def is_complete(self) -> bool:
        return all(p.finished for p in self._processes)

    def get_process(self, pid: str) -> Process:
        for p in self._processes:
            if p.pid == pid:
                return p
        raise KeyError(pid)

    def snapshot(self) -> Dict[str, Any]:
        """Plain-data copy of the whole engine state."""
        return {
            "current_time": self.current_time,
            "quantum": self.quantum,
            "running": self.cpu.process.pid if self.cpu else None,
            "quantum_remaining": self.cpu.quantum_remaining if self.cpu else None,
            "ready_queue": [p.pid for p in self.ready_queue],
            "finished": [p.pid for p in self._finished],
            "processes": [
                {
                    "pid": p.pid,
                    "burst_time": p.burst_time,
                    "arrival_time": p.arrival_time,
                    "remaining_time": p.remaining_time,
                    "waiting_time": p.waiting_time,
                    "completion_time": p.completion_time,
                    "arrived": p.arrived,
                    "finished": p.finished,
                    "state": p.state.value,
                }
                for p in self._processes
            ],
            "log": self.metrics.logger.entries,
        }

    # -- simulation -----------------------------------------------------------

    def tick(self) -> List[SchedulerEvent]:
        """Advance the simulation by one time unit.

        Returns the events produced during this tick in emission order.
        Ticking a completed simulation does nothing and returns ``[]``.
        """
        if self.is_complete:
            return []

        self._events = []

        self._scan_arrivals()

        if self.cpu is None and not self.ready_queue.is_empty():
            process = self.ready_queue.pop()
            process.state = ProcessState.RUNNING
            self.cpu = CpuSlot(process=process, quantum_remaining=self.quantum)
            self._emit(EventType.DISPATCHED, process)

        slot = self.cpu
        if slot is not None:
            for queued in self.ready_queue:
                queued.waiting_time += 1
            slot.process.remaining_time = max(0, slot.process.remaining_time - 1)
            slot.quantum_remaining = max(0, slot.quantum_remaining - 1)
        self.current_time += 1

        # Arrivals at the new time must be queued before a preempted process
        # goes back to the tail.
        self._scan_arrivals()

        if slot is not None:
            process = slot.process
            if process.remaining_time == 0:
                process.finished = True
                process.completion_time = self.current_time
                process.state = ProcessState.TERMINATED
                self.cpu = None
                self._finished.append(process)
                self._emit(EventType.FINISHED, process)
            elif slot.quantum_remaining == 0:
                self.cpu = None
                process.state = ProcessState.READY
                self.ready_queue.push(process)
                self._emit(EventType.PREEMPTED, process)

        self._emit(EventType.TICK)
        self._check_invariants()

        if self.is_complete and not self._complete_signalled:
            self._complete_signalled = True
            self._emit(EventType.SIMULATION_COMPLETE)

        return self._events

    def run_until_complete(self, max_ticks: Optional[int] = None) -> int:
        """Tick until every process has finished; return the final clock."""
        if max_ticks is None:
            # Every process finishes within the sum of bursts after the last arrival
            max_ticks = sum(p.burst_time for p in self._processes) + max(p.arrival_time for p in self._processes)
        ticks = 0
        while not self.is_complete:
            if ticks >= max_ticks:
                raise SchedulerInvariantError(f"simulation did not complete within {max_ticks} ticks")
            self.tick()
            ticks += 1
        return self.current_time

    # -- internals ------------------------------------------------------------

    def _scan_arrivals(self) -> None:
        for process in self._processes:
            if not process.arrived and process.arrival_time <= self.current_time:
                process.arrived = True
                process.state = ProcessState.READY
                self.ready_queue.push(process)
                self._emit(EventType.ARRIVED, process)

    def _emit(self, event_type: EventType, process: Optional[Process] = None) -> None:
        event = SchedulerEvent(event_type, self.current_time, process.pid if process else None)
        self._events.append(event)
        logger.debug("t=%d %s %s", event.time, event_type.value, event.pid or "")

        for listener in list(self._listeners):
            if event_type is EventType.ARRIVED:
                listener.on_arrived(process)
            elif event_type is EventType.DISPATCHED:
                listener.on_dispatched(process)
            elif event_type is EventType.PREEMPTED:
                listener.on_preempted(process)
            elif event_type is EventType.FINISHED:
                listener.on_finished(process, process.completion_time)
            elif event_type is EventType.TICK:
                listener.on_tick(self.current_time)
            elif event_type is EventType.SIMULATION_COMPLETE:
                listener.on_simulation_complete()

    def _check_invariants(self) -> None:
        running = self.cpu.process.pid if self.cpu else None
        queued = [p.pid for p in self.ready_queue]
        finished = [p.pid for p in self._finished]
        placements = queued + finished + ([running] if running else [])
        if len(placements) != len(set(placements)):
            raise SchedulerInvariantError(f"process placed twice at t={self.current_time}: {placements}")

        for p in self._processes:
            if not 0 <= p.remaining_time <= p.burst_time:
                raise SchedulerInvariantError(f"{p.pid}: remaining time {p.remaining_time} out of range")
            if p.finished and p.remaining_time != 0:
                raise SchedulerInvariantError(f"{p.pid}: finished with {p.remaining_time} units left")
            if p.arrived != (p.pid in placements):
                raise SchedulerInvariantError(f"{p.pid}: arrived={p.arrived} but placement does not match")
