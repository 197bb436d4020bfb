"""
Core data structures for the Round-Robin simulator.
Includes process definitions, runtime process records, the ready queue
and the CPU slot, plus configuration validation.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional


class ConfigurationError(ValueError):
    """Raised when process definitions or the quantum are rejected."""


class SchedulerInvariantError(AssertionError):
    """Raised when the engine detects an internally inconsistent state."""


class ProcessState(Enum):
    """Where a process currently sits."""
    NEW = "NEW"
    READY = "READY"
    RUNNING = "RUNNING"
    TERMINATED = "TERMINATED"


@dataclass(frozen=True)
class ProcessDefinition:
    """Static description of a process, shared by every run."""
    pid: str
    burst_time: int
    arrival_time: int = 0
    color: Optional[str] = None


@dataclass
class Process:
    """Mutable per-run record, rebuilt from its definition on every reset."""
    pid: str
    burst_time: int
    arrival_time: int
    remaining_time: Optional[int] = None
    waiting_time: int = 0
    completion_time: Optional[int] = None
    arrived: bool = False
    finished: bool = False
    state: ProcessState = ProcessState.NEW
    color: Optional[str] = None

    def __post_init__(self):
        self.remaining_time = self.burst_time if self.remaining_time is None else self.remaining_time

    @classmethod
    def from_definition(cls, definition: ProcessDefinition) -> "Process":
        return cls(
            pid=definition.pid,
            burst_time=definition.burst_time,
            arrival_time=definition.arrival_time,
            color=definition.color,
        )


class ReadyQueue:
    """FIFO ready queue with a pid index for membership checks."""

    def __init__(self):
        self._items: List[Process] = []
        self._pid_map: Dict[str, Process] = {}

    def push(self, process: Process) -> None:
        """Append a process at the tail."""
        if process.pid in self._pid_map:
            raise SchedulerInvariantError(f"{process.pid} is already in the ready queue")
        self._items.append(process)
        self._pid_map[process.pid] = process

    def pop(self) -> Optional[Process]:
        """Remove and return the head of the queue."""
        if not self._items:
            return None
        process = self._items.pop(0)
        del self._pid_map[process.pid]
        return process

    def peek(self) -> Optional[Process]:
        return self._items[0] if self._items else None

    def clear(self) -> None:
        self._items = []
        self._pid_map = {}

    def is_empty(self) -> bool:
        return len(self._items) == 0

    def __contains__(self, pid: str) -> bool:
        return pid in self._pid_map

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self):
        return iter(list(self._items))


@dataclass
class CpuSlot:
    """The single CPU: the running process and the quantum left for it.

    ``quantum_remaining`` is captured from the configured quantum when the
    process is dispatched and only counts down from there.
    """
    process: Process
    quantum_remaining: int


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def validate_quantum(quantum) -> int:
    if not _is_int(quantum) or quantum <= 0:
        raise ConfigurationError(f"quantum must be a positive integer, got {quantum!r}")
    return quantum


def validate_definitions(definitions: Iterable[ProcessDefinition]) -> List[ProcessDefinition]:
    """Check a workload and return it as a list, or raise ConfigurationError."""
    defs = list(definitions)
    if not defs:
        raise ConfigurationError("at least one process definition is required")

    seen = set()
    for d in defs:
        if not isinstance(d.pid, str) or not d.pid.strip():
            raise ConfigurationError(f"process id must be a non-empty string, got {d.pid!r}")
        if d.pid in seen:
            raise ConfigurationError(f"duplicate process id {d.pid!r}")
        seen.add(d.pid)
        if not _is_int(d.burst_time) or d.burst_time <= 0:
            raise ConfigurationError(f"{d.pid}: burst time must be a positive integer, got {d.burst_time!r}")
        if not _is_int(d.arrival_time) or d.arrival_time < 0:
            raise ConfigurationError(f"{d.pid}: arrival time must be a non-negative integer, got {d.arrival_time!r}")
    return defs
