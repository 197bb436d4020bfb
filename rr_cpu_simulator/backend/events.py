"""
Notifications emitted by the scheduler engine.

Every transition is reported twice: as a typed ``SchedulerEvent`` in the
list returned by ``tick()``, and as a call on each subscribed
``SchedulerListener``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .core import Process


class EventType(Enum):
    ARRIVED = "arrived"
    DISPATCHED = "dispatched"
    PREEMPTED = "preempted"
    FINISHED = "finished"
    TICK = "tick"
    SIMULATION_COMPLETE = "simulation_complete"


@dataclass(frozen=True)
class SchedulerEvent:
    type: EventType
    time: int
    pid: Optional[str] = None


class SchedulerListener:
    """Observer base class; override only the hooks you care about."""

    def on_reset(self) -> None:
        pass

    def on_arrived(self, process: Process) -> None:
        pass

    def on_dispatched(self, process: Process) -> None:
        pass

    def on_preempted(self, process: Process) -> None:
        pass

    def on_finished(self, process: Process, completion_time: int) -> None:
        pass

    def on_tick(self, current_time: int) -> None:
        pass

    def on_simulation_complete(self) -> None:
        pass
