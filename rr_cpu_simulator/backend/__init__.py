"""
Scheduling core: engine, metrics and their collaborators.
"""

from .core import ConfigurationError, ProcessDefinition, ProcessState, SchedulerInvariantError
from .engine import RoundRobinEngine
from .events import EventType, SchedulerEvent, SchedulerListener
from .simulator import SimulationDriver, SimulationResult, simulate

__all__ = [
    'ConfigurationError', 'ProcessDefinition', 'ProcessState', 'SchedulerInvariantError',
    'RoundRobinEngine', 'EventType', 'SchedulerEvent', 'SchedulerListener',
    'SimulationDriver', 'SimulationResult', 'simulate',
]
