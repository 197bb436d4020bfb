import os
import sys

import pytest


def pytest_sessionstart(session):
    # Ensure repo root is on sys.path so 'rr_cpu_simulator' can be imported
    here = os.path.dirname(os.path.abspath(__file__))
    project_root = os.path.abspath(os.path.join(here, os.pardir, os.pardir))
    if project_root not in sys.path:
        sys.path.insert(0, project_root)


@pytest.fixture
def scenario_b_defs():
    """P1 burst 3 arrives at 0, P2 burst 2 arrives at 1 (run with quantum 2)."""
    from rr_cpu_simulator.backend.core import ProcessDefinition
    return [
        ProcessDefinition(pid="P1", burst_time=3, arrival_time=0),
        ProcessDefinition(pid="P2", burst_time=2, arrival_time=1),
    ]


@pytest.fixture
def default_defs():
    from rr_cpu_simulator.backend.config import DEFAULT_PROCESSES
    return list(DEFAULT_PROCESSES)
