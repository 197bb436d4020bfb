from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List
import csv
import json

from .core import ProcessDefinition, ConfigurationError, validate_definitions, validate_quantum


DEFAULT_QUANTUM = 2
TICK_MS = 450

DEFAULT_PROCESSES: List[ProcessDefinition] = [
    ProcessDefinition(pid="P1", burst_time=8, arrival_time=0, color="#e91e63"),
    ProcessDefinition(pid="P2", burst_time=5, arrival_time=2, color="#9c27b0"),
    ProcessDefinition(pid="P3", burst_time=12, arrival_time=4, color="#3f51b5"),
    ProcessDefinition(pid="P4", burst_time=6, arrival_time=6, color="#009688"),
]


@dataclass
class SimulatorConfig:
    quantum: int = DEFAULT_QUANTUM
    tick_ms: int = TICK_MS
    processes: List[ProcessDefinition] = field(default_factory=lambda: list(DEFAULT_PROCESSES))

    def validate(self) -> "SimulatorConfig":
        validate_quantum(self.quantum)
        validate_definitions(self.processes)
        if not isinstance(self.tick_ms, int) or self.tick_ms <= 0:
            raise ConfigurationError(f"tick interval must be a positive integer, got {self.tick_ms!r}")
        return self


def _to_int(value, name: str, pid: str) -> int:
    try:
        return int(str(value).strip())
    except ValueError:
        raise ConfigurationError(f"{pid}: {name} {value!r} is not an integer") from None


def _definition_from_row(row: dict) -> ProcessDefinition:
    if not isinstance(row, dict):
        raise ConfigurationError(f"expected a process object, got {row!r}")
    pid = str(row.get("pid") or row.get("id") or "").strip()
    if "burst_time" not in row and "burstTime" not in row:
        raise ConfigurationError(f"{pid or '<unnamed>'}: missing burst_time")
    burst = row.get("burst_time", row.get("burstTime"))
    arrival = row.get("arrival_time", row.get("arrivalTime"))
    if arrival is None or str(arrival).strip() == "":
        arrival = 0
    color = row.get("color") or None
    return ProcessDefinition(
        pid=pid,
        burst_time=_to_int(burst, "burst time", pid),
        arrival_time=_to_int(arrival, "arrival time", pid),
        color=color,
    )


def load_definitions(path: str) -> List[ProcessDefinition]:
    """Load a workload from a ``.csv`` or ``.json`` file.

    CSV needs a header with ``pid``, ``burst_time`` and optionally
    ``arrival_time`` and ``color``. JSON is a list of objects with the same
    keys (``id``/``burstTime``/``arrivalTime`` are accepted too).
    """
    p = Path(path)
    if not p.exists():
        raise ConfigurationError(f"workload file not found: {path}")

    if p.suffix.lower() == ".json":
        with open(p, encoding="utf-8-sig") as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigurationError(f"invalid JSON in {path}: {e}") from e
        if isinstance(data, dict):
            data = data.get("processes", [])
        if not isinstance(data, list):
            raise ConfigurationError(f"{path}: expected a list of process objects")
        rows = data
    elif p.suffix.lower() == ".csv":
        with open(p, newline="", encoding="utf-8-sig") as f:
            rows = list(csv.DictReader(f))
    else:
        raise ConfigurationError(f"unsupported workload format: {p.suffix or '<none>'}")

    return validate_definitions(_definition_from_row(row) for row in rows)
