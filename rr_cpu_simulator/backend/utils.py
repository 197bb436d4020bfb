from __future__ import annotations

from typing import List, Dict, Optional, Any, Tuple
import json
import csv
import random
import zlib

from .core import Process


def stable_color(pid: str) -> str:
    """Generate a stable hex color from a pid."""
    rng = random.Random(zlib.crc32(pid.encode("utf-8")))
    r = rng.randint(50, 220)
    g = rng.randint(50, 220)
    b = rng.randint(50, 220)
    return f"#{r:02x}{g:02x}{b:02x}"


class EventLogger:
    """Append-only record of what happened during one run.

    ``process_events`` holds one entry per transition (arrival, dispatch,
    quantum expiry, completion) and ``timeline`` holds the merged execution
    slices used by the Gantt chart. Nothing here feeds back into scheduling.
    """

    def __init__(self) -> None:
        self.process_events: List[Dict[str, Any]] = []
        self.timeline: List[Dict[str, Any]] = []

    def clear(self) -> None:
        self.process_events = []
        self.timeline = []

    def log_process_event(self, time_s: int, pid: Optional[str], event: str, message: str) -> None:
        self.process_events.append({
            "time": time_s,
            "pid": pid,
            "event": event,
            "message": message,
        })

    def log_timeline_slice(self, start: int, end: int, pid: Optional[str], reason: Optional[str] = None) -> None:
        # Extend the previous slice when the same pid keeps running
        if self.timeline:
            last = self.timeline[-1]
            if last["pid"] == pid and last["end"] == start:
                last["end"] = end
                return
        self.timeline.append({
            "start": start,
            "end": end,
            "pid": pid,
            "reason": reason,
        })

    @property
    def entries(self) -> List[Tuple[int, str]]:
        """The log as chronological ``(tick, message)`` pairs."""
        return [(e["time"], e["message"]) for e in self.process_events]

    def format_entries(self) -> List[str]:
        return [f"[t={t}] {msg}" for t, msg in self.entries]

    def export_json(self, path: str) -> None:
        data = {
            "process_events": self.process_events,
            "timeline": self.timeline,
        }
        with open(path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    def export_csv(self, base_path_no_ext: str) -> None:
        with open(f"{base_path_no_ext}_events.csv", "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=["time", "pid", "event", "message"])
            writer.writeheader()
            for row in self.process_events:
                writer.writerow(row)
        with open(f"{base_path_no_ext}_timeline.csv", "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=["start", "end", "pid", "reason"])
            writer.writeheader()
            for row in self.timeline:
                writer.writerow(row)


def compute_turnaround_times(processes: List[Process]) -> Dict[str, int]:
    tat: Dict[str, int] = {}
    for p in processes:
        if p.completion_time is None:
            continue
        tat[p.pid] = p.completion_time - p.arrival_time
    return tat


def compute_waiting_times(processes: List[Process]) -> Dict[str, int]:
    """Waiting time derived from turnaround, for cross-checking the tracked value."""
    waiting: Dict[str, int] = {}
    for p in processes:
        if p.completion_time is None:
            continue
        waiting[p.pid] = (p.completion_time - p.arrival_time) - p.burst_time
    return waiting


def compute_avg(values: List[float]) -> Optional[float]:
    return sum(values) / len(values) if values else None


def compute_throughput(processes: List[Process], total_time: int) -> float:
    if total_time <= 0:
        return 0.0
    completed = len([p for p in processes if p.completion_time is not None])
    return completed / total_time
