from __future__ import annotations

from typing import List, Optional, Dict
import os
import matplotlib.pyplot as plt

from .core import Process
from .utils import EventLogger, stable_color


def ensure_dir(path: str) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)


def plot_gantt(processes: List[Process], logger: EventLogger, out_path: Optional[str] = None, quantum: Optional[int] = None) -> None:
    fig, ax = plt.subplots(figsize=(12, 3 + 0.4 * max(1, len(processes))))

    pid_to_color = {p.pid: p.color or stable_color(p.pid) for p in processes}
    # Rows follow declaration order, first process on top
    pids_order = [p.pid for p in processes]
    y_positions: Dict[str, int] = {pid: len(pids_order) - 1 - i for i, pid in enumerate(pids_order)}

    for seg in logger.timeline:
        pid = seg.get("pid")
        start = seg["start"]
        end = seg["end"]
        if not pid:
            ax.axvspan(start, end, color="#dddddd", alpha=0.5, lw=0)
            continue
        ax.barh(y_positions[pid], end - start, left=start, color=pid_to_color.get(pid, "#777777"), edgecolor="black", alpha=0.9)

    # Mark completions
    for ev in logger.process_events:
        if ev["event"] == "finished":
            ax.text(ev["time"], y_positions[ev["pid"]], f" CT={ev['time']}", va="center", ha="left", fontsize=8)

    ax.set_yticks([y_positions[pid] for pid in pids_order])
    ax.set_yticklabels(pids_order)
    ax.set_xlabel("Time")
    title = "Round Robin Gantt Chart"
    if quantum is not None:
        title += f" (quantum={quantum})"
    ax.set_title(title)
    ax.grid(True, axis="x", linestyle=":", alpha=0.5)
    fig.tight_layout()

    if out_path:
        ensure_dir(out_path)
        fig.savefig(out_path, dpi=150)
        plt.close(fig)
    else:
        plt.show()
