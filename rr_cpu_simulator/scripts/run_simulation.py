from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Ensure repo root is on sys.path so this script can be executed directly
repo_root = Path(__file__).resolve().parents[2]
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from rr_cpu_simulator.backend.core import ConfigurationError
from rr_cpu_simulator.backend.config import DEFAULT_PROCESSES, DEFAULT_QUANTUM, SimulatorConfig, load_definitions
from rr_cpu_simulator.backend.simulator import simulate
from rr_cpu_simulator.backend.visualizer import plot_gantt


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Round Robin CPU scheduling simulator")
    p.add_argument("--workload", type=str, default=None, help="CSV or JSON workload file (default: built-in P1-P4)")
    p.add_argument("--quantum", type=int, default=DEFAULT_QUANTUM)
    p.add_argument("--out", type=str, default=None, help="Save a Gantt chart PNG to this path")
    p.add_argument("--log-base", type=str, default=None, help="Export the event log as <base>.json and <base>_*.csv")
    p.add_argument("--history", action="store_true", help="Print the event history")
    p.add_argument("--log-level", type=str, default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return p.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

    try:
        config = SimulatorConfig(
            quantum=args.quantum,
            processes=load_definitions(args.workload) if args.workload else list(DEFAULT_PROCESSES),
        ).validate()
        result = simulate(config.processes, quantum=config.quantum)
    except ConfigurationError as e:
        print(f"Configuration rejected: {e}", file=sys.stderr)
        return 2

    if args.history:
        print("--- History ---")
        for line in result.logger.format_entries():
            print(line)
        print()

    print(f"{'PID':<6}{'Arrival':>8}{'Burst':>7}{'CT':>6}{'TAT':>6}{'WT':>6}")
    for p in result.processes:
        print(f"{p.pid:<6}{p.arrival_time:>8}{p.burst_time:>7}{p.completion_time:>6}"
              f"{result.turnaround_times[p.pid]:>6}{result.waiting_times[p.pid]:>6}")
    print(f"\nTotal time: {result.total_time} (quantum={result.quantum})")
    print(f"Avg waiting: {result.avg_waiting_time:.2f}, Avg turnaround: {result.avg_turnaround_time:.2f}, "
          f"Throughput: {result.throughput:.3f}, CPU utilization: {result.cpu_utilization:.1f}%")

    if args.out:
        plot_gantt(result.processes, result.logger, args.out, quantum=result.quantum)
        print(f"Saved plot to {args.out}")
    if args.log_base:
        result.logger.export_json(f"{args.log_base}.json")
        result.logger.export_csv(args.log_base)
        print(f"Logs written to {args.log_base}.json and {args.log_base}_*.csv")
    return 0


if __name__ == "__main__":
    sys.exit(main())
