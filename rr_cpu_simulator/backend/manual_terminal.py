from __future__ import annotations

import shlex
from typing import List, Optional
from colorama import Fore, Style, init as colorama_init

from .core import ConfigurationError, ProcessDefinition
from .config import DEFAULT_PROCESSES, DEFAULT_QUANTUM, load_definitions
from .engine import RoundRobinEngine
from .simulator import SimulationDriver, collect_result
from .visualizer import plot_gantt


EVENT_COLORS = {
    "arrived": Fore.CYAN,
    "dispatched": Fore.GREEN,
    "preempted": Fore.YELLOW,
    "finished": Fore.MAGENTA,
}


class ManualTerminal:
    def __init__(self, definitions: Optional[List[ProcessDefinition]] = None, quantum: int = DEFAULT_QUANTUM) -> None:
        colorama_init(autoreset=True)
        self.definitions: List[ProcessDefinition] = list(definitions or DEFAULT_PROCESSES)
        self.engine = RoundRobinEngine(self.definitions, quantum)
        self.driver = SimulationDriver(self.engine)

    def prompt(self) -> None:
        print(Fore.CYAN + "Round Robin Simulator Terminal. Type 'help' for commands.")
        while True:
            try:
                raw = input(Fore.GREEN + "> ")
            except (EOFError, KeyboardInterrupt):
                print()
                break
            if not raw.strip():
                continue
            self.handle_command(raw)

    def handle_command(self, raw: str) -> None:
        try:
            parts = shlex.split(raw)
        except ValueError as e:
            print(Fore.RED + f"Parse error: {e}")
            return
        if not parts:
            return
        cmd, *args = parts
        cmd = cmd.lower()
        if cmd == "help":
            self._help()
        elif cmd == "add":
            self._add(args)
        elif cmd == "remove":
            self._remove(args)
        elif cmd == "load":
            self._load(args)
        elif cmd == "list":
            self._list()
        elif cmd == "quantum":
            self._quantum(args)
        elif cmd == "reset":
            self._reset()
        elif cmd == "step":
            self._step(args)
        elif cmd == "run":
            self._run(args)
        elif cmd == "status":
            self._status()
        elif cmd == "stats":
            self._stats()
        elif cmd == "log":
            self._log()
        elif cmd == "export":
            self._export(args)
        elif cmd == "exit" or cmd == "quit":
            raise SystemExit(0)
        else:
            print(Fore.YELLOW + "Unknown command. Type 'help'.")

    def _help(self) -> None:
        print("Commands:")
        print("  add <pid> <burst> [arrival=0]")
        print("  remove <pid>")
        print("  load <workload.csv|workload.json>")
        print("  list")
        print("  quantum <Q>            (applies from the next dispatch)")
        print("  reset")
        print("  step [N]")
        print("  run [--out gantt.png]")
        print("  status")
        print("  stats")
        print("  log")
        print("  export <base path>")
        print("  exit")

    def _apply_workload(self, definitions: List[ProcessDefinition]) -> bool:
        try:
            self.driver.reset(definitions)
        except ConfigurationError as e:
            print(Fore.RED + f"Rejected: {e}")
            return False
        self.definitions = list(definitions)
        return True

    def _add(self, args: List[str]) -> None:
        if len(args) < 2:
            print(Fore.RED + "Usage: add <pid> <burst> [arrival]")
            return
        pid = args[0]
        try:
            burst = int(args[1])
            arrival = int(args[2]) if len(args) >= 3 else 0
        except ValueError:
            print(Fore.RED + "Invalid numeric values")
            return
        if self._apply_workload(self.definitions + [ProcessDefinition(pid=pid, burst_time=burst, arrival_time=arrival)]):
            print(Fore.CYAN + f"Process {pid} added: burst={burst}, arrival={arrival} (simulation reset)")

    def _remove(self, args: List[str]) -> None:
        if not args:
            print(Fore.RED + "Usage: remove <pid>")
            return
        remaining = [d for d in self.definitions if d.pid != args[0]]
        if len(remaining) == len(self.definitions):
            print(Fore.RED + f"No process {args[0]}")
            return
        if self._apply_workload(remaining):
            print(Fore.CYAN + f"Process {args[0]} removed (simulation reset)")

    def _load(self, args: List[str]) -> None:
        if not args:
            print(Fore.RED + "Usage: load <path>")
            return
        try:
            definitions = load_definitions(args[0])
        except ConfigurationError as e:
            print(Fore.RED + f"Rejected: {e}")
            return
        if self._apply_workload(definitions):
            print(Fore.CYAN + f"Loaded {len(definitions)} processes from {args[0]}")

    def _list(self) -> None:
        for d in self.definitions:
            print(f"{d.pid}: burst={d.burst_time}, arrival={d.arrival_time}")

    def _quantum(self, args: List[str]) -> None:
        if not args:
            print(f"Quantum: {self.engine.quantum}")
            return
        try:
            self.engine.set_quantum(int(args[0]))
        except ValueError as e:
            # ConfigurationError is a ValueError too
            print(Fore.RED + f"Invalid quantum: {e}")
            return
        print(Fore.CYAN + f"Quantum set to {self.engine.quantum}")

    def _reset(self) -> None:
        self.driver.reset()
        print(Fore.CYAN + "Simulation reset")

    def _print_new_events(self, since: int) -> None:
        for ev in self.engine.metrics.logger.process_events[since:]:
            color = EVENT_COLORS.get(ev["event"], "")
            print(color + f"[t={ev['time']}] {ev['message']}")

    def _step(self, args: List[str]) -> None:
        try:
            count = int(args[0]) if args else 1
        except ValueError:
            print(Fore.RED + "Usage: step [N]")
            return
        for _ in range(count):
            if self.engine.is_complete:
                break
            since = len(self.engine.metrics.logger.process_events)
            self.driver.step()
            self._print_new_events(since)
        self._status()
        if self.engine.is_complete:
            print(Style.BRIGHT + "Simulation complete.")

    def _run(self, args: List[str]) -> None:
        out_path: Optional[str] = None
        it = iter(args)
        for token in it:
            if token == "--out":
                out_path = next(it, None)

        since = len(self.engine.metrics.logger.process_events)
        self.driver.start()
        while not self.engine.is_complete:
            self.driver.step()
        self._print_new_events(since)
        result = collect_result(self.engine)
        print(Style.BRIGHT + f"Simulation finished at t={result.total_time}. "
              f"Avg waiting: {result.avg_waiting_time:.2f}, Avg turnaround: {result.avg_turnaround_time:.2f}")
        if out_path:
            plot_gantt(result.processes, result.logger, out_path, quantum=result.quantum)
            print(Fore.CYAN + f"Saved plot to {out_path}")

    def _status(self) -> None:
        running = self.engine.running
        queue = " ".join(p.pid for p in self.engine.ready_queue) or "-"
        cpu = f"{running.pid} (q left {self.engine.cpu.quantum_remaining})" if running else "Idle"
        print(f"t={self.engine.current_time}  CPU: {cpu}  Ready: {queue}")
        for p in self.engine.processes:
            print(f"  {p.pid}: state={p.state.name}, remaining={p.remaining_time}, waiting={p.waiting_time}")

    def _stats(self) -> None:
        metrics = self.engine.metrics
        rows = metrics.process_rows()
        if not rows:
            print("No process has finished yet")
            return
        print(f"{'PID':<6}{'CT':>6}{'TAT':>6}{'WT':>6}")
        for row in rows:
            print(f"{row['pid']:<6}{row['completion_time']:>6}{row['turnaround_time']:>6}{row['waiting_time']:>6}")
        summary = metrics.summary()
        print(f"Avg turnaround time: {summary['avg_turnaround_time']:.2f}")
        print(f"Avg waiting time: {summary['avg_waiting_time']:.2f}")
        print(f"Throughput: {summary['throughput']:.3f} processes/tick")
        print(f"CPU utilization: {summary['cpu_utilization']:.1f}% (idle {summary['idle_time']} ticks)")
        print(f"Context switches: {summary['context_switches']}")

    def _log(self) -> None:
        lines = self.engine.metrics.logger.format_entries()
        if not lines:
            print("Log is empty")
        for line in lines:
            print(line)

    def _export(self, args: List[str]) -> None:
        if not args:
            print(Fore.RED + "Usage: export <base path>")
            return
        base = args[0]
        self.engine.metrics.logger.export_json(f"{base}.json")
        self.engine.metrics.logger.export_csv(base)
        print(Fore.CYAN + f"Logs written to {base}.json and {base}_*.csv")


def main() -> None:
    ManualTerminal().prompt()


if __name__ == "__main__":
    main()
