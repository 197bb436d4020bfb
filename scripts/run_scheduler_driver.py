from __future__ import annotations
import os, sys
SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.abspath(os.path.join(SCRIPT_DIR, os.pardir))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from rr_cpu_simulator.backend.core import ProcessDefinition
from rr_cpu_simulator.backend.engine import RoundRobinEngine
from rr_cpu_simulator.backend.simulator import SimulationDriver


def make_definitions():
    return [
        ProcessDefinition(pid="P1", burst_time=3, arrival_time=0),
        ProcessDefinition(pid="P2", burst_time=2, arrival_time=1),
        ProcessDefinition(pid="P3", burst_time=4, arrival_time=6),
    ]


def run():
    engine = RoundRobinEngine(make_definitions(), quantum=2)
    driver = SimulationDriver(engine)
    driver.start()
    # step tick by tick the way a timer would
    while driver.running:
        events = driver.step()
        running = engine.running.pid if engine.running else 'idle'
        queue = ','.join(p.pid for p in engine.ready_queue) or '-'
        kinds = ' '.join(f"{e.type.value}:{e.pid}" for e in events if e.pid)
        print(f't={engine.current_time:>3}  cpu={running:<5} ready=[{queue}]  {kinds}')

    m = engine.metrics
    print('Completed:', len(m.completed))
    for row in m.process_rows():
        print(f"PID {row['pid']}: waiting={row['waiting_time']}, turnaround={row['turnaround_time']}, completion={row['completion_time']}")
    print('avg waiting:', m.get_avg_waiting_time())
    print('avg turnaround:', m.get_avg_turnaround_time())

if __name__ == '__main__':
    run()
