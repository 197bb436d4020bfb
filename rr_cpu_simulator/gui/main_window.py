"""
Main window for the Round Robin simulator GUI.
"""

from typing import List, Optional
from PyQt6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QGridLayout,
    QLabel, QPushButton, QSpinBox,
    QTableWidget, QTableWidgetItem, QHeaderView,
    QListWidget, QTabWidget, QSplitter, QFrame
)
from PyQt6.QtCore import Qt, QTimer

from ..backend.core import ConfigurationError, Process, ProcessDefinition
from ..backend.config import DEFAULT_PROCESSES, DEFAULT_QUANTUM, TICK_MS, SimulatorConfig
from ..backend.engine import RoundRobinEngine
from ..backend.events import SchedulerListener
from ..backend.simulator import SimulationDriver
from ..backend.utils import stable_color


class _Table(QTableWidget):
    def __init__(self, headers: List[str], parent=None):
        super().__init__(parent)
        self.setColumnCount(len(headers))
        self.setHorizontalHeaderLabels(headers)
        header = self.horizontalHeader()
        header.setSectionResizeMode(QHeaderView.ResizeMode.ResizeToContents)
        header.setStretchLastSection(True)
        self.setEditTriggers(QTableWidget.EditTrigger.NoEditTriggers)
        self.verticalHeader().setVisible(False)
        self.setAlternatingRowColors(True)

    def _set_item(self, row: int, column: int, text: str) -> None:
        item = self.item(row, column)
        if item is None:
            self.setItem(row, column, QTableWidgetItem(text))
        else:
            item.setText(text)


# Process table: one row per process, refreshed every tick
class ProcessTable(_Table):
    def __init__(self, parent=None):
        super().__init__(["PID", "Burst", "Arrival", "Remaining", "Waiting", "State"], parent)

    def show_processes(self, processes: List[Process]) -> None:
        self.setRowCount(len(processes))
        for row, p in enumerate(processes):
            self._set_item(row, 0, p.pid)
            self._set_item(row, 1, str(p.burst_time))
            self._set_item(row, 2, str(p.arrival_time))
            self._set_item(row, 3, str(p.remaining_time))
            self._set_item(row, 4, str(p.waiting_time))
            self._set_item(row, 5, p.state.name)


class StatsTable(_Table):
    """Completion, turnaround and waiting time of finished processes."""

    def __init__(self, parent=None):
        super().__init__(["PID", "Completion", "Turnaround", "Waiting"], parent)

    def show_rows(self, rows) -> None:
        self.setRowCount(len(rows))
        for i, r in enumerate(rows):
            self._set_item(i, 0, r["pid"])
            self._set_item(i, 1, str(r["completion_time"]))
            self._set_item(i, 2, str(r["turnaround_time"]))
            self._set_item(i, 3, str(r["waiting_time"]))


class StatCard(QFrame):
    """Compact metric card component."""

    def __init__(self, title: str, parent=None):
        super().__init__(parent)
        self.setObjectName("statCard")
        self.setFrameShape(QFrame.Shape.StyledPanel)
        layout = QVBoxLayout(self)
        layout.setContentsMargins(10, 8, 10, 8)
        layout.setSpacing(6)

        self.title_label = QLabel(title.upper())
        self.title_label.setStyleSheet("color:#7486a8;font-size:12px;font-weight:600;letter-spacing:1px;")
        layout.addWidget(self.title_label)

        self.value_label = QLabel("-")
        self.value_label.setStyleSheet("color:#0b2447;font-size:18px;font-weight:700;")
        layout.addWidget(self.value_label)

    def update_value(self, value: Optional[float]) -> None:
        self.value_label.setText("-" if value is None else f"{value:.2f}")


class _WindowListener(SchedulerListener):
    """Forwards engine notifications to the window."""

    def __init__(self, window: "MainWindow"):
        self.window = window

    def on_arrived(self, process: Process) -> None:
        self.window.append_history(f"{process.pid} arrived and joined Ready Queue")

    def on_dispatched(self, process: Process) -> None:
        self.window.append_history(f"{process.pid} moved to CPU")

    def on_preempted(self, process: Process) -> None:
        self.window.append_history(f"{process.pid} quantum expired, returned to Ready Queue")

    def on_finished(self, process: Process, completion_time: int) -> None:
        self.window.append_history(f"{process.pid} finished (CT={completion_time})")
        self.window.refresh_stats()

    def on_tick(self, current_time: int) -> None:
        self.window.time_label.setText(str(current_time))

    def on_simulation_complete(self) -> None:
        self.window.pause_simulation()
        self.window.status_label.setText("Simulation complete")


class MainWindow(QMainWindow):
    def __init__(self, definitions: Optional[List[ProcessDefinition]] = None, quantum: int = DEFAULT_QUANTUM, tick_ms: int = TICK_MS):
        super().__init__()
        self.setWindowTitle("Round Robin Scheduler")
        self.setMinimumSize(1100, 720)
        self.tick_ms = tick_ms

        self.engine = RoundRobinEngine(definitions or DEFAULT_PROCESSES, quantum)
        self.driver = SimulationDriver(self.engine)
        self._build_ui(quantum)

    @classmethod
    def from_config(cls, config: SimulatorConfig) -> "MainWindow":
        """Build a window from a validated configuration."""
        config.validate()
        return cls(config.processes, quantum=config.quantum, tick_ms=config.tick_ms)

    def _build_ui(self, quantum: int) -> None:

        self.setStyleSheet("""
            QMainWindow { background: #eef3fb; }
            QPushButton {
                background-color: #1167b1;
                color: #ffffff;
                font-weight: 600;
                padding: 8px 16px;
                border-radius: 8px;
            }
            QPushButton:disabled { background-color: #c4d4ea; color: #eef2f9; }
            QFrame#controlFrame, QFrame#statCard {
                background: #ffffff;
                border-radius: 14px;
                border: 1px solid #dbe3f0;
            }
        """)

        central = QWidget()
        self.setCentralWidget(central)
        main_layout = QVBoxLayout(central)
        main_layout.setContentsMargins(18, 18, 18, 18)
        main_layout.setSpacing(16)

        # Controls
        control_frame = QFrame()
        control_frame.setObjectName("controlFrame")
        controls = QHBoxLayout(control_frame)
        controls.setContentsMargins(20, 14, 20, 14)
        controls.setSpacing(24)

        controls.addWidget(QLabel("Time Quantum"))
        self.quantum_spin = QSpinBox()
        self.quantum_spin.setRange(1, 2**31 - 1)
        self.quantum_spin.setValue(quantum)
        controls.addWidget(self.quantum_spin)

        self.start_button = QPushButton("Start")
        self.pause_button = QPushButton("Pause")
        self.step_button = QPushButton("Step")
        self.reset_button = QPushButton("Reset")
        for b in (self.start_button, self.pause_button, self.step_button, self.reset_button):
            controls.addWidget(b)

        controls.addStretch(1)
        controls.addWidget(QLabel("t ="))
        self.time_label = QLabel("0")
        self.time_label.setStyleSheet("font-size:20px;font-weight:700;color:#0b2447;")
        controls.addWidget(self.time_label)
        main_layout.addWidget(control_frame)

        # CPU / ready queue strip
        strip = QGridLayout()
        strip.addWidget(QLabel("CPU:"), 0, 0)
        self.cpu_label = QLabel("Idle")
        self.cpu_label.setStyleSheet("font-weight:700;")
        strip.addWidget(self.cpu_label, 0, 1)
        strip.addWidget(QLabel("Ready Queue:"), 1, 0)
        self.queue_label = QLabel("")
        self.queue_label.setTextFormat(Qt.TextFormat.RichText)
        strip.addWidget(self.queue_label, 1, 1)
        strip.setColumnStretch(1, 1)
        main_layout.addLayout(strip)

        splitter = QSplitter(Qt.Orientation.Horizontal)
        main_layout.addWidget(splitter, stretch=1)

        tabs = QTabWidget()
        self.process_table = ProcessTable()
        self.stats_table = StatsTable()
        tabs.addTab(self.process_table, "Processes")
        tabs.addTab(self.stats_table, "Statistics")
        splitter.addWidget(tabs)

        right = QWidget()
        right_layout = QVBoxLayout(right)
        right_layout.setContentsMargins(0, 0, 0, 0)
        cards = QHBoxLayout()
        self.avg_tat_card = StatCard("Avg Turnaround")
        self.avg_wt_card = StatCard("Avg Waiting")
        cards.addWidget(self.avg_tat_card)
        cards.addWidget(self.avg_wt_card)
        right_layout.addLayout(cards)
        right_layout.addWidget(QLabel("History"))
        self.history_list = QListWidget()
        right_layout.addWidget(self.history_list, stretch=1)
        splitter.addWidget(right)
        splitter.setStretchFactor(0, 3)
        splitter.setStretchFactor(1, 2)

        self.status_label = QLabel("")
        self.status_label.setStyleSheet("color:#b00020;")
        main_layout.addWidget(self.status_label)

        self.listener = _WindowListener(self)
        self.engine.subscribe(self.listener)

        self.start_button.clicked.connect(self.start_simulation)
        self.pause_button.clicked.connect(self.pause_simulation)
        self.step_button.clicked.connect(self.step_simulation)
        self.reset_button.clicked.connect(self.reset_simulation)

        # A single-shot timer re-armed after each tick never overlaps ticks
        self.sim_timer = QTimer(self)
        self.sim_timer.setSingleShot(True)
        self.sim_timer.timeout.connect(self._timer_step)

        self.reset_simulation()

    def append_history(self, text: str) -> None:
        self.history_list.addItem(f"[t={self.engine.current_time}] {text}")
        self.history_list.scrollToBottom()

    def refresh_stats(self) -> None:
        metrics = self.engine.metrics
        self.stats_table.show_rows(metrics.process_rows())
        self.avg_tat_card.update_value(metrics.get_avg_turnaround_time())
        self.avg_wt_card.update_value(metrics.get_avg_waiting_time())

    def refresh_view(self) -> None:
        self.time_label.setText(str(self.engine.current_time))
        running = self.engine.running
        self.cpu_label.setText(running.pid if running else "Idle")
        chips = []
        for p in self.engine.ready_queue:
            color = p.color or stable_color(p.pid)
            chips.append(f'<span style="background:{color};color:#fff;padding:2px 6px;">&nbsp;{p.pid}&nbsp;</span>')
        self.queue_label.setText(" ".join(chips))
        self.process_table.show_processes(self.engine.processes)

    def step_simulation(self) -> None:
        if not self.driver.running:
            # the spin box is editable while paused
            try:
                self.engine.set_quantum(self.quantum_spin.value())
            except ConfigurationError as e:
                self.status_label.setText(str(e))
                return
        self.driver.step()
        self.refresh_view()

    def _timer_step(self) -> None:
        if not self.driver.running:
            return
        self.step_simulation()
        if self.driver.running:
            self.sim_timer.start(self.tick_ms)

    def start_simulation(self) -> None:
        try:
            self.engine.set_quantum(self.quantum_spin.value())
        except ConfigurationError as e:
            self.status_label.setText(str(e))
            return
        if not self.driver.start():
            return
        self.status_label.setText("")
        self.start_button.setEnabled(False)
        self.pause_button.setEnabled(True)
        self.quantum_spin.setEnabled(False)
        self.sim_timer.start(self.tick_ms)

    def pause_simulation(self) -> None:
        self.driver.stop()
        self.sim_timer.stop()
        self.start_button.setEnabled(not self.engine.is_complete)
        self.pause_button.setEnabled(False)
        self.quantum_spin.setEnabled(True)

    def reset_simulation(self) -> None:
        self.sim_timer.stop()
        try:
            self.driver.reset(quantum=self.quantum_spin.value())
        except ConfigurationError as e:
            self.status_label.setText(str(e))
            return
        self.history_list.clear()
        self.status_label.setText("")
        self.pause_simulation()
        self.refresh_stats()
        self.refresh_view()
