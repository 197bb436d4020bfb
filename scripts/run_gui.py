#!/usr/bin/env python3
"""
Launch the Round Robin simulator GUI.
"""

import argparse
import logging
import os
import sys

SCRIPT_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.abspath(os.path.join(SCRIPT_DIR, os.pardir))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Round Robin simulator GUI")
    parser.add_argument("--workload", type=str, default=None, help="CSV or JSON workload file")
    parser.add_argument("--quantum", type=int, default=2)
    parser.add_argument("--tick-ms", type=int, default=450, help="Timer interval between ticks")
    parser.add_argument("--log-level", type=str, default="WARNING")
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")

    from PyQt6.QtWidgets import QApplication
    from rr_cpu_simulator.backend.core import ConfigurationError
    from rr_cpu_simulator.backend.config import SimulatorConfig, load_definitions
    from rr_cpu_simulator.gui.main_window import MainWindow

    try:
        config = SimulatorConfig(quantum=args.quantum, tick_ms=args.tick_ms)
        if args.workload:
            config.processes = load_definitions(args.workload)
        config.validate()
        app = QApplication(sys.argv)
        app.setStyle("Fusion")
        window = MainWindow.from_config(config)
    except ConfigurationError as e:
        print(f"Configuration rejected: {e}", file=sys.stderr)
        return 2

    window.show()
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
