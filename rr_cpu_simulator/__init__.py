"""
Round Robin CPU scheduling simulator.
"""

__version__ = "0.1.0"
