"""
Elevator System Analyzer

Records the traffic seen by the floor side and reports completion,
fault and ride-time statistics.
"""

__version__ = "0.1.0"

from .statistics import Statistics

__all__ = ['Statistics']
