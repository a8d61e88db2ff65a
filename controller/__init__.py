"""
Elevator Scheduler

Routes floor requests to the elevator side and relays elevator status
back to the floors.
"""

__version__ = "0.1.0"

from .scheduler import Scheduler, SchedulerState
from .interfaces.allocation_strategy import IAllocationStrategy
from .algorithms.fixed_car import FixedCarStrategy

__all__ = ['Scheduler', 'SchedulerState', 'IAllocationStrategy', 'FixedCarStrategy']
