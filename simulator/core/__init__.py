"""Core simulation entities"""

from .entity import Entity
from .elevator import Elevator, ElevatorState
from .door import Door
from .floor_queue import FloorQueue
from .faults import FaultInjector, ScheduledFaults, FaultScheduleExhausted
from .elevator_subsystem import ElevatorSubsystem
from .floor_subsystem import FloorSubsystem, load_workload, parse_workload

__all__ = [
    'Entity',
    'Elevator',
    'ElevatorState',
    'Door',
    'FloorQueue',
    'FaultInjector',
    'ScheduledFaults',
    'FaultScheduleExhausted',
    'ElevatorSubsystem',
    'FloorSubsystem',
    'load_workload',
    'parse_workload',
]
