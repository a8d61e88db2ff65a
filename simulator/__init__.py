"""
Elevator Control Simulator - core components

Elevators, the elevator-side relay and the floor-request source, all
exchanging fixed-size request datagrams over a simulated transport.
"""

__version__ = "0.1.0"

from .core.entity import Entity
from .core.elevator import Elevator, ElevatorState
from .core.door import Door
from .core.elevator_subsystem import ElevatorSubsystem
from .core.floor_subsystem import FloorSubsystem

from .protocol.request import Direction, Request

from .infrastructure.network import Network
from .infrastructure.realtime_env import RealtimeEnvironment

__all__ = [
    'Entity',
    'Elevator',
    'ElevatorState',
    'Door',
    'ElevatorSubsystem',
    'FloorSubsystem',
    'Direction',
    'Request',
    'Network',
    'RealtimeEnvironment',
]
