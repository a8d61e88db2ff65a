"""
Fixed Car Strategy

Sends every request to the same elevator. This is the scheduler's default
until a real selection policy (e.g. nearest idle car moving the right way)
is implemented.
"""

from simulator.protocol.request import Request
from ..interfaces.allocation_strategy import IAllocationStrategy


class FixedCarStrategy(IAllocationStrategy):
    """Always assigns one elevator (elevator 0 unless configured otherwise)"""

    def __init__(self, elevator_id: int = 0):
        if elevator_id < 0:
            raise ValueError("elevator_id cannot be negative")
        self.elevator_id = elevator_id

    def select_elevator(self, request: Request) -> int:
        return self.elevator_id

    def get_strategy_name(self) -> str:
        return f"Fixed Car (always elevator {self.elevator_id})"
