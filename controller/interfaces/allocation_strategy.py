"""
Allocation Strategy Interface

Defines how the scheduler picks an elevator for a new floor request.
"""

from abc import ABC, abstractmethod

from simulator.protocol.request import Request


class IAllocationStrategy(ABC):
    """
    Interface for elevator allocation strategies

    The scheduler keeps no record of where the cars are, so a strategy only
    sees the request itself. Strategies that need elevator positions would
    also need the scheduler to start tracking location updates.
    """

    @abstractmethod
    def select_elevator(self, request: Request) -> int:
        """
        Select the elevator that should serve a request

        Args:
            request: Decoded floor request (not yet assigned)

        Returns:
            int: Id of the selected elevator
        """
        pass

    @abstractmethod
    def get_strategy_name(self) -> str:
        """Strategy name for logging"""
        pass
