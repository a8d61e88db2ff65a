from enum import Enum
from typing import Iterable, Optional

from simulator.core.entity import Entity
from simulator.infrastructure.network import Datagram, Endpoint
from simulator.protocol.codec import decode, encode
from .interfaces.allocation_strategy import IAllocationStrategy
from .algorithms.fixed_car import FixedCarStrategy


class SchedulerState(Enum):
    IDLE = "Idle"
    THINKING = "Thinking"
    STOPPED = "Stopped"


class Scheduler(Entity):
    """
    Message router between the floor-request source and the elevator side.

    One message per transaction: Idle -> receive -> Thinking -> route -> Idle.
    Routing is decided purely by the sender's port:

    - from the floor port: decode, assign an elevator, re-encode and forward
      to the elevator port
    - from an elevator-side port: forward the payload unchanged to the floor port
    - from anywhere else: drop

    The scheduler keeps no memory of elevator positions between messages.
    """
    stopped_state = SchedulerState.STOPPED

    def __init__(self, name: str, endpoint: Endpoint, floor_port: int, elevator_port: int,
                 strategy: Optional[IAllocationStrategy] = None,
                 elevator_source_ports: Optional[Iterable[int]] = None, autostart: bool = True):
        """
        Args:
            name: Name used in trace output
            endpoint: Endpoint the scheduler listens on
            floor_port: Port of the floor-request source
            elevator_port: Port assignments are forwarded to
            strategy: Elevator selection policy (FixedCarStrategy by default)
            elevator_source_ports: Ports recognised as elevator-side senders
                (defaults to just ``elevator_port``)
            autostart: Start the receive loop immediately
        """
        self.endpoint = endpoint
        self.floor_port = floor_port
        self.elevator_port = elevator_port
        self.strategy = strategy if strategy is not None else FixedCarStrategy()
        self.elevator_source_ports = set(elevator_source_ports) if elevator_source_ports else {elevator_port}
        self.forwarded_to_elevators = 0
        self.forwarded_to_floors = 0
        self.dropped = 0
        super().__init__(endpoint.env, name, SchedulerState.IDLE, autostart=autostart)

        print(f"{self.env.now:.2f} [{self.name}] Using strategy: {self.strategy.get_strategy_name()}")

    def route(self, datagram: Datagram) -> Optional[Datagram]:
        """
        Route one inbound datagram.

        Returns:
            The datagram that was sent, or None if the message was dropped

        Raises:
            RequestFormatError: If a floor message cannot be decoded
        """
        if datagram.source_port == self.floor_port:
            request = decode(datagram.data)
            elevator_id = self.strategy.select_elevator(request)
            request.assign_elevator(elevator_id)
            sent = self.endpoint.send(encode(request), self.elevator_port)
            self.forwarded_to_elevators += 1
            print(f"{self.env.now:.2f} [{self.name}] Forwarded floor request {request.origin} -> "
                  f"{request.destination} to elevator {elevator_id}.")
            return sent

        if datagram.source_port in self.elevator_source_ports:
            sent = self.endpoint.send(datagram.data, self.floor_port)
            self.forwarded_to_floors += 1
            print(f"{self.env.now:.2f} [{self.name}] Forwarded elevator message.")
            return sent

        self.dropped += 1
        print(f"{self.env.now:.2f} [{self.name}] Dropped message from unknown port {datagram.source_port}.")
        return None

    def run(self):
        """Main receive/route loop"""
        print(f"{self.env.now:.2f} [{self.name}] Scheduler is operational. Waiting for messages...")
        while True:
            self.set_state(SchedulerState.IDLE)
            datagram = yield from self.endpoint.receive()
            self.set_state(SchedulerState.THINKING)
            self.route(datagram)
