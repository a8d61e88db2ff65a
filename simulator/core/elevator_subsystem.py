import simpy
from typing import Dict, Optional

from .entity import Entity
from ..infrastructure.network import Datagram, Endpoint
from ..protocol.codec import decode


class ElevatorSubsystem(Entity):
    """
    Elevator-side relay between the scheduler and the individual cars.

    The scheduler only knows this relay's port. Assignments arriving from
    the scheduler are passed on unchanged to the car whose id matches the
    assigned elevator; anything a car sends is passed up to the scheduler.
    """
    def __init__(self, env: simpy.Environment, endpoint: Endpoint, scheduler_port: int,
                 elevator_ports: Dict[int, int], name: str = "ElevatorSubsystem", autostart: bool = True):
        """
        Args:
            env: SimPy environment
            endpoint: Endpoint this relay listens on
            scheduler_port: Port of the scheduler
            elevator_ports: Mapping of elevator id -> car endpoint port
        """
        super().__init__(env, name, "IDLE", autostart=autostart)
        self.endpoint = endpoint
        self.scheduler_port = scheduler_port
        self.elevator_ports = dict(elevator_ports)
        self._car_ports = set(self.elevator_ports.values())

    def route(self, datagram: Datagram) -> Optional[Datagram]:
        """Forward one datagram. Returns what was sent, or None if it was dropped."""
        if datagram.source_port == self.scheduler_port:
            request = decode(datagram.data)
            port = self.elevator_ports.get(request.assigned_elevator)
            if port is None:
                print(f"{self.env.now:.2f} [{self.name}] No elevator with id {request.assigned_elevator}, "
                      f"request dropped.")
                return None
            print(f"{self.env.now:.2f} [{self.name}] Request {request.origin} -> {request.destination} "
                  f"passed to Elevator_{request.assigned_elevator}.")
            return self.endpoint.send(datagram.data, port)

        if datagram.source_port in self._car_ports:
            return self.endpoint.send(datagram.data, self.scheduler_port)

        print(f"{self.env.now:.2f} [{self.name}] Ignoring datagram from unknown port {datagram.source_port}.")
        return None

    def run(self):
        while True:
            datagram = yield from self.endpoint.receive()
            self.set_state("RELAYING")
            self.route(datagram)
            self.set_state("IDLE")
