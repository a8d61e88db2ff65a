import simpy
from datetime import time
from enum import Enum
from typing import List, Optional

from .entity import Entity
from .door import Door
from .faults import TIMER_FAULT_THRESHOLD, is_timer_fault
from .floor_queue import FloorQueue
from ..infrastructure.network import Endpoint, ReceiveTimeout
from ..protocol.codec import decode, encode
from ..protocol.request import Direction, Request


class ElevatorState(Enum):
    IDLE = "Idle"
    MOVING = "Moving"
    DOORS_OPEN = "DoorsOpen"
    DOORS_CLOSED = "DoorsClosed"
    HALTED = "Halted"


class Elevator(Entity):
    """
    A single elevator car running its control state machine.

    The car receives assigned requests on its own endpoint, queues both the
    origin and destination floor of each, and sweeps the queue in its current
    direction. Position reports, completions and timer faults are sent to the
    elevator subsystem's status port.

    State machine:
        Idle -> Moving -> DoorsOpen -> DoorsClosed -> (Moving | Idle)
        Moving -> Halted on a timer fault (terminal)
    """

    stopped_state = ElevatorState.HALTED

    TRAVEL_TIME_PER_FLOOR = 2.0  # seconds between adjacent floors
    IDLE_POLL_TIMEOUT = 0.05  # receive timeout while floors are still queued

    def __init__(self, env: simpy.Environment, elevator_id: int, endpoint: Endpoint, status_port: int,
                 faults, door: Optional[Door] = None, travel_time: float = TRAVEL_TIME_PER_FLOOR,
                 idle_poll_timeout: float = IDLE_POLL_TIMEOUT,
                 timer_fault_threshold: int = TIMER_FAULT_THRESHOLD, autostart: bool = True):
        """
        Args:
            env: SimPy environment
            elevator_id: Stable id assigned by the caller (0, 1, 2, ...)
            endpoint: Endpoint this car receives requests on
            status_port: Port that receives this car's status messages
            faults: Roll source with a roll() method
            door: Car door (created with default timings if omitted)
            travel_time: Simulated seconds per floor travelled
            idle_poll_timeout: Receive timeout in Idle while the queue is non-empty
            timer_fault_threshold: Rolls at or below this value halt the car
            autostart: Start the control loop immediately
        """
        name = f"Elevator_{elevator_id}"
        super().__init__(env, name, ElevatorState.IDLE, autostart=autostart)
        self.elevator_id = elevator_id
        self.endpoint = endpoint
        self.status_port = status_port
        self.faults = faults
        self.door = door if door is not None else Door(env, f"{name}_Door", faults)
        self.travel_time = travel_time
        self.idle_poll_timeout = idle_poll_timeout
        self.timer_fault_threshold = timer_fault_threshold

        self.floor = 1  # every car starts at the ground floor
        self.direction = Direction.UP
        self.floor_queue = FloorQueue()
        self.current_request: Optional[Request] = None
        # Requests accepted since the car was last empty; all are answered together
        self.pending_requests: List[Request] = []
        self.location_updates_sent = 0

    # --- Queue helpers ---

    def next_floor(self) -> Optional[int]:
        """Nearest queued floor strictly in the current direction, or None."""
        if self.direction is Direction.UP:
            return self.floor_queue.higher(self.floor)
        return self.floor_queue.lower(self.floor)

    def toggle_direction(self):
        old_direction = self.direction
        self.direction = self.direction.toggled()
        print(f"{self.env.now:.2f} [{self.name}] Direction: {old_direction.token} -> {self.direction.token}")

    def accept(self, request: Request):
        """Queue both floors of a newly received request."""
        self.current_request = request
        self.pending_requests.append(request)
        self.floor_queue.add(request.origin)
        self.floor_queue.add(request.destination)
        print(f"{self.env.now:.2f} [{self.name}] Accepted request {request.origin} -> {request.destination}. "
              f"Queue: {list(self.floor_queue)}")

    # --- Status messages ---

    def _send_status(self, request: Request):
        self.endpoint.send(encode(request), self.status_port)

    def _send_location_update(self, destination: int):
        print(f"{self.env.now:.2f} [{self.name}] At floor {self.floor} and going to {destination}")
        timestamp = self.current_request.timestamp if self.current_request else time(0)
        update = Request.location_update_for(self.elevator_id, self.floor, destination, timestamp)
        self._send_status(update)
        self.location_updates_sent += 1

    def _requests_to_answer(self) -> List[Request]:
        if self.pending_requests:
            return list(self.pending_requests)
        return [self.current_request] if self.current_request is not None else []

    def _report_timer_fault(self):
        requests = self._requests_to_answer()
        if not requests:
            print(f"{self.env.now:.2f} [{self.name}] No request in service, nobody to notify of the fault.")
        for request in requests:
            request.mark_timer_fault()
            self._send_status(request)
        self.pending_requests.clear()

    def _report_complete(self):
        for request in self._requests_to_answer():
            request.mark_complete()
            self._send_status(request)
            print(f"{self.env.now:.2f} [{self.name}] Request {request.origin} -> {request.destination} complete.")
        self.pending_requests.clear()

    # --- Movement ---

    def move_to(self, destination: int):
        """
        Travel to ``destination`` one floor at a time (use with ``yield from``).

        Returns:
            True when the car arrived, False if a timer fault halted it
        """
        self.floor_queue.discard(destination)

        if destination == self.floor:
            self.set_state(ElevatorState.IDLE)
            return True

        print(f"{self.env.now:.2f} [{self.name}] Moving from floor {self.floor} to {destination}")

        if is_timer_fault(self.faults.roll(), self.timer_fault_threshold):
            print(f"{self.env.now:.2f} [{self.name}] Timer is stuck. Shutting down elevator...")
            self.set_state(ElevatorState.HALTED)
            self._report_timer_fault()
            return False

        step = 1 if destination > self.floor else -1
        self.direction = Direction.UP if step > 0 else Direction.DOWN
        while self.floor != destination:
            yield self.env.timeout(self.travel_time)
            self.floor += step
            self._send_location_update(destination)
        return True

    # --- State handlers ---

    def _state_idle(self):
        timeout = self.idle_poll_timeout if len(self.floor_queue) else None
        if timeout is None:
            print(f"{self.env.now:.2f} [{self.name}] Waiting for new elevator request...")
        try:
            datagram = yield from self.endpoint.receive(timeout=timeout)
        except ReceiveTimeout:
            self.set_state(ElevatorState.MOVING)
            return
        self.accept(decode(datagram.data))

    def _state_moving(self):
        target = self.next_floor()
        if target is None:
            self.toggle_direction()
            target = self.next_floor()
        if target is None:
            if self.floor not in self.floor_queue:
                self.set_state(ElevatorState.IDLE)
                return
            # Only the current floor is left: serve it without travelling
            target = self.floor

        arrived = yield from self.move_to(target)
        self.set_state(ElevatorState.DOORS_OPEN if arrived else ElevatorState.HALTED)

    def _state_doors_open(self):
        yield from self.door.open()
        self.set_state(ElevatorState.DOORS_CLOSED)

    def _state_doors_closed(self):
        yield from self.door.close()
        if len(self.floor_queue):
            self.set_state(ElevatorState.MOVING)
            return
        self._report_complete()
        self.set_state(ElevatorState.IDLE)

    def run(self):
        """Control loop; returns once the car is halted."""
        handlers = {
            ElevatorState.IDLE: self._state_idle,
            ElevatorState.MOVING: self._state_moving,
            ElevatorState.DOORS_OPEN: self._state_doors_open,
            ElevatorState.DOORS_CLOSED: self._state_doors_closed,
        }
        while self.state is not ElevatorState.HALTED:
            yield from handlers[self.state]()

        self.endpoint.close()
        print(f"{self.env.now:.2f} [{self.name}] Halted. Control loop stopped.")
