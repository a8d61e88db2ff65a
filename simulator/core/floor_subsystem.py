"""
Floor-side request source.

Reads the workload (one request per line), sends each request to the
scheduler at its offset from the first request's timestamp, and records the
replies that come back: position reports, completions and timer faults.
"""

import simpy
from datetime import datetime, date
from pathlib import Path
from typing import Iterable, List, Union

from .entity import Entity
from ..infrastructure.network import Endpoint
from ..protocol.codec import decode, encode
from ..protocol.request import Request


def parse_workload(lines: Iterable[str]) -> List[Request]:
    """
    Parse workload lines into requests, skipping blank lines and # comments.

    Raises:
        RequestFormatError: On the first malformed line
    """
    requests = []
    for line in lines:
        stripped = line.strip()
        if not stripped or stripped.startswith('#'):
            continue
        requests.append(Request.from_line(stripped))
    return requests


def load_workload(file_path: Union[str, Path]) -> List[Request]:
    """Read and parse a workload file"""
    file_path = Path(file_path)
    if not file_path.exists():
        raise FileNotFoundError(f"Workload file not found: {file_path}")
    with open(file_path, 'r', encoding='utf-8') as f:
        return parse_workload(f)


def _seconds_between(start, end) -> float:
    delta = datetime.combine(date.min, end) - datetime.combine(date.min, start)
    return delta.total_seconds()


class FloorSubsystem(Entity):
    """Emits ride requests and collects acknowledgements."""

    def __init__(self, env: simpy.Environment, endpoint: Endpoint, scheduler_port: int,
                 requests: Iterable[Request], time_scale: float = 1.0, name: str = "FloorSubsystem",
                 autostart: bool = True):
        """
        Args:
            env: SimPy environment
            endpoint: Endpoint this subsystem sends from and listens on
            scheduler_port: Port of the scheduler
            requests: Requests to emit, in workload order
            time_scale: Multiplier applied to the gaps between request timestamps
        """
        if time_scale < 0:
            raise ValueError("time_scale cannot be negative")
        self.endpoint = endpoint
        self.scheduler_port = scheduler_port
        self.requests = list(requests)
        self.time_scale = time_scale

        self.sent: List[Request] = []
        self.completed: List[Request] = []
        self.faulted: List[Request] = []
        self.location_updates: List[Request] = []
        self._listener = None
        super().__init__(env, name, "IDLE", autostart=autostart)

    def start(self):
        process = super().start()
        if self._listener is None:
            self._listener = self.env.process(self.guarded(self.listen()))
        return process

    def run(self):
        """Send every request at its scheduled offset"""
        if not self.requests:
            return
        first = self.requests[0].timestamp
        self.set_state("SENDING")
        for request in self.requests:
            offset = max(0.0, _seconds_between(first, request.timestamp)) * self.time_scale
            if offset > self.env.now:
                yield self.env.timeout(offset - self.env.now)
            self.endpoint.send(encode(request), self.scheduler_port)
            self.sent.append(request)
            print(f"{self.env.now:.2f} [{self.name}] Sent request: {request}")
        self.set_state("IDLE")

    def listen(self):
        """Record replies relayed back by the scheduler"""
        while True:
            datagram = yield from self.endpoint.receive()
            reply = decode(datagram.data)
            if reply.location_update:
                self.location_updates.append(reply)
            elif reply.timer_fault:
                self.faulted.append(reply)
                print(f"{self.env.now:.2f} [{self.name}] Elevator {reply.assigned_elevator} halted "
                      f"serving {reply.origin} -> {reply.destination}.")
            elif reply.complete:
                self.completed.append(reply)
                print(f"{self.env.now:.2f} [{self.name}] Request {reply.origin} -> {reply.destination} "
                      f"served by elevator {reply.assigned_elevator}.")
            else:
                print(f"{self.env.now:.2f} [{self.name}] Unexpected reply: {reply}")

    @property
    def outstanding(self) -> int:
        """Requests sent that have neither completed nor faulted"""
        answered = {r.key for r in self.completed} | {r.key for r in self.faulted}
        return sum(1 for r in self.sent if r.key not in answered)
