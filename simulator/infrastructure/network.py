import random
from dataclasses import dataclass
from typing import Dict, Optional

import simpy

from ..protocol.codec import BUFFER_LEN


class TransportError(RuntimeError):
    """Unrecoverable misuse or failure of the transport."""


class ReceiveTimeout(Exception):
    """A bounded receive finished without a datagram."""


@dataclass(frozen=True)
class Datagram:
    """A fixed-size packet together with the ports it travelled between."""
    data: bytes
    source_port: int
    dest_port: int


class Network:
    """
    Simulated packet transport between components.

    Each component binds its own numeric port and exchanges fixed-size
    datagrams with other ports. Like UDP, delivery to a port nobody listens
    on is silently lost, and an optional loss rate drops packets at random.
    Every delivered datagram is also copied to a broadcast pipe so that a
    recorder can observe all traffic.
    """
    def __init__(self, env: simpy.Environment, loss_rate: float = 0.0, rng: Optional[random.Random] = None):
        """
        Initialize the network

        Args:
            env (simpy.Environment): SimPy environment
            loss_rate (float): Probability in [0, 1) that a datagram is dropped
            rng (random.Random): Random source for packet loss
        """
        if not 0.0 <= loss_rate < 1.0:
            raise ValueError("loss_rate must be in [0, 1)")
        self.env = env
        self.loss_rate = loss_rate
        self.rng = rng or random.Random()
        self.endpoints: Dict[int, 'Endpoint'] = {}
        self.broadcast_pipe = simpy.Store(self.env)
        self.dropped = 0

    def bind(self, port: int) -> 'Endpoint':
        """Create an endpoint listening on the given port"""
        if port in self.endpoints:
            raise TransportError(f"Port {port} is already bound")
        endpoint = Endpoint(self, port)
        self.endpoints[port] = endpoint
        return endpoint

    def unbind(self, port: int):
        self.endpoints.pop(port, None)

    def deliver(self, datagram: Datagram):
        """Route a datagram to its destination inbox (or lose it)"""
        target = self.endpoints.get(datagram.dest_port)
        if target is None:
            self.dropped += 1
            print(f"{self.env.now:.2f} [Network] No listener on port {datagram.dest_port}, "
                  f"dropped datagram from {datagram.source_port}")
            return
        if self.loss_rate and self.rng.random() < self.loss_rate:
            self.dropped += 1
            print(f"{self.env.now:.2f} [Network] Lost datagram {datagram.source_port} -> {datagram.dest_port}")
            return
        self.broadcast_pipe.put({'time': self.env.now, 'datagram': datagram})
        target.inbox.put(datagram)

    def get_broadcast_pipe(self) -> simpy.Store:
        """Returns the pipe that receives a copy of every delivered datagram"""
        return self.broadcast_pipe

    def get_current_time(self) -> float:
        return self.env.now


class Endpoint:
    """A bound port: the only way a component talks to the rest of the system."""

    def __init__(self, network: Network, port: int):
        self.network = network
        self.env = network.env
        self.port = port
        self.inbox = simpy.Store(self.env)
        self.closed = False

    def send(self, data: bytes, dest_port: int) -> Datagram:
        """
        Send a payload to another port. The payload is padded to BUFFER_LEN.

        Raises:
            TransportError: If the endpoint is closed or the payload is too large
        """
        if self.closed:
            raise TransportError(f"Endpoint {self.port} is closed")
        if len(data) > BUFFER_LEN:
            raise TransportError(f"Payload of {len(data)} bytes exceeds buffer of {BUFFER_LEN}")
        datagram = Datagram(bytes(data).ljust(BUFFER_LEN, b'\x00'), self.port, dest_port)
        self.network.deliver(datagram)
        return datagram

    def receive(self, timeout: Optional[float] = None):
        """
        Wait for the next datagram (use with ``yield from``).

        Args:
            timeout: Seconds to wait before giving up; None waits forever

        Raises:
            ReceiveTimeout: If the timeout elapsed first
            TransportError: If the endpoint is closed
        """
        if self.closed:
            raise TransportError(f"Endpoint {self.port} is closed")
        get = self.inbox.get()
        if timeout is None:
            datagram = yield get
            return datagram

        result = yield get | self.env.timeout(timeout)
        if get in result:
            return result[get]
        get.cancel()
        raise ReceiveTimeout(f"No datagram on port {self.port} within {timeout}s")

    def close(self):
        if not self.closed:
            self.closed = True
            self.network.unbind(self.port)
