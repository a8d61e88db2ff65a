"""Infrastructure components for simulation"""

from .network import Network, Endpoint, Datagram, TransportError, ReceiveTimeout
from .realtime_env import RealtimeEnvironment

__all__ = [
    'Network',
    'Endpoint',
    'Datagram',
    'TransportError',
    'ReceiveTimeout',
    'RealtimeEnvironment',
]
