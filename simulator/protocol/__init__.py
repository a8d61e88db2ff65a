"""Request model and wire codec"""

from .request import Direction, Request, RequestFormatError, RequestStateError
from .codec import BUFFER_LEN, encode, decode

__all__ = [
    'Direction',
    'Request',
    'RequestFormatError',
    'RequestStateError',
    'BUFFER_LEN',
    'encode',
    'decode',
]
