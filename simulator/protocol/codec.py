"""
Binary wire format for requests.

Every inter-component message is a fixed BUFFER_LEN byte datagram:

    offset  size  field
    0       4     origin floor (int32)
    4       4     destination floor (int32)
    8       4     direction ordinal (int32, 0=Up, 1=Down)
    12      4     assigned elevator id (int32, -1 = unassigned)
    16      1     flags (bit0 complete, bit1 timer fault, bit2 location update)
    17      1     timestamp text length N
    18      N     UTF-8 timestamp text (HH:MM:SS.ffffff)

Anything after the timestamp text is padding and is ignored on decode.
"""

import struct
from datetime import time

from .request import Direction, Request, RequestFormatError

BUFFER_LEN = 100

_HEADER = struct.Struct('>iiiiBB')
HEADER_LEN = _HEADER.size

UNASSIGNED = -1

FLAG_COMPLETE = 0x01
FLAG_TIMER_FAULT = 0x02
FLAG_LOCATION_UPDATE = 0x04
_KNOWN_FLAGS = FLAG_COMPLETE | FLAG_TIMER_FAULT | FLAG_LOCATION_UPDATE


def encode(request: Request) -> bytes:
    """Encode a request into a zero-padded BUFFER_LEN byte buffer."""
    flags = 0
    if request.complete:
        flags |= FLAG_COMPLETE
    if request.timer_fault:
        flags |= FLAG_TIMER_FAULT
    if request.location_update:
        flags |= FLAG_LOCATION_UPDATE

    timestamp_bytes = request.timestamp.isoformat(timespec='microseconds').encode('utf-8')
    elevator = UNASSIGNED if request.assigned_elevator is None else request.assigned_elevator

    try:
        header = _HEADER.pack(
            request.origin,
            request.destination,
            request.direction.value,
            elevator,
            flags,
            len(timestamp_bytes),
        )
    except struct.error as e:
        raise RequestFormatError(f"Request does not fit the wire format: {e}") from e
    payload = header + timestamp_bytes

    if len(payload) > BUFFER_LEN:
        raise RequestFormatError(f"Encoded request is {len(payload)} bytes, buffer holds {BUFFER_LEN}")
    return payload.ljust(BUFFER_LEN, b'\x00')


def decode(data: bytes) -> Request:
    """
    Decode a request from a wire buffer.

    Trailing bytes past the timestamp text are ignored, so the full fixed-size
    receive buffer can be passed in directly.

    Raises:
        RequestFormatError: If the buffer is truncated or holds invalid fields
    """
    if len(data) < HEADER_LEN:
        raise RequestFormatError(f"Buffer too short for header: {len(data)} bytes")

    origin, destination, ordinal, elevator, flags, text_len = _HEADER.unpack_from(data, 0)

    try:
        direction = Direction(ordinal)
    except ValueError as e:
        raise RequestFormatError(f"Unknown direction ordinal {ordinal}") from e
    if flags & ~_KNOWN_FLAGS:
        raise RequestFormatError(f"Unknown flag bits 0x{flags:02x}")

    end = HEADER_LEN + text_len
    if len(data) < end:
        raise RequestFormatError(f"Timestamp text truncated: need {end} bytes, have {len(data)}")
    try:
        timestamp = time.fromisoformat(data[HEADER_LEN:end].decode('utf-8'))
    except (UnicodeDecodeError, ValueError) as e:
        raise RequestFormatError(f"Invalid timestamp on the wire: {e}") from e

    return Request(
        timestamp=timestamp,
        origin=origin,
        destination=destination,
        direction=direction,
        assigned_elevator=None if elevator == UNASSIGNED else elevator,
        complete=bool(flags & FLAG_COMPLETE),
        timer_fault=bool(flags & FLAG_TIMER_FAULT),
        location_update=bool(flags & FLAG_LOCATION_UPDATE),
    )
