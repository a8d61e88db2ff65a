"""
Request model, text ingestion and binary wire codec.
"""

from datetime import time

import pytest

from simulator.protocol.codec import BUFFER_LEN, HEADER_LEN, decode, encode
from simulator.protocol.request import (
    Direction,
    Request,
    RequestFormatError,
    RequestStateError,
    format_timestamp,
)


@pytest.mark.parametrize("line", [
    "14:05:15.2 2 Up 4",
    "9:3:7.125 10 Down 1",
    "23:59:59.999 1 Up 40",
    "0:00:00 3 Down 2",
])
def test_text_then_wire_preserves_fields(line):
    request = Request.from_line(line)
    decoded = decode(encode(request))

    assert decoded.origin == request.origin
    assert decoded.destination == request.destination
    assert decoded.direction == request.direction
    assert decoded.timestamp == request.timestamp


def test_parse_example_line():
    request = Request.from_line("14:05:15.2 2 Up 4")

    assert request.timestamp == time(14, 5, 15, 200000)
    assert request.origin == 2
    assert request.destination == 4
    assert request.direction is Direction.UP
    assert request.assigned_elevator is None
    assert not request.complete
    assert not request.timer_fault


def test_to_line_matches_workload_format():
    assert Request.from_line("14:05:15.2 2 Up 4").to_line() == "14:05:15.2 2 Up 4"
    assert format_timestamp(time(8, 0, 1)) == "8:00:01"


@pytest.mark.parametrize("line", [
    "",
    "14:05:15.2 2 Up",
    "14:05:15.2 2 Up 4 extra",
    "14:05 2 Up 4",
    "14:05:15.2 two Up 4",
    "14:05:15.2 2 Sideways 4",
    "14:05:15.2 2 up 4",
    "25:00:00.0 2 Up 4",
    "14:05:15.2 3 Up 3",
    "14:05:15.2 0 Up 3",
    "14:05:15.2 2 Up 99999999999",
    "14:05:15.2 2147483648 Down 1",
])
def test_malformed_lines_are_rejected(line):
    with pytest.raises(RequestFormatError):
        Request.from_line(line)


def test_direction_toggle_and_tokens():
    assert Direction.UP.toggled() is Direction.DOWN
    assert Direction.DOWN.toggled().toggled() is Direction.DOWN
    assert Direction.from_token("Down") is Direction.DOWN
    assert Direction.UP.value == 0 and Direction.DOWN.value == 1
    assert Direction.between(5, 2) is Direction.DOWN


def test_encode_is_fixed_size():
    data = encode(Request.from_line("14:05:15.2 2 Up 4"))
    assert len(data) == BUFFER_LEN
    assert data[HEADER_LEN + len("14:05:15.200000"):] == b'\x00' * (BUFFER_LEN - HEADER_LEN - 15)


def test_decode_ignores_trailing_garbage():
    request = Request.from_line("14:05:15.2 2 Up 4")
    data = bytearray(encode(request))
    garbage_start = HEADER_LEN + len(request.timestamp.isoformat(timespec='microseconds'))
    for i in range(garbage_start, BUFFER_LEN):
        data[i] = 0x7A

    assert decode(bytes(data)) == request


@pytest.mark.parametrize("variant", ["assigned", "complete", "timer_fault", "location"])
def test_status_variants_round_trip(variant):
    request = Request.from_line("14:05:15.2 6 Down 2")
    request.assign_elevator(3)
    if variant == "complete":
        request.mark_complete()
    elif variant == "timer_fault":
        request.mark_timer_fault()
    elif variant == "location":
        request = Request.location_update_for(3, 5, 2, request.timestamp)

    assert decode(encode(request)) == request


def test_decode_rejects_bad_buffers():
    data = encode(Request.from_line("14:05:15.2 2 Up 4"))

    with pytest.raises(RequestFormatError):
        decode(data[:10])

    bad_direction = bytearray(data)
    bad_direction[11] = 7
    with pytest.raises(RequestFormatError):
        decode(bytes(bad_direction))

    bad_flags = bytearray(data)
    bad_flags[16] = 0x80
    with pytest.raises(RequestFormatError):
        decode(bytes(bad_flags))

    bad_text = bytearray(data)
    bad_text[HEADER_LEN] = ord('x')
    with pytest.raises(RequestFormatError):
        decode(bytes(bad_text))


def test_status_fields_follow_lifecycle():
    request = Request.from_line("14:05:15.2 2 Up 4")
    request.assign_elevator(0)
    request.assign_elevator(0)
    with pytest.raises(RequestStateError):
        request.assign_elevator(1)

    request.mark_complete()
    with pytest.raises(RequestStateError):
        request.mark_timer_fault()

    faulted = Request.from_line("14:05:15.2 2 Up 4")
    faulted.mark_timer_fault()
    with pytest.raises(RequestStateError):
        faulted.mark_complete()


def test_key_ignores_status_flags():
    request = Request.from_line("14:05:15.2 2 Up 4")
    echoed = decode(encode(request))
    echoed.assign_elevator(0)
    echoed.mark_complete()
    assert echoed.key == request.key


def test_highest_wire_floor_is_accepted():
    request = Request.from_line("14:05:15.2 1 Up 2147483647")
    assert decode(encode(request)).destination == 2147483647


def test_encode_rejects_fields_outside_the_wire_range():
    request = Request(timestamp=time(14, 5, 15), origin=2, destination=2 ** 40, direction=Direction.UP)
    with pytest.raises(RequestFormatError):
        encode(request)
