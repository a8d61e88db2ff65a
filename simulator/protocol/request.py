"""
Ride request model shared by the floor source, scheduler and elevators.

A request is created once from a workload line and then travels between
components as a binary datagram (see codec.py). Only the three status fields
(assigned elevator, timer fault, complete) change after creation.
"""

import re
from dataclasses import dataclass
from datetime import time
from enum import Enum
from typing import Optional


class RequestFormatError(ValueError):
    """Raised when a request cannot be parsed from text or from the wire."""


class RequestStateError(RuntimeError):
    """Raised when a status field is changed in a way its lifecycle forbids."""


# Floors travel as signed 32-bit integers on the wire
MAX_FLOOR = 2 ** 31 - 1


class Direction(Enum):
    """Travel direction. The value is the ordinal carried on the wire."""
    UP = 0
    DOWN = 1

    @property
    def token(self) -> str:
        return "Up" if self is Direction.UP else "Down"

    def toggled(self) -> 'Direction':
        return Direction.DOWN if self is Direction.UP else Direction.UP

    @classmethod
    def from_token(cls, token: str) -> 'Direction':
        if token == "Up":
            return cls.UP
        if token == "Down":
            return cls.DOWN
        raise RequestFormatError(f"Unknown direction token '{token}' (expected 'Up' or 'Down')")

    @classmethod
    def between(cls, origin: int, destination: int) -> 'Direction':
        return cls.UP if destination >= origin else cls.DOWN


# H:M:S with an optional fraction, e.g. "14:05:15.2"
_TIMESTAMP_PATTERN = re.compile(r'^(\d{1,2}):(\d{1,2}):(\d{1,2})(?:\.(\d{1,6}))?$')


def parse_timestamp(text: str) -> time:
    """Parse an ``H:M:S.fff`` time of day."""
    match = _TIMESTAMP_PATTERN.match(text)
    if not match:
        raise RequestFormatError(f"Malformed timestamp '{text}'")
    hours, minutes, seconds, fraction = match.groups()
    microseconds = int(fraction.ljust(6, '0')) if fraction else 0
    try:
        return time(int(hours), int(minutes), int(seconds), microseconds)
    except ValueError as e:
        raise RequestFormatError(f"Invalid timestamp '{text}': {e}") from e


def format_timestamp(value: time) -> str:
    """Render a time of day the way workload files write it (e.g. 14:05:15.2)."""
    text = f"{value.hour}:{value.minute:02d}:{value.second:02d}"
    millis = value.microsecond // 1000
    if millis:
        text += "." + f"{millis:03d}".rstrip('0')
    return text


@dataclass
class Request:
    """
    A ride request flowing between the floor source, scheduler and elevators.

    The same structure doubles as the elevator's status message: completion
    and timer-fault echoes set the corresponding flags, and position reports
    set ``location_update`` (origin = current floor, destination = target).
    """
    timestamp: time
    origin: int
    destination: int
    direction: Direction
    assigned_elevator: Optional[int] = None
    timer_fault: bool = False
    complete: bool = False
    location_update: bool = False

    @classmethod
    def create(cls, timestamp: time, origin: int, destination: int,
               direction: Optional[Direction] = None) -> 'Request':
        """Create a fresh request, validating the floors."""
        if origin < 1 or destination < 1:
            raise RequestFormatError(f"Floors must be >= 1 (origin={origin}, destination={destination})")
        if origin > MAX_FLOOR or destination > MAX_FLOOR:
            raise RequestFormatError(f"Floors must be <= {MAX_FLOOR} (origin={origin}, destination={destination})")
        if origin == destination:
            raise RequestFormatError(f"Origin and destination are both floor {origin}")
        if direction is None:
            direction = Direction.between(origin, destination)
        return cls(timestamp=timestamp, origin=origin, destination=destination, direction=direction)

    @classmethod
    def from_line(cls, line: str) -> 'Request':
        """
        Parse a workload line of the form ``<timestamp> <origin> <direction> <destination>``.

        Raises:
            RequestFormatError: If the line does not match the grammar
        """
        elements = line.split()
        if len(elements) != 4:
            raise RequestFormatError(f"Expected 4 fields, got {len(elements)}: '{line.strip()}'")
        timestamp_text, origin_text, direction_text, destination_text = elements
        try:
            origin = int(origin_text)
            destination = int(destination_text)
        except ValueError as e:
            raise RequestFormatError(f"Floor numbers must be integers: '{line.strip()}'") from e
        return cls.create(parse_timestamp(timestamp_text), origin, destination,
                          Direction.from_token(direction_text))

    @classmethod
    def location_update_for(cls, elevator_id: int, floor: int, destination: int,
                            timestamp: time) -> 'Request':
        """Build the position report an elevator sends after each floor it passes."""
        return cls(
            timestamp=timestamp,
            origin=floor,
            destination=destination,
            direction=Direction.between(floor, destination),
            assigned_elevator=elevator_id,
            location_update=True,
        )

    def to_line(self) -> str:
        return f"{format_timestamp(self.timestamp)} {self.origin} {self.direction.token} {self.destination}"

    # --- Status transitions ---

    def assign_elevator(self, elevator_id: int):
        if self.assigned_elevator is not None and self.assigned_elevator != elevator_id:
            raise RequestStateError(
                f"Request already assigned to elevator {self.assigned_elevator}, cannot reassign to {elevator_id}")
        self.assigned_elevator = elevator_id

    def mark_complete(self):
        if self.timer_fault:
            raise RequestStateError("Cannot complete a request whose elevator has halted")
        self.complete = True

    def mark_timer_fault(self):
        if self.complete:
            raise RequestStateError("Cannot fault a request that is already complete")
        self.timer_fault = True

    @property
    def key(self) -> tuple:
        """Identity of the underlying ride, independent of its status flags."""
        return (self.timestamp, self.origin, self.destination, self.direction)

    def __str__(self):
        text = f"Timestamp: {self.timestamp} Direction: {self.direction.token} To: {self.destination} From: {self.origin}"
        if self.assigned_elevator is not None:
            text += f" Elevator: {self.assigned_elevator}"
        if self.complete:
            text += " [complete]"
        if self.timer_fault:
            text += " [timer fault]"
        return text
