"""
Fault injection for elevators.

Every fault check draws a uniform integer in [ROLL_MIN, ROLL_MAX]. A roll at
or below TIMER_FAULT_THRESHOLD sticks the travel timer (the car halts for
good); a roll at or below DOOR_STUCK_THRESHOLD jams a door for one attempt.

Elevators only depend on the ``roll()`` method, so a seeded FaultInjector
and a ScheduledFaults replay are interchangeable.
"""

import random
from typing import Iterable, Optional

ROLL_MIN = 1
ROLL_MAX = 100

TIMER_FAULT_THRESHOLD = 5
DOOR_STUCK_THRESHOLD = 30


class FaultScheduleExhausted(RuntimeError):
    """A ScheduledFaults replay ran out of rolls."""


class FaultInjector:
    """Uniform random rolls from a (optionally seeded) random.Random."""

    def __init__(self, rng: Optional[random.Random] = None, seed: Optional[int] = None):
        if rng is not None and seed is not None:
            raise ValueError("Pass either rng or seed, not both")
        self.rng = rng if rng is not None else random.Random(seed)

    def roll(self) -> int:
        return self.rng.randint(ROLL_MIN, ROLL_MAX)


class ScheduledFaults:
    """
    Replays a fixed sequence of rolls.

    Once the sequence is used up, rolls come from ``fallback`` if one was
    given, otherwise FaultScheduleExhausted is raised.
    """

    def __init__(self, rolls: Iterable[int], fallback: Optional[FaultInjector] = None):
        self._rolls = list(rolls)
        for value in self._rolls:
            if not ROLL_MIN <= value <= ROLL_MAX:
                raise ValueError(f"Scheduled roll {value} outside [{ROLL_MIN}, {ROLL_MAX}]")
        self._index = 0
        self.fallback = fallback

    def roll(self) -> int:
        if self._index < len(self._rolls):
            value = self._rolls[self._index]
            self._index += 1
            return value
        if self.fallback is not None:
            return self.fallback.roll()
        raise FaultScheduleExhausted(f"All {len(self._rolls)} scheduled rolls consumed")

    @property
    def remaining(self) -> int:
        return len(self._rolls) - self._index


def is_timer_fault(roll: int, threshold: int = TIMER_FAULT_THRESHOLD) -> bool:
    return roll <= threshold


def is_door_stuck(roll: int, threshold: int = DOOR_STUCK_THRESHOLD) -> bool:
    return roll <= threshold
