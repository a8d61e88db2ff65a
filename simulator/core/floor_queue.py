"""
Ordered set of floors an elevator still has to visit.
"""

from bisect import bisect_left, bisect_right, insort
from typing import Iterable, Iterator, List, Optional


class FloorQueue:
    """
    Distinct pending floors kept in ascending order.

    Supports the directional lookups the elevator needs: the nearest queued
    floor strictly above (higher) or strictly below (lower) a given floor.
    """

    def __init__(self, floors: Iterable[int] = ()):
        self._floors: List[int] = []
        for floor in floors:
            self.add(floor)

    def add(self, floor: int):
        index = bisect_left(self._floors, floor)
        if index == len(self._floors) or self._floors[index] != floor:
            insort(self._floors, floor)

    def discard(self, floor: int):
        index = bisect_left(self._floors, floor)
        if index < len(self._floors) and self._floors[index] == floor:
            del self._floors[index]

    def higher(self, floor: int) -> Optional[int]:
        """Nearest queued floor strictly above ``floor``, or None"""
        index = bisect_right(self._floors, floor)
        return self._floors[index] if index < len(self._floors) else None

    def lower(self, floor: int) -> Optional[int]:
        """Nearest queued floor strictly below ``floor``, or None"""
        index = bisect_left(self._floors, floor)
        return self._floors[index - 1] if index > 0 else None

    def clear(self):
        self._floors.clear()

    def __contains__(self, floor: int) -> bool:
        index = bisect_left(self._floors, floor)
        return index < len(self._floors) and self._floors[index] == floor

    def __len__(self) -> int:
        return len(self._floors)

    def __iter__(self) -> Iterator[int]:
        return iter(list(self._floors))

    def __repr__(self):
        return f"FloorQueue({self._floors})"
