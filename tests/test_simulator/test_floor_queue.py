from simulator.core.floor_queue import FloorQueue


def test_floors_are_distinct_and_ordered():
    queue = FloorQueue([7, 2, 4, 2, 7])
    assert list(queue) == [2, 4, 7]
    assert len(queue) == 3
    assert 4 in queue
    assert 5 not in queue


def test_higher_and_lower_are_strict():
    queue = FloorQueue([2, 4, 7])
    assert queue.higher(4) == 7
    assert queue.higher(3) == 4
    assert queue.higher(7) is None
    assert queue.lower(4) == 2
    assert queue.lower(5) == 4
    assert queue.lower(2) is None


def test_discard_missing_floor_is_noop():
    queue = FloorQueue([3])
    queue.discard(5)
    queue.discard(3)
    queue.discard(3)
    assert len(queue) == 0
    assert queue.higher(0) is None
    assert queue.lower(10) is None
