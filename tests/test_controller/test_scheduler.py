import pytest
import simpy

from controller.algorithms.fixed_car import FixedCarStrategy
from controller.scheduler import Scheduler, SchedulerState
from simulator.core.door import Door
from simulator.core.elevator import Elevator, ElevatorState
from simulator.core.faults import ScheduledFaults
from simulator.infrastructure.network import Datagram, Network
from simulator.protocol.codec import decode, encode
from simulator.protocol.request import Request, RequestFormatError

FLOOR_PORT = 2001
SCHEDULER_PORT = 2002
ELEVATOR_PORT = 2003


def make_scheduler(strategy=None):
    env = simpy.Environment()
    network = Network(env)
    floor = network.bind(FLOOR_PORT)
    elevator_side = network.bind(ELEVATOR_PORT)
    scheduler = Scheduler("Scheduler", network.bind(SCHEDULER_PORT), FLOOR_PORT, ELEVATOR_PORT,
                          strategy=strategy)
    return env, scheduler, floor, elevator_side


def test_floor_message_is_assigned_and_forwarded_to_elevator():
    _, scheduler, floor, elevator_side = make_scheduler()
    request = Request.from_line("14:05:15.2 2 Up 4")

    sent = scheduler.route(Datagram(encode(request), FLOOR_PORT, SCHEDULER_PORT))

    assert sent.dest_port == ELEVATOR_PORT
    assert sent.source_port == SCHEDULER_PORT
    forwarded = decode(elevator_side.inbox.items[0].data)
    assert forwarded.assigned_elevator == 0
    assert forwarded.key == request.key
    assert floor.inbox.items == []


def test_elevator_message_is_forwarded_unchanged():
    _, scheduler, floor, elevator_side = make_scheduler()
    status = Request.from_line("14:05:15.2 2 Up 4")
    status.assign_elevator(0)
    status.mark_complete()
    data = encode(status)

    sent = scheduler.route(Datagram(data, ELEVATOR_PORT, SCHEDULER_PORT))

    assert sent.dest_port == FLOOR_PORT
    assert floor.inbox.items[0].data == data
    assert elevator_side.inbox.items == []


def test_unknown_sender_is_dropped():
    _, scheduler, floor, elevator_side = make_scheduler()
    data = encode(Request.from_line("14:05:15.2 2 Up 4"))

    assert scheduler.route(Datagram(data, 9999, SCHEDULER_PORT)) is None
    assert scheduler.dropped == 1
    assert floor.inbox.items == [] and elevator_side.inbox.items == []


def test_malformed_floor_message_propagates():
    _, scheduler, _, _ = make_scheduler()
    with pytest.raises(RequestFormatError):
        scheduler.route(Datagram(b'\x00' * 8, FLOOR_PORT, SCHEDULER_PORT))


def test_configured_strategy_picks_elevator():
    _, scheduler, _, elevator_side = make_scheduler(strategy=FixedCarStrategy(elevator_id=2))
    scheduler.route(Datagram(encode(Request.from_line("14:05:15.2 2 Up 4")), FLOOR_PORT, SCHEDULER_PORT))
    assert decode(elevator_side.inbox.items[0].data).assigned_elevator == 2


def test_run_loop_cycles_back_to_idle():
    env, scheduler, floor, elevator_side = make_scheduler()
    assert scheduler.state is SchedulerState.IDLE

    floor.send(encode(Request.from_line("14:05:15.2 2 Up 4")), SCHEDULER_PORT)
    floor.send(encode(Request.from_line("14:05:16.0 5 Down 1")), SCHEDULER_PORT)
    elevator_side.send(encode(Request.location_update_for(0, 2, 4, Request.from_line("14:05:15.2 2 Up 4").timestamp)),
                       SCHEDULER_PORT)
    env.run(until=1)

    assert scheduler.state is SchedulerState.IDLE
    assert scheduler.forwarded_to_elevators == 2
    assert scheduler.forwarded_to_floors == 1
    assert len(elevator_side.inbox.items) == 2
    assert len(floor.inbox.items) == 1


def test_fixed_car_rejects_negative_id():
    with pytest.raises(ValueError):
        FixedCarStrategy(elevator_id=-1)


def test_bad_floor_message_stops_only_the_scheduler():
    env = simpy.Environment()
    network = Network(env)
    floor = network.bind(FLOOR_PORT)
    elevator_side = network.bind(ELEVATOR_PORT)
    scheduler = Scheduler("Scheduler", network.bind(SCHEDULER_PORT), FLOOR_PORT, ELEVATOR_PORT)
    faults = ScheduledFaults([99] * 6)
    car = Elevator(env, 0, network.bind(2100), ELEVATOR_PORT, faults,
                   door=Door(env, "Elevator_0_Door", faults))

    ride = Request.from_line("14:05:15.2 2 Up 4")
    ride.assign_elevator(0)
    elevator_side.send(encode(ride), 2100)

    def corrupt_floor_message():
        yield env.timeout(1.0)
        floor.send(b'\x00' * 8, SCHEDULER_PORT)

    env.process(corrupt_floor_message())
    env.run(until=30)

    assert scheduler.state is SchedulerState.STOPPED
    assert isinstance(scheduler.error, RequestFormatError)
    assert scheduler.endpoint.closed
    # The car kept running and finished its ride
    assert car.floor == 4
    assert car.state is ElevatorState.IDLE
    replies = [decode(d.data) for d in elevator_side.inbox.items]
    assert any(r.complete and r.key == ride.key for r in replies)
