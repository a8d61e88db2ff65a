"""
Elevator-side relay and floor-request source.
"""

import pytest
import simpy

from simulator.core.elevator_subsystem import ElevatorSubsystem
from simulator.core.floor_subsystem import FloorSubsystem, load_workload, parse_workload
from simulator.infrastructure.network import Datagram, Network
from simulator.protocol.codec import decode, encode
from simulator.protocol.request import Request, RequestFormatError

FLOOR_PORT = 2001
SCHEDULER_PORT = 2002
RELAY_PORT = 2003


def make_relay():
    env = simpy.Environment()
    network = Network(env)
    scheduler = network.bind(SCHEDULER_PORT)
    cars = {0: network.bind(2100), 1: network.bind(2101)}
    relay = ElevatorSubsystem(env, network.bind(RELAY_PORT), SCHEDULER_PORT,
                              {i: e.port for i, e in cars.items()}, autostart=False)
    return env, relay, scheduler, cars


def test_relay_routes_assignment_by_elevator_id():
    _, relay, _, cars = make_relay()
    request = Request.from_line("14:05:15.2 2 Up 4")
    request.assign_elevator(1)
    data = encode(request)

    sent = relay.route(Datagram(data, SCHEDULER_PORT, RELAY_PORT))

    assert sent.dest_port == 2101
    assert sent.data == data
    assert len(cars[1].inbox.items) == 1
    assert cars[0].inbox.items == []


def test_relay_drops_unassigned_or_unknown_elevator():
    _, relay, _, cars = make_relay()
    request = Request.from_line("14:05:15.2 2 Up 4")
    assert relay.route(Datagram(encode(request), SCHEDULER_PORT, RELAY_PORT)) is None

    request.assign_elevator(9)
    assert relay.route(Datagram(encode(request), SCHEDULER_PORT, RELAY_PORT)) is None
    assert all(not car.inbox.items for car in cars.values())


def test_relay_passes_car_status_up():
    _, relay, scheduler, _ = make_relay()
    status = Request.location_update_for(1, 3, 5, Request.from_line("14:05:15.2 2 Up 4").timestamp)
    data = encode(status)

    sent = relay.route(Datagram(data, 2101, RELAY_PORT))

    assert sent.dest_port == SCHEDULER_PORT
    assert scheduler.inbox.items[0].data == data
    assert relay.route(Datagram(data, 9999, RELAY_PORT)) is None


def test_relay_process_forwards_continuously():
    env, relay, scheduler, cars = make_relay()
    relay.start()
    request = Request.from_line("14:05:15.2 2 Up 4")
    request.assign_elevator(0)
    scheduler.send(encode(request), RELAY_PORT)
    cars[0].send(encode(request), RELAY_PORT)

    env.run(until=1)

    assert len(cars[0].inbox.items) == 1
    assert len(scheduler.inbox.items) == 1
    assert relay.state == "IDLE"


WORKLOAD = """\
# timestamp origin direction destination
14:05:15.2 2 Up 4

14:05:20.0 5 Down 1
"""


def test_parse_workload_skips_comments_and_blanks():
    requests = parse_workload(WORKLOAD.splitlines())
    assert [(r.origin, r.destination) for r in requests] == [(2, 4), (5, 1)]


def test_parse_workload_rejects_bad_line():
    with pytest.raises(RequestFormatError):
        parse_workload(["14:05:15.2 2 Up 4", "garbage"])


def test_load_workload(tmp_path):
    path = tmp_path / "workload.txt"
    path.write_text(WORKLOAD, encoding="utf-8")
    assert len(load_workload(path)) == 2
    with pytest.raises(FileNotFoundError):
        load_workload(tmp_path / "missing.txt")


def make_floors(time_scale=1.0):
    env = simpy.Environment()
    network = Network(env)
    scheduler = network.bind(SCHEDULER_PORT)
    floors = FloorSubsystem(env, network.bind(FLOOR_PORT), SCHEDULER_PORT,
                            parse_workload(WORKLOAD.splitlines()), time_scale=time_scale)
    return env, floors, scheduler


def test_floor_subsystem_sends_at_timestamp_offsets():
    env, floors, scheduler = make_floors()

    env.run(until=4.0)
    assert len(floors.sent) == 1
    env.run(until=5.0)
    assert len(floors.sent) == 2

    sent = [decode(d.data) for d in scheduler.inbox.items]
    assert [(r.origin, r.destination) for r in sent] == [(2, 4), (5, 1)]
    assert all(d.source_port == FLOOR_PORT for d in scheduler.inbox.items)


def test_floor_subsystem_time_scale():
    env, floors, _ = make_floors(time_scale=0.5)
    env.run(until=2.5)
    assert len(floors.sent) == 2


def test_floor_subsystem_records_replies():
    env, floors, scheduler = make_floors()
    env.run(until=5.0)

    first, second = floors.sent
    update = Request.location_update_for(0, 2, 4, first.timestamp)
    done = decode(encode(first))
    done.assign_elevator(0)
    done.mark_complete()
    fault = decode(encode(second))
    fault.assign_elevator(0)
    fault.mark_timer_fault()
    for message in (update, done, fault):
        scheduler.send(encode(message), FLOOR_PORT)

    env.run(until=6.0)

    assert len(floors.location_updates) == 1
    assert [r.key for r in floors.completed] == [first.key]
    assert [r.key for r in floors.faulted] == [second.key]
    assert floors.outstanding == 0
