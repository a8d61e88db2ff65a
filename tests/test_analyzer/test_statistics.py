import json

import matplotlib
matplotlib.use("Agg")

import pytest
import simpy

from analyzer.statistics import Statistics
from simulator.infrastructure.network import Datagram
from simulator.protocol.codec import encode
from simulator.protocol.request import Request

FLOOR_PORT = 2001
SCHEDULER_PORT = 2002


def make_statistics():
    env = simpy.Environment()
    statistics = Statistics(env, simpy.Store(env), floor_port=FLOOR_PORT)
    statistics.register_elevator(0)
    return statistics


def completed(request, elevator_id=0):
    reply = Request.from_line(request.to_line())
    reply.assign_elevator(elevator_id)
    reply.mark_complete()
    return reply


def test_ride_times_and_trajectory():
    statistics = make_statistics()
    first = Request.from_line("14:05:15.2 2 Up 4")
    second = Request.from_line("14:05:20.0 5 Down 1")

    statistics.record(0.0, Datagram(encode(first), FLOOR_PORT, SCHEDULER_PORT))
    statistics.record(4.8, Datagram(encode(second), FLOOR_PORT, SCHEDULER_PORT))
    statistics.record(2.0, Datagram(encode(Request.location_update_for(0, 2, 4, first.timestamp)),
                                    SCHEDULER_PORT, FLOOR_PORT))
    statistics.record(10.0, Datagram(encode(completed(first)), SCHEDULER_PORT, FLOOR_PORT))
    statistics.record(24.8, Datagram(encode(completed(second)), SCHEDULER_PORT, FLOOR_PORT))

    summary = statistics.summary()
    assert summary['requests_sent'] == 2
    assert summary['requests_completed'] == 2
    assert summary['timer_faults'] == 0
    assert summary['location_updates'] == 1
    assert summary['ride_time_mean'] == pytest.approx(15.0)
    assert summary['ride_time_max'] == pytest.approx(20.0)
    assert statistics.elevator_trajectories[0] == [(0, 1), (2.0, 2)]


def test_timer_faults_and_ignored_hops():
    statistics = make_statistics()
    request = Request.from_line("14:05:15.2 2 Up 4")
    request.assign_elevator(0)
    request.mark_timer_fault()

    # Hops that do not touch the floor side are not counted twice
    statistics.record(1.0, Datagram(encode(request), 2100, 2003))
    statistics.record(1.0, Datagram(encode(request), SCHEDULER_PORT, FLOOR_PORT))
    statistics.record(1.0, Datagram(b'\x00' * 4, SCHEDULER_PORT, FLOOR_PORT))

    summary = statistics.summary()
    assert summary['timer_faults'] == 1
    assert summary['halted_elevators'] == [0]
    assert statistics.undecodable == 1
    assert 'ride_time_mean' not in summary


def test_outputs(tmp_path):
    statistics = make_statistics()
    statistics.set_simulation_metadata({'num_elevators': 1})
    request = Request.from_line("14:05:15.2 2 Up 4")
    statistics.record(0.0, Datagram(encode(request), FLOOR_PORT, SCHEDULER_PORT))

    log_path = statistics.save_event_log(str(tmp_path / "log.jsonl"))
    lines = [json.loads(line) for line in open(log_path, encoding='utf-8')]
    assert lines[0]['type'] == 'metadata'
    assert lines[1]['type'] == 'request_sent'

    image = statistics.plot_trajectory_diagram(str(tmp_path / "trajectory.png"))
    assert (tmp_path / "trajectory.png").exists()
    assert image.endswith("trajectory.png")
