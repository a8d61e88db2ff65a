import json
from datetime import datetime
from typing import Dict, List, Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np

from simulator.protocol.codec import decode
from simulator.protocol.request import RequestFormatError


class Statistics:
    """
    Independent recorder of the traffic between the floors and the scheduler.

    Listens on the network's broadcast pipe and keeps what the floor side
    gets to see: when each request was sent, its position reports, and
    whether it completed or its elevator halted. Also keeps a JSON Lines
    event log for offline playback.
    """
    def __init__(self, env, broadcast_pipe, floor_port: int):
        self.env = env
        self.broadcast_pipe = broadcast_pipe
        self.floor_port = floor_port

        self.elevator_trajectories: Dict[int, List[Tuple[float, int]]] = {}
        self.dispatch_times: Dict[tuple, float] = {}
        self.ride_times: List[float] = []
        self.completions: List[Tuple[float, int, tuple]] = []
        self.timer_faults: List[Tuple[float, int, tuple]] = []
        self.undecodable = 0

        self.event_log = []
        self.simulation_metadata = {}

    def register_elevator(self, elevator_id: int, floor: int = 1):
        """Seed an elevator's trajectory with its starting floor"""
        self.elevator_trajectories.setdefault(elevator_id, []).append((self.env.now, floor))

    def set_simulation_metadata(self, metadata):
        self.simulation_metadata = {
            "format_version": "1.0",
            "timestamp": datetime.now().isoformat(),
            "config": metadata
        }

    def _add_event_log(self, event_type, event_data):
        self.event_log.append({
            "time": self.env.now,
            "type": event_type,
            "data": event_data
        })

    def start_listening(self):
        """Main process intercepting every delivered datagram"""
        while True:
            entry = yield self.broadcast_pipe.get()
            self.record(entry['time'], entry['datagram'])

    def record(self, timestamp: float, datagram):
        """Account for one delivered datagram"""
        from_floor = datagram.source_port == self.floor_port
        to_floor = datagram.dest_port == self.floor_port
        if not (from_floor or to_floor):
            return

        try:
            message = decode(datagram.data)
        except RequestFormatError as e:
            self.undecodable += 1
            print(f"{timestamp:.2f} [Statistics] Undecodable datagram from port {datagram.source_port}: {e}")
            return

        if from_floor:
            self.dispatch_times.setdefault(message.key, timestamp)
            self._add_event_log('request_sent', {
                'origin': message.origin,
                'destination': message.destination,
                'direction': message.direction.token
            })
            return

        elevator_id = message.assigned_elevator
        if message.location_update:
            trajectory = self.elevator_trajectories.setdefault(elevator_id, [])
            if not trajectory or trajectory[-1] != (timestamp, message.origin):
                trajectory.append((timestamp, message.origin))
            self._add_event_log('location_update', {
                'elevator': elevator_id,
                'floor': message.origin,
                'destination': message.destination
            })
        elif message.timer_fault:
            self.timer_faults.append((timestamp, elevator_id, message.key))
            self._add_event_log('timer_fault', {
                'elevator': elevator_id,
                'origin': message.origin,
                'destination': message.destination
            })
        elif message.complete:
            self.completions.append((timestamp, elevator_id, message.key))
            sent_at = self.dispatch_times.get(message.key)
            if sent_at is not None:
                self.ride_times.append(timestamp - sent_at)
            self._add_event_log('request_complete', {
                'elevator': elevator_id,
                'origin': message.origin,
                'destination': message.destination
            })

    def summary(self) -> dict:
        """Aggregate counts and ride-time statistics"""
        result = {
            'requests_sent': len(self.dispatch_times),
            'requests_completed': len(self.completions),
            'timer_faults': len(self.timer_faults),
            'halted_elevators': sorted({elevator for _, elevator, _ in self.timer_faults}),
            'location_updates': sum(max(0, len(t) - 1) for t in self.elevator_trajectories.values()),
        }
        if self.ride_times:
            ride_times = np.asarray(self.ride_times)
            result.update({
                'ride_time_mean': float(np.mean(ride_times)),
                'ride_time_median': float(np.median(ride_times)),
                'ride_time_p90': float(np.percentile(ride_times, 90)),
                'ride_time_max': float(np.max(ride_times)),
            })
        return result

    def print_summary(self):
        summary = self.summary()
        print("\n" + "=" * 60)
        print("   SIMULATION SUMMARY")
        print("=" * 60)
        print(f"  Requests sent:      {summary['requests_sent']:>6}")
        print(f"  Requests completed: {summary['requests_completed']:>6}")
        print(f"  Timer faults:       {summary['timer_faults']:>6}")
        if summary['halted_elevators']:
            print(f"  Halted elevators:   {summary['halted_elevators']}")
        if 'ride_time_mean' in summary:
            print(f"\nTime from request to completion:")
            print(f"  Average: {summary['ride_time_mean']:>8.2f} seconds")
            print(f"  Median:  {summary['ride_time_median']:>8.2f} seconds")
            print(f"  90th %:  {summary['ride_time_p90']:>8.2f} seconds")
            print(f"  Max:     {summary['ride_time_max']:>8.2f} seconds")
        print("=" * 60)

    def plot_trajectory_diagram(self, output_filename: Optional[str] = 'elevator_trajectory_diagram.png',
                                show: bool = False):
        """Draw floor-versus-time steps for every elevator, marking timer faults"""
        print("\n--- Plotting: Elevator Trajectory Diagram ---")
        figure = plt.figure(figsize=(14, 8))

        elevator_colors = ['#1f77b4', '#ff7f0e', '#2ca02c', '#d62728', '#9467bd', '#8c564b']
        for idx, elevator_id in enumerate(sorted(self.elevator_trajectories)):
            trajectory = sorted(self.elevator_trajectories[elevator_id], key=lambda x: x[0])
            if not trajectory:
                continue
            times, floors = zip(*trajectory)
            color = elevator_colors[idx % len(elevator_colors)]
            plt.step(times, floors, where='post', label=f"Elevator {elevator_id}",
                     linewidth=2.5, color=color, alpha=0.8)

            for fault_time, faulted_id, _ in self.timer_faults:
                if faulted_id == elevator_id:
                    plt.scatter(fault_time, floors[-1], marker='x', s=120, color=color, zorder=5)

        plt.title("Elevator Trajectory Diagram")
        plt.xlabel("Time (s)")
        plt.ylabel("Floor")
        plt.grid(True, which='both', linestyle='--', alpha=0.7)

        all_floors = [floor for trajectory in self.elevator_trajectories.values() for _, floor in trajectory]
        if all_floors:
            plt.yticks(range(int(min(all_floors)), int(max(all_floors)) + 2))
        if self.elevator_trajectories:
            plt.legend(loc='upper right', fontsize=10)

        if output_filename:
            plt.savefig(output_filename, dpi=150, bbox_inches='tight')
            print(f"Trajectory diagram saved to: {output_filename}")
        if show:
            plt.show()
        plt.close(figure)
        return output_filename

    def save_event_log(self, filename='simulation_log.jsonl'):
        """Save the event log to a JSON Lines file"""
        print(f"\nSaving event log to {filename}...")

        with open(filename, 'w', encoding='utf-8') as f:
            if self.simulation_metadata:
                f.write(json.dumps({
                    "type": "metadata",
                    "data": self.simulation_metadata
                }) + '\n')
            for event in self.event_log:
                f.write(json.dumps(event, ensure_ascii=False) + '\n')

        print(f"Event log saved: {len(self.event_log)} events written to {filename}")
        return filename
