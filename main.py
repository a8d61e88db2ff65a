import itertools
import random
import sys
from pathlib import Path

import simpy

# Configuration
from config import SimulationConfig, load_simulation_config

# Simulator components
from simulator.infrastructure.network import Network
from simulator.infrastructure.realtime_env import RealtimeEnvironment
from simulator.core.door import Door
from simulator.core.elevator import Elevator
from simulator.core.elevator_subsystem import ElevatorSubsystem
from simulator.core.faults import FaultInjector, ScheduledFaults
from simulator.core.floor_subsystem import FloorSubsystem, load_workload

# Controller and allocation strategy
from controller.scheduler import Scheduler
from controller.algorithms.fixed_car import FixedCarStrategy

# Analyzer
from analyzer.statistics import Statistics

DEFAULT_CONFIG = Path(__file__).parent / "scenarios" / "default.yaml"


def build_strategy(config: SimulationConfig):
    """Create the allocation strategy named in the configuration"""
    name = config.scheduler.allocation_strategy
    if name == "FixedCar":
        return FixedCarStrategy(elevator_id=config.scheduler.parameters.get('elevator_id', 0))
    raise ValueError(f"Unknown allocation strategy: {name}")


def build_fault_source(config: SimulationConfig, rng: random.Random):
    injector = FaultInjector(rng=rng)
    if config.faults.schedule:
        return ScheduledFaults(config.faults.schedule, fallback=injector)
    return injector


def run_simulation(config_path=None, workload_path=None, config: SimulationConfig = None,
                   plot: bool = False):
    """
    Set up and run the entire simulation

    Args:
        config_path: Path to simulation configuration YAML file
        workload_path: Workload file; overrides traffic.workload_file from the config
        config: Ready-made configuration (takes precedence over config_path)
        plot: Save a trajectory diagram when the run ends

    Returns:
        Statistics collected during the run
    """
    print("--- Loading Configuration ---")
    config_dir = Path.cwd()
    if config is None:
        config_path = Path(config_path or DEFAULT_CONFIG)
        config = load_simulation_config(config_path)
        config_dir = config_path.parent
        print(f"Simulation Config: {config_path}")

    if workload_path is None:
        if config.traffic.workload_file is None:
            raise ValueError("No workload file given (traffic.workload_file or workload_path)")
        # Workload paths in a config file are relative to that file
        workload_path = config_dir / config.traffic.workload_file
    requests = load_workload(workload_path)
    print(f"Workload: {workload_path} ({len(requests)} requests)")

    if config.random_seed is not None:
        rng = random.Random(config.random_seed)
        print(f"Random seed fixed to {config.random_seed} for reproducible results")
    else:
        rng = random.Random()
        print("Random seed not set - results will vary")

    print("\n--- Simulation Setup ---")
    if config.realtime_factor > 0:
        env = RealtimeEnvironment(speed_factor=config.realtime_factor)
    else:
        env = simpy.Environment()

    ports = config.network
    network = Network(env, loss_rate=ports.loss_rate, rng=random.Random(rng.random()))

    statistics = Statistics(env, network.get_broadcast_pipe(), floor_port=ports.floor_port)
    statistics.set_simulation_metadata(config.to_dict())
    env.process(statistics.start_listening())

    # --- Elevators (ids handed out in creation order from 0) ---
    elevator_ids = itertools.count()
    elevators = []
    for _ in range(config.elevator.num_elevators):
        elevator_id = next(elevator_ids)
        faults = build_fault_source(config, random.Random(rng.random()))
        door = Door(env, f"Elevator_{elevator_id}_Door", faults,
                    operation_time=config.door.operation_time,
                    retry_delay=config.door.retry_delay,
                    stuck_threshold=config.faults.door_stuck_threshold)
        elevator = Elevator(
            env, elevator_id,
            endpoint=network.bind(ports.elevator_port(elevator_id)),
            status_port=ports.elevator_subsystem_port,
            faults=faults,
            door=door,
            travel_time=config.elevator.travel_time_per_floor,
            idle_poll_timeout=config.elevator.idle_poll_timeout,
            timer_fault_threshold=config.faults.timer_fault_threshold
        )
        statistics.register_elevator(elevator_id, elevator.floor)
        elevators.append(elevator)

    ElevatorSubsystem(
        env,
        endpoint=network.bind(ports.elevator_subsystem_port),
        scheduler_port=ports.scheduler_port,
        elevator_ports={e.elevator_id: e.endpoint.port for e in elevators}
    )

    Scheduler(
        "Scheduler",
        endpoint=network.bind(ports.scheduler_port),
        floor_port=ports.floor_port,
        elevator_port=ports.elevator_subsystem_port,
        strategy=build_strategy(config)
    )

    floors = FloorSubsystem(
        env,
        endpoint=network.bind(ports.floor_port),
        scheduler_port=ports.scheduler_port,
        requests=requests,
        time_scale=config.traffic.time_scale
    )

    print("\n--- Starting Simulation ---")
    env.run(until=config.traffic.simulation_duration)
    print(f"\n--- Simulation Finished at {env.now:.2f}s ---")
    print(f"Requests outstanding: {floors.outstanding}")
    for elevator in elevators:
        print(f"  {elevator.name}: floor {elevator.floor}, state {elevator.state.value}")

    statistics.print_summary()
    if plot:
        statistics.plot_trajectory_diagram()

    return statistics


if __name__ == '__main__':
    # Accept command line arguments for config and workload files
    config_path = sys.argv[1] if len(sys.argv) > 1 else None
    workload_path = sys.argv[2] if len(sys.argv) > 2 else None
    run_simulation(config_path=config_path, workload_path=workload_path)
