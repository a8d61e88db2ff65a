"""
Simulation Configuration

Ports, elevator timings, fault injection, scheduling policy and workload
settings for one simulation run.
"""

from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional

from simulator.core.faults import DOOR_STUCK_THRESHOLD, ROLL_MAX, ROLL_MIN, TIMER_FAULT_THRESHOLD


@dataclass
class NetworkConfig:
    """Endpoint ports and transport behaviour"""
    floor_port: int = 2001
    scheduler_port: int = 2002
    elevator_subsystem_port: int = 2003
    elevator_base_port: int = 2100  # elevator i listens on elevator_base_port + i
    loss_rate: float = 0.0

    def __post_init__(self):
        fixed_ports = [self.floor_port, self.scheduler_port, self.elevator_subsystem_port]
        if len(set(fixed_ports)) != len(fixed_ports):
            raise ValueError("floor_port, scheduler_port and elevator_subsystem_port must be distinct")
        for port in fixed_ports + [self.elevator_base_port]:
            if not 0 < port < 65536:
                raise ValueError(f"port {port} out of range")
        if not 0.0 <= self.loss_rate < 1.0:
            raise ValueError("loss_rate must be in [0, 1)")

    def elevator_port(self, elevator_id: int) -> int:
        return self.elevator_base_port + elevator_id


@dataclass
class ElevatorConfig:
    """Elevator fleet and motion settings"""
    num_elevators: int = 1
    travel_time_per_floor: float = 2.0  # seconds
    idle_poll_timeout: float = 0.05  # seconds

    def __post_init__(self):
        if self.num_elevators < 1:
            raise ValueError("num_elevators must be at least 1")
        if self.travel_time_per_floor < 0:
            raise ValueError("travel_time_per_floor cannot be negative")
        if self.idle_poll_timeout <= 0:
            raise ValueError("idle_poll_timeout must be positive")


@dataclass
class DoorConfig:
    """Door timing parameters"""
    operation_time: float = 1.0  # seconds per open or close
    retry_delay: float = 0.5  # seconds between attempts while stuck

    def __post_init__(self):
        if self.operation_time < 0:
            raise ValueError("operation_time cannot be negative")
        if self.retry_delay < 0:
            raise ValueError("retry_delay cannot be negative")


@dataclass
class FaultConfig:
    """Fault injection thresholds (rolls are uniform in [1, 100])"""
    timer_fault_threshold: int = TIMER_FAULT_THRESHOLD
    door_stuck_threshold: int = DOOR_STUCK_THRESHOLD
    schedule: Optional[List[int]] = None  # fixed rolls replayed before random ones

    def __post_init__(self):
        for name in ('timer_fault_threshold', 'door_stuck_threshold'):
            value = getattr(self, name)
            if not 0 <= value < ROLL_MAX:
                raise ValueError(f"{name} must be between 0 and {ROLL_MAX - 1}")
        if self.schedule is not None:
            for value in self.schedule:
                if not ROLL_MIN <= value <= ROLL_MAX:
                    raise ValueError(f"schedule roll {value} outside [{ROLL_MIN}, {ROLL_MAX}]")


@dataclass
class SchedulerConfig:
    """Elevator selection policy"""
    allocation_strategy: str = "FixedCar"
    parameters: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if not self.allocation_strategy:
            raise ValueError("scheduler.allocation_strategy cannot be empty")


@dataclass
class TrafficConfig:
    """Workload settings"""
    workload_file: Optional[str] = None
    time_scale: float = 1.0  # multiplier on gaps between request timestamps
    simulation_duration: float = 300.0  # seconds

    def __post_init__(self):
        if self.time_scale < 0:
            raise ValueError("time_scale cannot be negative")
        if self.simulation_duration <= 0:
            raise ValueError("simulation_duration must be positive")


@dataclass
class SimulationConfig:
    """Complete simulation configuration"""
    network: NetworkConfig = field(default_factory=NetworkConfig)
    elevator: ElevatorConfig = field(default_factory=ElevatorConfig)
    door: DoorConfig = field(default_factory=DoorConfig)
    faults: FaultConfig = field(default_factory=FaultConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    traffic: TrafficConfig = field(default_factory=TrafficConfig)

    # Simulation control
    random_seed: Optional[int] = None
    realtime_factor: float = 0.0  # 0.0 = as fast as possible, 1.0 = realtime

    def __post_init__(self):
        if self.realtime_factor < 0:
            raise ValueError("realtime_factor cannot be negative")

    @classmethod
    def from_dict(cls, data: dict) -> 'SimulationConfig':
        """Create SimulationConfig from dictionary"""
        sim_data = (data or {}).get('simulation', data or {})

        network_data = sim_data.get('network', {})
        network = NetworkConfig(
            floor_port=network_data.get('floor_port', 2001),
            scheduler_port=network_data.get('scheduler_port', 2002),
            elevator_subsystem_port=network_data.get('elevator_subsystem_port', 2003),
            elevator_base_port=network_data.get('elevator_base_port', 2100),
            loss_rate=network_data.get('loss_rate', 0.0)
        )

        elevator_data = sim_data.get('elevator', {})
        elevator = ElevatorConfig(
            num_elevators=elevator_data.get('num_elevators', 1),
            travel_time_per_floor=elevator_data.get('travel_time_per_floor', 2.0),
            idle_poll_timeout=elevator_data.get('idle_poll_timeout', 0.05)
        )

        door_data = sim_data.get('door', {})
        door = DoorConfig(
            operation_time=door_data.get('operation_time', 1.0),
            retry_delay=door_data.get('retry_delay', 0.5)
        )

        fault_data = sim_data.get('faults', {})
        faults = FaultConfig(
            timer_fault_threshold=fault_data.get('timer_fault_threshold', TIMER_FAULT_THRESHOLD),
            door_stuck_threshold=fault_data.get('door_stuck_threshold', DOOR_STUCK_THRESHOLD),
            schedule=fault_data.get('schedule')
        )

        scheduler_data = sim_data.get('scheduler', {})
        scheduler = SchedulerConfig(
            allocation_strategy=scheduler_data.get('allocation_strategy', 'FixedCar'),
            parameters=scheduler_data.get('parameters', {}) or {}
        )

        traffic_data = sim_data.get('traffic', {})
        traffic = TrafficConfig(
            workload_file=traffic_data.get('workload_file'),
            time_scale=traffic_data.get('time_scale', 1.0),
            simulation_duration=traffic_data.get('simulation_duration', 300.0)
        )

        return cls(
            network=network,
            elevator=elevator,
            door=door,
            faults=faults,
            scheduler=scheduler,
            traffic=traffic,
            random_seed=sim_data.get('random_seed'),
            realtime_factor=sim_data.get('realtime_factor', 0.0)
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization"""
        result = {
            'simulation': {
                'network': {
                    'floor_port': self.network.floor_port,
                    'scheduler_port': self.network.scheduler_port,
                    'elevator_subsystem_port': self.network.elevator_subsystem_port,
                    'elevator_base_port': self.network.elevator_base_port,
                    'loss_rate': self.network.loss_rate
                },
                'elevator': {
                    'num_elevators': self.elevator.num_elevators,
                    'travel_time_per_floor': self.elevator.travel_time_per_floor,
                    'idle_poll_timeout': self.elevator.idle_poll_timeout
                },
                'door': {
                    'operation_time': self.door.operation_time,
                    'retry_delay': self.door.retry_delay
                },
                'faults': {
                    'timer_fault_threshold': self.faults.timer_fault_threshold,
                    'door_stuck_threshold': self.faults.door_stuck_threshold
                },
                'scheduler': {
                    'allocation_strategy': self.scheduler.allocation_strategy,
                    'parameters': dict(self.scheduler.parameters)
                },
                'traffic': {
                    'workload_file': self.traffic.workload_file,
                    'time_scale': self.traffic.time_scale,
                    'simulation_duration': self.traffic.simulation_duration
                },
                'realtime_factor': self.realtime_factor
            }
        }

        if self.faults.schedule is not None:
            result['simulation']['faults']['schedule'] = list(self.faults.schedule)
        if self.random_seed is not None:
            result['simulation']['random_seed'] = self.random_seed

        return result

    def validate(self):
        """Validate configuration consistency"""
        network = self.network
        last_elevator_port = network.elevator_port(self.elevator.num_elevators - 1)
        if last_elevator_port > 65535:
            raise ValueError(f"elevator ports run past 65535 (last is {last_elevator_port})")
        fixed_ports = {network.floor_port, network.scheduler_port, network.elevator_subsystem_port}
        elevator_ports = set(range(network.elevator_base_port, last_elevator_port + 1))
        if fixed_ports & elevator_ports:
            raise ValueError(f"elevator ports {sorted(elevator_ports)} overlap fixed ports {sorted(fixed_ports)}")

        if self.scheduler.allocation_strategy == "FixedCar":
            elevator_id = self.scheduler.parameters.get('elevator_id', 0)
            if not 0 <= elevator_id < self.elevator.num_elevators:
                raise ValueError(f"FixedCar elevator_id {elevator_id} does not exist "
                                 f"(num_elevators={self.elevator.num_elevators})")
