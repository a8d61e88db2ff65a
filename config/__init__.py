"""
Configuration management package

Provides the simulation configuration classes and their YAML loader.
"""

from .simulation import (
    SimulationConfig,
    NetworkConfig,
    ElevatorConfig,
    DoorConfig,
    FaultConfig,
    SchedulerConfig,
    TrafficConfig
)

from .config_loader import (
    ConfigLoader,
    load_simulation_config,
    save_simulation_config
)

__all__ = [
    'SimulationConfig',
    'NetworkConfig',
    'ElevatorConfig',
    'DoorConfig',
    'FaultConfig',
    'SchedulerConfig',
    'TrafficConfig',

    # Loader
    'ConfigLoader',
    'load_simulation_config',
    'save_simulation_config',
]
