import simpy
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional, Union

from ..infrastructure.network import TransportError
from ..protocol.request import RequestFormatError

# Errors that stop the component hitting them without stopping the simulation
FATAL_ERRORS = (RequestFormatError, TransportError)


class Entity(ABC):
    """
    Abstract base class for components that run as SimPy processes.

    Provides a name, a logged state variable and the process handle. The
    process body is the subclass's run() generator.
    """

    # State entered when a fatal error stops the process
    stopped_state: Union[str, Enum] = "STOPPED"

    def __init__(self, env: simpy.Environment, name: str, initial_state: Union[str, Enum] = "initial_state",
                 autostart: bool = True):
        """
        Initialize the entity.

        Args:
            env: The SimPy simulation environment this entity belongs to.
            name: Entity name used in trace output.
            initial_state: State before the first transition.
            autostart: Start the run() process immediately. Pass False to drive
                individual operations by hand (e.g. in tests) and call start() later.
        """
        self.env = env
        self.name: str = name
        self.state = initial_state
        self._process: Optional[simpy.Process] = None
        self.error: Optional[Exception] = None

        print(f'{self.env.now:.2f}: Entity "{self.name}" ({self.__class__.__name__}) created.')

        if autostart:
            self.start()

    def start(self) -> simpy.Process:
        """Start the run() process (once)."""
        if self._process is None:
            self._process = self.env.process(self.guarded(self.run()))
        return self._process

    def guarded(self, body):
        """
        Run a process body, ending only this component on a fatal error.

        Errors in FATAL_ERRORS are logged, the endpoint is closed and the
        entity moves to stopped_state. Other errors still propagate out of
        env.run().
        """
        try:
            return (yield from body)
        except FATAL_ERRORS as e:
            self._on_fatal_error(e)
            return None

    def _on_fatal_error(self, error: Exception):
        self.error = error
        print(f"{self.env.now:.2f} [{self.name}] Fatal {error.__class__.__name__}: {error}. Stopping.")
        endpoint = getattr(self, "endpoint", None)
        if endpoint is not None:
            endpoint.close()
        self.set_state(self.stopped_state)

    @abstractmethod
    def run(self):
        """
        Generator method that serves as the main SimPy process body.

        Typically a loop that dispatches on self.state and yields from the
        handler for that state.
        """
        pass

    def set_state(self, new_state: Union[str, Enum]):
        """Transition to a new state, logging the change."""
        if self.state != new_state:
            old_state = self.state
            self.state = new_state
            self._on_state_changed(old_state, new_state)

    def _on_state_changed(self, old_state, new_state):
        """Hook called after every transition; subclasses may extend it."""
        print(f'{self.env.now:.2f}: Entity "{self.name}" state transition: '
              f'{_state_label(old_state)} -> {_state_label(new_state)}')

    @property
    def process(self) -> Optional[simpy.Process]:
        return self._process


def _state_label(state) -> str:
    return state.value if isinstance(state, Enum) else str(state)
