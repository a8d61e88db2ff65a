import simpy

from .entity import Entity
from .faults import DOOR_STUCK_THRESHOLD, is_door_stuck
from .retry import retry_with_delay


class Door(Entity):
    """
    Car door driven directly by its elevator's control loop.

    Each open or close samples a fresh fault roll per attempt and keeps
    retrying while the door is stuck. A stuck door never halts the car.
    """
    def __init__(self, env: simpy.Environment, name: str, faults, operation_time: float = 1.0,
                 retry_delay: float = 0.5, stuck_threshold: int = DOOR_STUCK_THRESHOLD):
        """
        Args:
            env: SimPy environment
            name: Name used in trace output
            faults: Roll source with a roll() method (FaultInjector or ScheduledFaults)
            operation_time: Seconds a successful open or close takes
            retry_delay: Seconds between attempts while the door is stuck
            stuck_threshold: Rolls at or below this value jam the door
        """
        super().__init__(env, name, 'CLOSED', autostart=False)
        self.faults = faults
        self.operation_time = operation_time
        self.retry_delay = retry_delay
        self.stuck_threshold = stuck_threshold
        self.stuck_events = 0

    def run(self):
        """The door has no loop of its own; open() and close() are called by the elevator."""
        yield self.env.timeout(0)

    def _attempt(self) -> bool:
        return not is_door_stuck(self.faults.roll(), self.stuck_threshold)

    def _operate(self, moving_state: str, final_state: str, stuck_message: str):
        self.set_state(moving_state)

        def log_retry(failures):
            self.stuck_events += 1
            print(f"{self.env.now:.2f} [{self.name}] {stuck_message} Trying again... (attempt {failures + 1})")

        retries = yield from retry_with_delay(self.env, self._attempt, self.retry_delay, on_retry=log_retry)
        if self.operation_time > 0:
            yield self.env.timeout(self.operation_time)
        self.set_state(final_state)
        return retries

    def open(self):
        """Open the door (use with ``yield from``). Returns the number of retries."""
        retries = yield from self._operate('OPENING', 'OPEN', "Door is stuck closed.")
        return retries

    def close(self):
        """Close the door (use with ``yield from``). Returns the number of retries."""
        retries = yield from self._operate('CLOSING', 'CLOSED', "Door is stuck open.")
        return retries
