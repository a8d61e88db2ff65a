"""
A SimPy environment that paces simulated time against the wall clock.

Door dwell and inter-floor travel are simulated durations; running with a
speed factor lets an operator watch the trace scroll at a human pace.
"""

import time

import simpy


class RealtimeEnvironment(simpy.Environment):
    """
    simpy.Environment that sleeps after each step to keep up with real time.

    Args:
        speed_factor (float): Simulated seconds per real second
            - 1.0 = real-time
            - 2.0 = double speed
            - 0.0 = no pacing (plain SimPy behavior)
    """

    def __init__(self, speed_factor: float = 1.0, initial_time: float = 0):
        if speed_factor < 0:
            raise ValueError("speed_factor cannot be negative")
        super().__init__(initial_time=initial_time)
        self.speed_factor = speed_factor
        self._reset_reference()

    def _reset_reference(self):
        self.real_start_time = time.monotonic()
        self.sim_start_time = self.now

    def step(self):
        """Execute one simulation step, then sleep if ahead of the wall clock."""
        result = super().step()

        if self.speed_factor > 0:
            sim_elapsed = self.now - self.sim_start_time
            target_real_time = self.real_start_time + (sim_elapsed / self.speed_factor)
            sleep_time = target_real_time - time.monotonic()
            if sleep_time > 0:
                time.sleep(sleep_time)

        return result

