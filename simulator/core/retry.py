import simpy
from typing import Callable, Optional


def retry_with_delay(env: simpy.Environment, attempt: Callable[[], bool], delay: float,
                     on_retry: Optional[Callable[[int], None]] = None):
    """
    Call ``attempt`` until it returns True, waiting ``delay`` between tries.

    Use with ``yield from``; the return value is the number of failed
    attempts before the successful one.

    Args:
        env: SimPy environment
        attempt: Performs one try, returns True on success
        delay: Simulated seconds to wait after a failed try
        on_retry: Called with the running failure count after each failed try
    """
    failures = 0
    while not attempt():
        failures += 1
        if on_retry is not None:
            on_retry(failures)
        if delay > 0:
            yield env.timeout(delay)
    return failures
