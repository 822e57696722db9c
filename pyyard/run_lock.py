import logging
import random
import threading
import time
from contextlib import contextmanager

log = logging.getLogger(__name__)


def acquire_with_exponential_backoff(lock: threading.Lock, timeout: float, initial_delay: float = 0.1,
                                     factor: int = 2, max_delay: int = 2, jitter: float = 0.1) -> bool:
    """
    Try the lock once, then keep retrying with growing, jittered delays until
    it is acquired or timeout seconds have passed. Returns True if acquired.
    """
    if lock.acquire(blocking=False):
        return True
    deadline = time.perf_counter() + timeout
    delay = initial_delay
    remaining = timeout
    while remaining > 0:
        time.sleep(min(delay, remaining) + random.uniform(0, jitter))
        if lock.acquire(blocking=False):
            return True
        delay = min(delay * factor, max_delay)
        log.debug(f"Run lock busy, retrying in up to {delay:.2f}s")
        remaining = deadline - time.perf_counter()
    return False


@contextmanager
def run_lock(lock: threading.Lock, timeout: float = 0, **backoff_kwargs):
    """Hold lock for the block; yields False (and holds nothing) if another run has it."""
    acquired = acquire_with_exponential_backoff(lock, timeout, **backoff_kwargs)
    try:
        yield acquired
    finally:
        if acquired:
            lock.release()
