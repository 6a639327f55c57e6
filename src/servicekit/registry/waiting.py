"""Polling wait helper."""

import time
from typing import Callable


def wait_until(predicate: Callable[[], bool], timeout: float, interval: float = 1.0) -> bool:
    """Poll *predicate* every *interval* seconds until it holds or *timeout* expires.

    A non-positive timeout evaluates the predicate once. Otherwise the whole
    window is waited out unless the predicate becomes true, and the value of
    the predicate at the deadline is returned.
    """
    if timeout <= 0:
        return bool(predicate())
    if predicate():
        return True

    deadline = time.monotonic() + timeout
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            return bool(predicate())
        time.sleep(min(interval, remaining))
        if predicate():
            return True
