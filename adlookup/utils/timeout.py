from __future__ import annotations

import concurrent.futures
from typing import Callable, TypeVar

T = TypeVar("T")

_TIMEOUT_EXECUTOR = concurrent.futures.ThreadPoolExecutor(
    max_workers=32,
    thread_name_prefix="adlookup-timeout",
)


def run_with_timeout(fn: Callable[[], T], timeout_s: float | None) -> T:
    """Run in a shared worker pool and enforce timeout.

    A timeout of None or 0 runs `fn` inline with no deadline. Raises
    concurrent.futures.TimeoutError when the deadline passes; the
    worker keeps running until its own LDAP time limit stops it.
    """
    if not timeout_s:
        return fn()
    fut = _TIMEOUT_EXECUTOR.submit(fn)
    try:
        return fut.result(timeout=timeout_s)
    except concurrent.futures.TimeoutError:
        fut.cancel()
        raise
