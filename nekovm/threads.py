"""Threads, recursive locks and thread-local storage."""

from __future__ import annotations

import threading
from typing import Any, Callable, Optional


class Lock:
    """A recursive lock; also usable as a context manager."""

    def __init__(self) -> None:
        self._lock = threading.RLock()

    def acquire(self) -> None:
        self._lock.acquire()

    def try_acquire(self) -> bool:
        """Acquire without waiting; return whether the lock was taken."""
        return self._lock.acquire(blocking=False)

    def release(self) -> None:
        self._lock.release()

    def __enter__(self) -> "Lock":
        self.acquire()
        return self

    def __exit__(self, *exc: Any) -> None:
        self.release()


class Local:
    """A per-thread value slot, None until set in a thread."""

    def __init__(self) -> None:
        self._data = threading.local()

    def get(self) -> Any:
        return getattr(self._data, "value", None)

    def set(self, value: Any) -> None:
        self._data.value = value


def create_thread(
    init: Callable[[Any], Any], main: Callable[[Any], Any], param: Any
) -> threading.Thread:
    """Start a daemon thread running ``init(param)`` then ``main(param)``.

    Returns once ``init`` has finished in the new thread. If ``init`` raises,
    ``main`` is not run and the exception is raised here.
    """
    ready = threading.Event()
    failure: list[BaseException] = []

    def run() -> None:
        try:
            init(param)
        except BaseException as exc:
            failure.append(exc)
            ready.set()
            return
        ready.set()
        main(param)

    thread = threading.Thread(target=run, daemon=True)
    thread.start()
    ready.wait()
    if failure:
        raise failure[0]
    return thread


def run_blocking(func: Callable[[Any], Any], param: Any) -> Optional[Any]:
    """Run ``func(param)`` as a blocking section and return its result."""
    return func(param)