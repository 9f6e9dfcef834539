"""Bounded pool of OCR workers.

Workers are created lazily up to a fixed capacity. When every worker is
busy, callers wait in FIFO order and a released worker is handed straight
to the oldest waiter instead of going back to the idle list.
"""

import threading
from collections import deque
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Generic, TypeVar

from receiptscan.utils.logger import get_logger

logger = get_logger(__name__)

W = TypeVar("W")


class _Waiter(Generic[W]):
    """One pending acquire request."""

    def __init__(self) -> None:
        self._event = threading.Event()
        self._worker: W | None = None

    def deliver(self, worker: W | None) -> None:
        self._worker = worker
        self._event.set()

    def wait(self) -> W | None:
        self._event.wait()
        return self._worker


class OCRWorkerPool(Generic[W]):
    """Fixed-capacity pool with blocking acquire and explicit release.

    Args:
        factory: Creates a new worker. May be slow and may raise.
        capacity: Maximum number of workers alive at once.
    """

    def __init__(self, factory: Callable[[], W], capacity: int = 2) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._factory = factory
        self.capacity = capacity
        self._idle: list[W] = []
        self._waiters: deque[_Waiter[W]] = deque()
        self._created = 0
        self._lock = threading.Lock()

    @property
    def created(self) -> int:
        return self._created

    @property
    def idle(self) -> int:
        return len(self._idle)

    @property
    def waiting(self) -> int:
        return len(self._waiters)

    def acquire(self) -> W:
        """Take a worker, creating or waiting for one as needed.

        Blocks without a timeout while the pool is at capacity.

        Raises:
            Exception: Whatever the factory raises when creation fails.
        """
        while True:
            with self._lock:
                if self._idle:
                    return self._idle.pop()
                if self._created < self.capacity:
                    self._created += 1
                    waiter = None
                else:
                    waiter = _Waiter()
                    self._waiters.append(waiter)

            if waiter is None:
                return self._create()

            logger.debug("All %d OCR workers busy, queueing request", self.capacity)
            worker = waiter.wait()
            if worker is not None:
                return worker
            # A creation slot was freed; try again from the top.

    def release(self, worker: W) -> None:
        """Return a worker, handing it to the oldest waiter if there is one."""
        with self._lock:
            if not self._waiters:
                self._idle.append(worker)
                return
            waiter = self._waiters.popleft()
        waiter.deliver(worker)

    @contextmanager
    def worker(self) -> Iterator[W]:
        """Hold a worker for the duration of a ``with`` block."""
        worker = self.acquire()
        try:
            yield worker
        finally:
            self.release(worker)

    def shutdown(self) -> None:
        """Drop idle workers so they can be garbage collected."""
        with self._lock:
            dropped = len(self._idle)
            self._idle.clear()
            self._created -= dropped
        logger.debug("Dropped %d idle OCR workers", dropped)

    def _create(self) -> W:
        try:
            worker = self._factory()
        except Exception:
            with self._lock:
                self._created -= 1
                waiter = self._waiters.popleft() if self._waiters else None
            if waiter is not None:
                waiter.deliver(None)
            raise
        logger.info("Created OCR worker %d/%d", self._created, self.capacity)
        return worker
