"""
Bounded-concurrency execution of post-processing tasks

At most `capacity` tasks run at once. Every task holds a slot of a bounded
semaphore for its whole duration and gives it back in a finally block, so a
failing task can never leak a slot. join() is the barrier the coordinator
waits on before persisting anything.

In synchronous mode (--debug) dispatch() returns only once the task is done,
which keeps log output in processing order.
"""

import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Callable, List

from ..utils.logger import get_logger


class ProcessingPool:
    """ThreadPoolExecutor guarded by a counting semaphore"""

    def __init__(self, capacity: int = 4, synchronous: bool = False):
        if capacity < 1:
            raise ValueError(f"Pool capacity must be at least 1: {capacity}")

        self.capacity = capacity
        self.synchronous = synchronous
        self.logger = get_logger(__name__)

        self._executor = ThreadPoolExecutor(max_workers=capacity, thread_name_prefix="spotsync")
        self._slots = threading.BoundedSemaphore(capacity)
        self._lock = threading.Lock()
        self._futures: List[Future] = []

        self.active = 0
        self.peak = 0

    def _run(self, fn: Callable, *args) -> Any:
        with self._slots:
            with self._lock:
                self.active += 1
                self.peak = max(self.peak, self.active)
            try:
                return fn(*args)
            finally:
                with self._lock:
                    self.active -= 1

    def dispatch(self, fn: Callable, *args) -> Future:
        """
        Schedule fn(*args)

        Returns:
            Future of the task
        """
        future = self._executor.submit(self._run, fn, *args)
        self._futures.append(future)
        if self.synchronous:
            wait([future])
        return future

    def join(self) -> List[Future]:
        """
        Wait for every dispatched task, successful or not

        Returns:
            Futures in dispatch order
        """
        futures, self._futures = self._futures, []
        wait(futures)
        return futures

    def abandon(self) -> None:
        """Drop queued tasks and return without waiting for running ones"""
        self._executor.shutdown(wait=False, cancel_futures=True)

    def shutdown(self) -> None:
        self._executor.shutdown(wait=True)

    def __enter__(self) -> 'ProcessingPool':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.shutdown()
        else:
            self.abandon()
