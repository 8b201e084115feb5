"""Bounded worker pools with caller-runs backpressure.

``concurrent.futures.ThreadPoolExecutor`` has an unbounded queue and a single
size knob. The pools here keep a core set of threads, grow up to a maximum only
when the bounded queue is full, and once both are exhausted run the submitted
item on the submitting thread instead of dropping or rejecting it.
"""

from __future__ import annotations

import itertools
import logging
import queue
import threading
import time
from collections.abc import Callable
from concurrent.futures import Executor, Future
from dataclasses import dataclass
from typing import Any

from shiftdesk.config import PoolSettings, Settings

logger = logging.getLogger(__name__)


@dataclass(slots=True, frozen=True)
class PoolStats:
    """Point-in-time pool counters."""

    pool_size: int
    active_count: int
    queued: int
    completed_count: int
    caller_runs_count: int


class _WorkItem:
    __slots__ = ("args", "fn", "future", "kwargs")

    def __init__(
        self,
        future: Future[Any],
        fn: Callable[..., Any],
        args: tuple[Any, ...],
        kwargs: dict[str, Any],
    ) -> None:
        self.future = future
        self.fn = fn
        self.args = args
        self.kwargs = kwargs

    def run(self) -> None:
        if not self.future.set_running_or_notify_cancel():
            return
        try:
            result = self.fn(*self.args, **self.kwargs)
        except BaseException as error:  # noqa: BLE001
            self.future.set_exception(error)
        else:
            self.future.set_result(result)


class BoundedWorkerPool(Executor):
    """Thread pool with core/max sizing, a bounded queue and caller-runs saturation."""

    def __init__(  # noqa: PLR0913
        self,
        *,
        core_size: int,
        max_size: int,
        queue_capacity: int,
        thread_name_prefix: str = "worker-",
        keep_alive_seconds: float = 60.0,
        await_termination_seconds: float = 60.0,
    ) -> None:
        if core_size <= 0:
            raise ValueError("core_size must be > 0")
        if max_size < core_size:
            raise ValueError("max_size must be >= core_size")
        if queue_capacity <= 0:
            raise ValueError("queue_capacity must be > 0")

        self.core_size = core_size
        self.max_size = max_size
        self.queue_capacity = queue_capacity
        self.thread_name_prefix = thread_name_prefix
        self.keep_alive_seconds = keep_alive_seconds
        self.await_termination_seconds = await_termination_seconds

        # Unbounded underneath so shutdown sentinels never block; capacity is
        # enforced through _queued under _lock.
        self._work_queue: queue.SimpleQueue[_WorkItem | None] = queue.SimpleQueue()
        self._lock = threading.Lock()
        self._threads: set[threading.Thread] = set()
        self._thread_counter = itertools.count(1)
        self._queued = 0
        self._active = 0
        self._completed = 0
        self._caller_runs = 0
        self._shutdown = False

    @classmethod
    def from_settings(cls, settings: PoolSettings) -> BoundedWorkerPool:
        return cls(
            core_size=settings.core_size,
            max_size=settings.max_size,
            queue_capacity=settings.queue_capacity,
            thread_name_prefix=settings.thread_name_prefix,
            keep_alive_seconds=settings.keep_alive_seconds,
            await_termination_seconds=settings.await_termination_seconds,
        )

    def submit(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Future[Any]:
        """Schedule ``fn``; runs it inline when threads and queue are saturated."""

        future: Future[Any] = Future()
        item = _WorkItem(future, fn, args, kwargs)
        with self._lock:
            if self._shutdown:
                raise RuntimeError("cannot schedule new futures after shutdown")
            if len(self._threads) < self.core_size:
                self._start_thread(item)
                return future
            if self._queued < self.queue_capacity:
                self._queued += 1
                self._work_queue.put(item)
                return future
            if len(self._threads) < self.max_size:
                self._start_thread(item)
                return future
            self._caller_runs += 1

        logger.warning(
            "Pool %s saturated (threads=%d, queued=%d); running task on caller thread %s",
            self.thread_name_prefix,
            self.max_size,
            self.queue_capacity,
            threading.current_thread().name,
        )
        item.run()
        return future

    def shutdown(self, wait: bool = True, *, cancel_futures: bool = False) -> None:
        """Stop accepting work and drain in-flight items within the termination window."""

        with self._lock:
            if self._shutdown:
                return
            self._shutdown = True
            threads = list(self._threads)

        if cancel_futures:
            self._cancel_queued()
        for _ in threads:
            self._work_queue.put(None)
        if not wait:
            return

        deadline = time.monotonic() + self.await_termination_seconds
        for thread in threads:
            thread.join(timeout=max(0.0, deadline - time.monotonic()))
        alive = [thread.name for thread in threads if thread.is_alive()]
        if alive:
            cancelled = self._cancel_queued()
            logger.warning(
                "Pool %s did not terminate within %.0fs: %d thread(s) still running, "
                "%d queued task(s) cancelled",
                self.thread_name_prefix,
                self.await_termination_seconds,
                len(alive),
                cancelled,
            )
        else:
            logger.info("Pool %s shut down", self.thread_name_prefix)

    def stats(self) -> PoolStats:
        with self._lock:
            return PoolStats(
                pool_size=len(self._threads),
                active_count=self._active,
                queued=self._queued,
                completed_count=self._completed,
                caller_runs_count=self._caller_runs,
            )

    def _start_thread(self, first_item: _WorkItem) -> None:
        thread = threading.Thread(
            target=self._worker,
            args=(first_item,),
            name=f"{self.thread_name_prefix}{next(self._thread_counter)}",
            daemon=True,
        )
        self._threads.add(thread)
        thread.start()

    def _worker(self, first_item: _WorkItem) -> None:
        item: _WorkItem | None = first_item
        current = threading.current_thread()
        try:
            while True:
                if item is not None:
                    self._run(item)
                    item = None
                try:
                    item = self._work_queue.get(timeout=self.keep_alive_seconds)
                except queue.Empty:
                    with self._lock:
                        if len(self._threads) > self.core_size:
                            self._threads.discard(current)
                            return
                    continue
                if item is None:
                    return
                with self._lock:
                    self._queued -= 1
        finally:
            with self._lock:
                self._threads.discard(current)

    def _run(self, item: _WorkItem) -> None:
        with self._lock:
            self._active += 1
        try:
            item.run()
        finally:
            with self._lock:
                self._active -= 1
                self._completed += 1

    def _cancel_queued(self) -> int:
        cancelled = 0
        while True:
            try:
                item = self._work_queue.get_nowait()
            except queue.Empty:
                return cancelled
            if item is None:
                # Sentinel for a thread that is still busy; put it back for that thread.
                self._work_queue.put(None)
                return cancelled
            with self._lock:
                self._queued -= 1
            item.future.cancel()
            cancelled += 1


@dataclass(slots=True)
class WorkerPools:
    """The two process-wide pools, owned by the composition root.

    ``general`` serves work that does not hold a database connection for its
    duration. ``db`` is sized below the database connection pool so async
    workers cannot starve request handlers of connections.
    """

    general: BoundedWorkerPool
    db: BoundedWorkerPool

    @classmethod
    def from_settings(cls, settings: Settings) -> WorkerPools:
        pools = cls(
            general=BoundedWorkerPool.from_settings(settings.general_pool),
            db=BoundedWorkerPool.from_settings(settings.db_pool),
        )
        for name, pool in (("general", pools.general), ("db", pools.db)):
            logger.info(
                "Worker pool %s initialized: core_size=%d max_size=%d queue_capacity=%d",
                name,
                pool.core_size,
                pool.max_size,
                pool.queue_capacity,
            )
        return pools

    def shutdown(self, wait: bool = True) -> None:
        self.db.shutdown(wait=wait)
        self.general.shutdown(wait=wait)
