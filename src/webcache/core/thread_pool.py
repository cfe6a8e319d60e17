"""
=============================================================================
THREAD POOL
=============================================================================

A fixed set of worker threads pulling connection tasks from a bounded
queue.

    accept loop ──submit()──► [ task | task | task ]  (queue_size)
                                 │      │      │
                              Worker  Worker  Worker  (workers)

When the queue is full, submit() returns False at once and the server
answers 503 instead of letting connections pile up.

Workers never share mutable state: the caches they read are frozen
before the pool starts.

=============================================================================
"""

import logging
import queue
import threading
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Optional


logger = logging.getLogger(__name__)


@dataclass
class Task:
    """A deferred call: func(*args)."""

    func: Callable[..., Any]
    args: tuple = ()
    submitted_at: float = field(default_factory=time.monotonic)


class Worker(threading.Thread):
    """Runs tasks from the queue until it receives None."""

    def __init__(self, task_queue: "queue.Queue[Optional[Task]]", worker_id: int):
        super().__init__(name=f"webcache-worker-{worker_id}", daemon=True)
        self.task_queue = task_queue
        self.worker_id = worker_id
        self.tasks_completed = 0
        self.tasks_failed = 0

    def run(self):
        while True:
            task = self.task_queue.get()
            try:
                if task is None:
                    return
                self._execute(task)
            finally:
                self.task_queue.task_done()

    def _execute(self, task: Task):
        try:
            task.func(*task.args)
            self.tasks_completed += 1
        except Exception as e:
            self.tasks_failed += 1
            logger.exception(f"Worker {self.worker_id} task failed: {e}")


class ThreadPool:
    """
    Fixed-size worker pool.

        pool = ThreadPool(workers=8, queue_size=128)
        pool.start()
        if not pool.submit(handle, conn):
            ...  # overloaded
        pool.shutdown()
    """

    def __init__(self, workers: int = 8, queue_size: int = 128):
        self.workers = workers
        self._task_queue: "queue.Queue[Optional[Task]]" = queue.Queue(maxsize=queue_size)
        self._workers: list[Worker] = []
        self._started = False

    @property
    def is_running(self) -> bool:
        return self._started

    @property
    def pending(self) -> int:
        """Tasks waiting for a worker."""
        return self._task_queue.qsize()

    def start(self):
        if self._started:
            return
        logger.info(f"Starting thread pool with {self.workers} workers")
        for worker_id in range(self.workers):
            worker = Worker(self._task_queue, worker_id)
            worker.start()
            self._workers.append(worker)
        self._started = True

    def submit(self, func: Callable[..., Any], *args: Any) -> bool:
        """
        Queue func(*args). Returns False when the queue is full.

        Raises:
            RuntimeError: the pool is not running.
        """
        if not self._started:
            raise RuntimeError("Thread pool not started")
        try:
            self._task_queue.put_nowait(Task(func, args))
            return True
        except queue.Full:
            return False

    def shutdown(self, timeout: float = 30.0):
        """
        Let queued tasks finish, then stop every worker.

        Workers still busy after timeout are abandoned (they are
        daemon threads).
        """
        if not self._started:
            return
        logger.info("Shutting down thread pool...")
        self._started = False

        for _ in self._workers:
            self._task_queue.put(None)

        deadline = time.monotonic() + timeout
        for worker in self._workers:
            worker.join(timeout=max(0.0, deadline - time.monotonic()))
            if worker.is_alive():
                logger.warning(f"{worker.name} did not stop in time")

        self._workers.clear()
        logger.info("Thread pool shutdown complete")
