"""
=============================================================================
THREAD POOL
=============================================================================

A fixed set of worker threads pulling connection-handling tasks from a
bounded queue. This is the server's concurrency cap: at most max_workers
connections are handled at once, at most queue_size more may wait, and
anything beyond that is turned away instead of piling up.

=============================================================================
ARCHITECTURE
=============================================================================

    accept loop                 TASK QUEUE (bounded)            WORKERS
    ───────────                 ────────────────────            ───────

    submit(conn) ──put_nowait──► [Task][Task][Task]  ──get()──► Worker-0
         │                                                     Worker-1
         │ queue.Full                                          ...
         ▼                                                     Worker-N
    return False
    (caller rejects the connection)

=============================================================================
WORKER LIFECYCLE
=============================================================================

    def run(self):
        while not shutdown:
            task = queue.get(timeout=idle_timeout)
            if task is None:        ← "Poison pill" signals shutdown
                break
            execute(task)           ← exceptions logged, never raised
            queue.task_done()

One failing connection never takes a worker down with it.

=============================================================================
"""

import threading
import queue
import time
import logging
from typing import Callable, Optional, Any
from dataclasses import dataclass, field
from enum import Enum


logger = logging.getLogger(__name__)


class WorkerState(Enum):
    """Worker thread states."""
    IDLE = "idle"        # Waiting for a task
    BUSY = "busy"        # Executing a task
    STOPPED = "stopped"  # Exited its loop


@dataclass
class Task:
    """
    A unit of work submitted to the pool.

    Attributes:
        func: The function to call.
        args: Positional arguments for func.
        kwargs: Keyword arguments for func.
        submitted_at: When the task was queued (for wait-time logging).
        on_discard: Called instead of func if the pool shuts down before
                    a worker picks the task up.
    """
    func: Callable[..., Any]
    args: tuple = ()
    kwargs: dict = field(default_factory=dict)
    submitted_at: float = field(default_factory=time.time)
    on_discard: Optional[Callable[[], Any]] = None

    def discard(self):
        """Run the discard hook; failures are logged, never raised."""
        if self.on_discard is None:
            return
        try:
            self.on_discard()
        except Exception as e:
            logger.exception(f"Discard hook failed: {e}")


class Worker(threading.Thread):
    """Worker thread that processes tasks from the shared queue."""

    def __init__(
        self,
        task_queue: "queue.Queue[Optional[Task]]",
        worker_id: int,
        idle_timeout: float = 1.0,
    ):
        """
        Args:
            task_queue: Queue to pull tasks from.
            worker_id: Identifier used in the thread name and logs.
            idle_timeout: Seconds to wait for a task before re-checking
                          the shutdown flag.
        """
        # daemon=True: a stuck client can't keep the process alive on exit
        super().__init__(name=f"Worker-{worker_id}", daemon=True)
        self.task_queue = task_queue
        self.worker_id = worker_id
        self.idle_timeout = idle_timeout

        self.state = WorkerState.IDLE
        self._shutdown = threading.Event()

        self.tasks_completed = 0
        self.tasks_failed = 0

    def run(self):
        """Main worker loop."""
        logger.debug(f"Worker {self.worker_id} started")

        while not self._shutdown.is_set():
            try:
                task = self.task_queue.get(timeout=self.idle_timeout)
            except queue.Empty:
                continue

            try:
                if task is None:
                    break
                self._execute_task(task)
            finally:
                self.task_queue.task_done()

        self.state = WorkerState.STOPPED
        logger.debug(f"Worker {self.worker_id} stopped")

    def _execute_task(self, task: Task):
        """
        Execute a single task.

        Exceptions are logged and counted; the worker keeps running.
        """
        self.state = WorkerState.BUSY
        start_time = time.time()

        try:
            task.func(*task.args, **task.kwargs)
            elapsed = time.time() - start_time
            logger.debug(
                f"Worker {self.worker_id} completed task in {elapsed:.3f}s "
                f"(queued {start_time - task.submitted_at:.3f}s)"
            )
            self.tasks_completed += 1
        except Exception as e:
            elapsed = time.time() - start_time
            logger.exception(
                f"Worker {self.worker_id} task failed after {elapsed:.3f}s: {e}"
            )
            self.tasks_failed += 1
        finally:
            self.state = WorkerState.IDLE

    def shutdown(self):
        """Signal the worker to stop."""
        self._shutdown.set()


class ThreadPool:
    """
    Fixed-size thread pool with a bounded task queue.

    Usage:
        pool = ThreadPool(max_workers=8, queue_size=64)
        pool.start()

        if not pool.submit(handle, args=(conn,)):
            reject(conn)

        pool.shutdown()
    """

    def __init__(
        self,
        max_workers: int = 16,
        queue_size: int = 128,
        idle_timeout: float = 1.0,
    ):
        """
        Args:
            max_workers: Number of worker threads (the concurrency cap).
            queue_size: Tasks allowed to wait for a free worker.
            idle_timeout: How often idle workers re-check for shutdown.
        """
        self.max_workers = max_workers
        self.queue_size = queue_size
        self.idle_timeout = idle_timeout

        self._task_queue: "queue.Queue[Optional[Task]]" = queue.Queue(maxsize=queue_size)
        self._workers: list[Worker] = []
        self._lock = threading.Lock()
        self._started = False
        self._shutdown = False

    def start(self):
        """Create and start every worker. Calling it twice is a no-op."""
        with self._lock:
            if self._started:
                return

            logger.info(f"Starting thread pool with {self.max_workers} workers")

            for worker_id in range(self.max_workers):
                worker = Worker(
                    task_queue=self._task_queue,
                    worker_id=worker_id,
                    idle_timeout=self.idle_timeout,
                )
                self._workers.append(worker)
                worker.start()

            self._started = True
            self._shutdown = False

    def submit(
        self,
        func: Callable[..., Any],
        args: tuple = (),
        kwargs: Optional[dict] = None,
        on_discard: Optional[Callable[[], Any]] = None,
    ) -> bool:
        """
        Queue a task without blocking.

        Args:
            func: The function to execute.
            args: Positional arguments for the function.
            kwargs: Keyword arguments for the function.
            on_discard: Cleanup to run if the task is still queued when
                        shutdown gives up waiting (e.g. closing a socket).

        Returns:
            True if the task was queued, False if the queue is full.

        Raises:
            RuntimeError: If the pool is not started or is shutting down.
        """
        if not self._started:
            raise RuntimeError("Thread pool not started")

        if self._shutdown:
            raise RuntimeError("Thread pool is shutting down")

        task = Task(func=func, args=args, kwargs=kwargs or {}, on_discard=on_discard)

        try:
            self._task_queue.put_nowait(task)
            return True
        except queue.Full:
            return False

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None):
        """
        Shut the pool down.

        Args:
            wait: Let already-queued tasks finish before stopping workers.
                  Without it, queued tasks are discarded right away.
            timeout: Upper bound, in seconds, on waiting for the queue to
                     drain. None waits as long as it takes. Tasks still
                     queued after that are discarded, not run.
        """
        if not self._started:
            return

        logger.info("Shutting down thread pool...")
        self._shutdown = True

        if wait:
            deadline = time.time() + timeout if timeout is not None else None
            while self._task_queue.unfinished_tasks:
                if deadline is not None and time.time() > deadline:
                    logger.warning("Shutdown timeout, forcing stop")
                    break
                time.sleep(0.05)

        discarded = self._discard_pending()
        if discarded:
            logger.warning(f"Discarded {discarded} queued tasks on shutdown")

        # ─────────────────────────────────────────────────────────────────
        # POISON PILLS
        # ─────────────────────────────────────────────────────────────────
        for _ in self._workers:
            try:
                self._task_queue.put_nowait(None)
            except queue.Full:
                break  # Workers still see the shutdown flag below

        for worker in self._workers:
            worker.shutdown()
            worker.join(timeout=2.0)

        self._workers.clear()
        self._started = False
        logger.info("Thread pool shutdown complete")

    def _discard_pending(self) -> int:
        """Empty the queue, running each task's discard hook."""
        discarded = 0
        while True:
            try:
                task = self._task_queue.get_nowait()
            except queue.Empty:
                return discarded

            try:
                if task is not None:
                    task.discard()
                    discarded += 1
            finally:
                self._task_queue.task_done()

    # =========================================================================
    # MONITORING
    # =========================================================================

    @property
    def busy_workers(self) -> int:
        """Get count of busy workers."""
        return sum(1 for w in self._workers if w.state == WorkerState.BUSY)

    @property
    def pending(self) -> int:
        """Get the number of tasks waiting in the queue."""
        return self._task_queue.qsize()

    @property
    def stats(self) -> dict:
        """Worker and task counts, for logging."""
        return {
            "workers": len(self._workers),
            "busy": self.busy_workers,
            "queued": self.pending,
            "completed": sum(w.tasks_completed for w in self._workers),
            "failed": sum(w.tasks_failed for w in self._workers),
        }
