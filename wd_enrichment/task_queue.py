"""
In-memory FIFO queue of enrichment tasks.

The queue is shared between the webhook handlers, which may push from many threads,
and the single enrichment worker, which pops. Tasks are not persisted: whatever is
queued when the process stops is lost.
"""

# Python imports
import logging
import queue
import threading

# Local imports
from wd_enrichment.constants import DEFAULT_QUEUE_CAPACITY
from wd_enrichment.exceptions import TaskQueueClosedError, TaskQueueFullError
from wd_enrichment.models import Task

logger = logging.getLogger(__name__)

_CLOSED = object()


class TaskQueue:
    """
    Thread-safe FIFO of tasks with non-blocking puts and blocking gets.

    With a positive ``capacity`` the queue is bounded and ``put`` fails fast when it
    is full instead of blocking the caller.
    """

    def __init__(self, capacity: int = DEFAULT_QUEUE_CAPACITY):
        """
        Initialize the queue.

        :param capacity: maximum number of queued tasks, 0 for an unbounded queue.

        :raises ValueError: if capacity is negative.
        """
        if capacity < 0:
            raise ValueError("capacity must be a non-negative integer.")
        self.capacity = capacity
        # The capacity is enforced in put() so that the close marker always fits.
        self._queue: queue.Queue[object] = queue.Queue()
        self._lock = threading.Lock()
        self._size = 0
        self._closed = False

    def __len__(self) -> int:
        return self._size

    @property
    def closed(self) -> bool:
        """Whether the queue was closed."""
        return self._closed

    def put(self, task: Task):
        """
        Append a task without blocking.

        :raises TaskQueueFullError: if the queue is bounded and at capacity.
        :raises TaskQueueClosedError: if the queue was closed.
        """
        with self._lock:
            if self._closed:
                raise TaskQueueClosedError("The task queue is closed.")
            if self.capacity and self._size >= self.capacity:
                raise TaskQueueFullError(
                    f"The task queue is full ({self.capacity} tasks)."
                )
            self._size += 1
            self._queue.put_nowait(task)

    def get(self, timeout: float | None = None) -> Task | None:
        """
        Remove and return the oldest task, blocking until one is available.

        :param timeout: maximum number of seconds to wait, None to wait forever.

        :return: the task, or None if the queue was closed while waiting or the
            timeout expired.
        """
        try:
            item = self._queue.get(timeout=timeout)
        except queue.Empty:
            return None
        if item is _CLOSED:
            # Leave the marker for any other consumer blocked on the queue.
            self._queue.put_nowait(_CLOSED)
            return None
        with self._lock:
            if self._closed:
                # close() already counted this task as dropped
                return None
            self._size -= 1
        return item  # type: ignore[return-value]

    def close(self) -> int:
        """
        Close the queue, waking up any consumer blocked in ``get``.

        Tasks still queued are dropped.

        :return: the number of tasks dropped.
        """
        with self._lock:
            if self._closed:
                return 0
            self._closed = True
            dropped = self._size
            self._size = 0
            while True:
                try:
                    self._queue.get_nowait()
                except queue.Empty:
                    break
            self._queue.put_nowait(_CLOSED)
        if dropped:
            logger.warning(f"Task queue closed with {dropped} pending tasks dropped")
        return dropped
