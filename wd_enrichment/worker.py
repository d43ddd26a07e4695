"""
Enrichment worker.

A single long-lived consumer that takes tasks off the task queue one at a time and,
for each, fetches the batch, enriches its documents and submits them back. Failures
are logged and never stop the loop; a task is never retried.
"""

# Python imports
import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import timedelta
from enum import Enum

# Local imports
from wd_enrichment.clients import BatchClient
from wd_enrichment.constants import DEFAULT_WORKER_STOP_TIMEOUT
from wd_enrichment.enrichment import enrich_documents
from wd_enrichment.exceptions import BatchFetchError, BatchSubmitError
from wd_enrichment.models import Document, EnrichedDocument, Task
from wd_enrichment.task_queue import TaskQueue

logger = logging.getLogger(__name__)

Enricher = Callable[[Iterable[Document]], list[EnrichedDocument]]


class WorkerState(str, Enum):
    """Processing stage of the enrichment worker."""

    IDLE = "idle"
    FETCHING = "fetching"
    TRANSFORMING = "transforming"
    SUBMITTING = "submitting"


@dataclass
class WorkerStats:
    """Counters of the tasks handled by a worker."""

    received: int = 0
    succeeded: int = 0
    failed: int = 0


class EnrichmentWorker:
    """Consumes enrichment tasks and drives them through fetch, enrich and submit."""

    def __init__(
        self,
        task_queue: TaskQueue,
        client: BatchClient,
        *,
        enricher: Enricher = enrich_documents,
    ):
        """
        Initialize the worker.

        :param task_queue: the queue to consume tasks from.
        :param client: the client used to fetch and submit batches.
        :param enricher: the function turning fetched documents into enriched ones.
        """
        self.task_queue = task_queue
        self.client = client
        self.enricher = enricher
        self.stats = WorkerStats()
        self._state = WorkerState.IDLE
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def state(self) -> WorkerState:
        """The current processing stage."""
        return self._state

    @property
    def is_running(self) -> bool:
        """Whether the worker thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    def start(self):
        """
        Run the worker loop in a dedicated daemon thread.

        :raises RuntimeError: if the worker is already running.
        """
        if self.is_running:
            raise RuntimeError("The enrichment worker is already running.")
        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self.run, name="enrichment-worker", daemon=True
        )
        self._thread.start()
        logger.info("Enrichment worker started")

    def stop(self, timeout: timedelta = DEFAULT_WORKER_STOP_TIMEOUT) -> bool:
        """
        Ask the worker to stop and wait for its thread to exit.

        A worker waiting for a task exits immediately. A worker busy with a task
        finishes it first. Tasks still queued are dropped.

        :param timeout: how long to wait for the worker thread.

        :return: True if the worker thread has exited.
        """
        self._stop_event.set()
        self.task_queue.close()
        if self._thread is None:
            return True
        self._thread.join(timeout.total_seconds())
        stopped = not self._thread.is_alive()
        if not stopped:
            logger.warning("Enrichment worker did not stop in time")
        return stopped

    def run(self):
        """Consume tasks until the worker is stopped or the queue is closed."""
        while not self._stop_event.is_set():
            task = self.task_queue.get()
            if task is None:
                break
            try:
                self.process(task)
            except Exception:
                self.stats.failed += 1
                logger.exception(f"Unexpected error processing batch {task.batch_id}")
        logger.info("Enrichment worker stopped")

    def process(self, task: Task) -> bool:
        """
        Fetch, enrich and submit the batch of a task.

        Fetch and submit failures are logged, not raised: the task counts as handled
        either way.

        :param task: the task to process.

        :return: True if the enriched batch was submitted successfully.
        """
        self.stats.received += 1
        logger.info(f"Processing batch: {task.batch_id}")
        try:
            self._state = WorkerState.FETCHING
            documents = self.client.fetch_batch(
                project_id=task.project_id,
                collection_id=task.collection_id,
                batch_id=task.batch_id,
            )

            self._state = WorkerState.TRANSFORMING
            enriched = self.enricher(documents)

            self._state = WorkerState.SUBMITTING
            self.client.submit_batch(
                project_id=task.project_id,
                collection_id=task.collection_id,
                batch_id=task.batch_id,
                version=task.version,
                documents=enriched,
            )
        except BatchFetchError as e:
            self.stats.failed += 1
            logger.error(f"Error fetching batch {task.batch_path}: {e}")
            return False
        except BatchSubmitError as e:
            self.stats.failed += 1
            logger.error(f"Error sending enriched data for batch {task.batch_path}: {e}")
            return False
        finally:
            self._state = WorkerState.IDLE

        self.stats.succeeded += 1
        logger.info(f"Successfully sent enriched data for batch {task.batch_path}")
        return True
