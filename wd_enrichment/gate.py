"""
Ingestion of webhook notifications.

The gate authenticates a webhook request, parses its event and, for batch creation
events, queues an enrichment task. Processing happens later in the enrichment
worker; the gate only answers the caller.
"""

# Python imports
import json
import logging
from typing import Any, NamedTuple

# Local imports
from wd_enrichment.auth import TokenValidator
from wd_enrichment.exceptions import (
    TaskQueueClosedError,
    TaskQueueFullError,
    WebhookAuthError,
    WebhookValidationError,
)
from wd_enrichment.models import EventType, WebhookEvent
from wd_enrichment.task_queue import TaskQueue

logger = logging.getLogger(__name__)


class GateResponse(NamedTuple):
    """Status code and JSON body returned to the webhook caller."""

    status_code: int
    body: dict[str, str]


OK = GateResponse(200, {"status": "ok"})
ACCEPTED = GateResponse(202, {"status": "accepted"})
BAD_REQUEST = GateResponse(400, {"status": "bad request"})
UNAUTHORIZED = GateResponse(401, {"status": "unauthorized"})
ERROR = GateResponse(500, {"status": "error"})


class IngestionGate:
    """Entry point for webhook requests announcing batches ready for enrichment."""

    def __init__(self, validator: TokenValidator, task_queue: TaskQueue):
        self.validator = validator
        self.task_queue = task_queue

    def handle(self, authorization: str | None, raw_body: str | bytes) -> GateResponse:
        """
        Handle a webhook request.

        :param authorization: the value of the ``Authorization`` header, if any.
        :param raw_body: the request body.

        :return: the status code and body to send back.
        """
        try:
            self._authenticate(authorization)
            event = self._parse(raw_body)
            return self._dispatch(event)
        except WebhookAuthError:
            return UNAUTHORIZED
        except WebhookValidationError as e:
            logger.warning(f"Rejected webhook: {e.message}")
            return ERROR if e.status_code >= 500 else BAD_REQUEST
        except (TaskQueueFullError, TaskQueueClosedError) as e:
            logger.error(f"Could not queue enrichment task: {e}")
            return ERROR

    def _authenticate(self, authorization: str | None):
        if not self.validator.validate(authorization):
            raise WebhookAuthError("Missing or invalid bearer token.")

    def _parse(self, raw_body: str | bytes) -> WebhookEvent:
        try:
            payload: Any = json.loads(raw_body)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"Error processing webhook: {e}")
            raise WebhookValidationError("Body is not valid JSON.", 500) from e
        event = WebhookEvent.from_payload(payload)
        logger.info(f"Received event: {event.event}")
        return event

    def _dispatch(self, event: WebhookEvent) -> GateResponse:
        event_type = event.event_type
        if event_type == EventType.PING:
            return OK
        if event_type == EventType.BATCH_CREATED:
            self._enqueue(event)
            return ACCEPTED
        raise WebhookValidationError(f"Unrecognized event: {event.event!r}")

    def _enqueue(self, event: WebhookEvent):
        task = event.to_task()
        if task is None:
            # Acknowledged with 202 even though nothing is queued.
            logger.warning("Task data is incomplete. Skipping enrichment.")
            return
        self.task_queue.put(task)
        logger.info(f"Queued enrichment of batch {task.batch_path}")
