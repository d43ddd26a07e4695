"""Models for inbound webhook events and the tasks derived from them."""

# Python imports
from enum import Enum
from typing import Any

# 3rd party imports
from pydantic import BaseModel, ConfigDict, ValidationError

# Local imports
from wd_enrichment.models import ValidatedModel

__all__ = ["EventType", "Task", "WebhookEvent"]


class EventType(str, Enum):
    """Webhook event types the service knows how to handle."""

    def __str__(self) -> str:  # noqa: D105
        return self.value

    PING = "ping"
    BATCH_CREATED = "enrichment.batch.created"


class Task(ValidatedModel):
    """A queued request to enrich one batch."""

    model_config = ConfigDict(frozen=True)

    version: str
    project_id: str
    collection_id: str
    batch_id: str

    @property
    def batch_path(self) -> str:
        """Return a readable identifier of the batch, used in log messages."""
        return f"{self.project_id}/{self.collection_id}/{self.batch_id}"


class WebhookEvent(BaseModel):
    """
    A webhook notification sent by the enrichment API.

    Only the keys read by the service are declared; anything else the API sends along
    (instance ids, timestamps, ...) is accepted and ignored.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    event: Any = None
    version: Any = None
    data: dict[str, Any] | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "WebhookEvent":
        """
        Build an event from a decoded JSON payload.

        Payloads that are not JSON objects, or whose ``data`` is not an object, yield
        an event without the offending parts instead of failing.

        :param payload: the decoded JSON body of the webhook request.

        :return: the parsed event.
        """
        if not isinstance(payload, dict):
            return cls()
        data = payload.get("data")
        return cls(
            event=payload.get("event"),
            version=payload.get("version"),
            data=data if isinstance(data, dict) else None,
        )

    @property
    def event_type(self) -> EventType | None:
        """Return the recognized event type, or None for anything else."""
        if not isinstance(self.event, str):
            return None
        try:
            return EventType(self.event)
        except ValueError:
            return None

    def to_task(self) -> Task | None:
        """
        Convert the event's data into a Task.

        The version is read from the top level of the event and falls back to the
        ``data`` object. The project, collection and batch ids come from ``data``.

        :return: the Task, or None if any of its fields is missing or not a string.
        """
        data = self.data or {}
        version = self.version if self.version is not None else data.get("version")
        try:
            return Task(
                version=version,
                project_id=data.get("project_id"),
                collection_id=data.get("collection_id"),
                batch_id=data.get("batch_id"),
            )
        except ValidationError:
            return None
