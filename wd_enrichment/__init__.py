"""Webhook-driven batch enrichment for the Watson Discovery enrichment API."""

# Python imports
from importlib import metadata

# Local imports
from wd_enrichment.auth import TokenValidator
from wd_enrichment.clients import BatchClient
from wd_enrichment.enrichment import enrich, enrich_documents
from wd_enrichment.gate import GateResponse, IngestionGate
from wd_enrichment.task_queue import TaskQueue
from wd_enrichment.worker import EnrichmentWorker, WorkerState

__version__ = metadata.version("wd-enrichment-webhook")

__all__ = [
    "BatchClient",
    "EnrichmentWorker",
    "GateResponse",
    "IngestionGate",
    "TaskQueue",
    "TokenValidator",
    "WorkerState",
    "enrich",
    "enrich_documents",
]
