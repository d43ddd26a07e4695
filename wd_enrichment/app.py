"""
HTTP surface of the enrichment service.

The application exposes ``POST /webhook`` and owns the components shared by the
webhook handler and the enrichment worker: one task queue, one batch client and one
worker thread, started and stopped with the application.
"""

# Python imports
import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

# 3rd party imports
import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

# Local imports
from wd_enrichment.auth import TokenValidator
from wd_enrichment.clients import BatchClient
from wd_enrichment.config import EnrichmentSettings
from wd_enrichment.gate import IngestionGate
from wd_enrichment.task_queue import TaskQueue
from wd_enrichment.worker import EnrichmentWorker

logger = logging.getLogger(__name__)


def create_app(
    settings: EnrichmentSettings | None = None,
    *,
    httpx_client: httpx.Client | None = None,
) -> FastAPI:
    """
    Create the FastAPI application.

    :param settings: the service settings. Read from the environment if not given.
    :param httpx_client: the httpx client the batch client should use. If not
        provided, the batch client creates its own.

    :return: the application; components are available on ``app.state``.
    """
    settings = settings or EnrichmentSettings.from_env()

    task_queue = TaskQueue(capacity=settings.queue_capacity)
    validator = TokenValidator.from_base64(settings.webhook_secret)
    gate = IngestionGate(validator, task_queue)
    client = BatchClient(
        api_url=settings.api_url,
        api_key=settings.api_key,
        max_retries=settings.max_retries,
        retry_wait=settings.retry_wait,
        timeout=settings.request_timeout,
        httpx_client=httpx_client,
    )
    worker = EnrichmentWorker(task_queue, client)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(f"WD_API_URL: {settings.api_url}")
        worker.start()
        try:
            yield
        finally:
            stopped = await asyncio.to_thread(
                worker.stop, settings.worker_stop_timeout
            )
            if stopped:
                client.close()
            else:
                # The worker thread still uses the client.
                logger.warning("Leaving the batch client open for the unfinished task")

    app = FastAPI(title="wd-enrichment-webhook", lifespan=lifespan)
    app.state.settings = settings
    app.state.task_queue = task_queue
    app.state.gate = gate
    app.state.client = client
    app.state.worker = worker

    @app.post("/webhook")
    async def webhook(request: Request) -> JSONResponse:
        raw_body = await request.body()
        status_code, body = gate.handle(request.headers.get("Authorization"), raw_body)
        return JSONResponse(status_code=status_code, content=body)

    return app
