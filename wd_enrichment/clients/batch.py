"""
Batch client for the enrichment API.

This module provides the BatchClient class which retrieves the documents of a batch
pending enrichment and submits the enriched documents back to the same batch
resource.
"""

# Python imports
import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import Any
from urllib.parse import quote

# 3rd party imports
import httpx
from pydantic import BaseModel
from tenacity import retry, retry_if_exception, stop_after_attempt, wait_fixed

# Local imports
from wd_enrichment.constants import (
    API_VERSION_PATH,
    DEFAULT_MAX_RETRIES,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_RETRY_WAIT,
)
from wd_enrichment.exceptions import (
    APIError,
    BatchFetchError,
    BatchSubmitError,
    handle_httpx_exceptions,
)
from wd_enrichment.models import Document, EnrichedDocument, SubmitBatchInput
from wd_enrichment.utils import is_retryable_api_exception, parse_ndjson_documents


@dataclass
class _SendRequestResult:
    """
    Result of an HTTP request sent to the enrichment API.

    Attributes:
        text: The response body decoded as text.

    """

    text: str


logger = logging.getLogger(__name__)


API_DEFINITIONS = {
    "get_batch": (
        "GET",
        "projects/{project_id}/collections/{collection_id}/batches/{batch_id}",
    ),
    "post_batch": (
        "POST",
        "projects/{project_id}/collections/{collection_id}/batches/{batch_id}",
    ),
}


class BatchClient:
    """
    Client for the batch resource of the enrichment API.

    Fetching may be retried on transient failures when ``max_retries`` is greater
    than one. Submitting is always attempted exactly once so that enriched documents
    are delivered at most once.
    """

    def __init__(
        self,
        *,
        api_url: str,
        api_key: str,
        max_retries: int = DEFAULT_MAX_RETRIES,
        retry_wait: timedelta = DEFAULT_RETRY_WAIT,
        timeout: timedelta | None = None,
        httpx_client: httpx.Client | None = None,
    ):
        """
        Initialize the batch client.

        :param api_url: The base URL of the enrichment API.
        :param api_key: The API key sent as bearer token with every request.
        :param max_retries: Maximum number of attempts when fetching a batch.
        :param retry_wait: Time to wait between fetch attempts.
        :param timeout: Request timeout duration. If not specified, it defaults to
            DEFAULT_REQUEST_TIMEOUT.
        :param httpx_client: The httpx client to use for making requests. If not
            provided, a new httpx client is created and owned by this client.

        :raises: ValueError: If max_retries is lower than one or retry_wait is
            negative.
        """
        self.api_url = api_url if api_url.endswith("/") else f"{api_url}/"
        self.api_key = api_key
        self.timeout = timeout if timeout is not None else DEFAULT_REQUEST_TIMEOUT

        if max_retries < 1:
            raise ValueError("max_retries must be at least 1.")
        if retry_wait.total_seconds() < 0:
            raise ValueError("retry_wait must be non-negative.")
        self.max_retries = max_retries
        self.retry_wait = retry_wait

        self._own_httpx_client = httpx_client is None
        self.httpx_client = httpx_client or httpx.Client(
            timeout=self.timeout.total_seconds()
        )
        self._closed = False

    def __enter__(self) -> "BatchClient":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()

    def close(self):
        """Close the HTTP client connection if this client created it."""
        if self._closed:
            return
        if self._own_httpx_client:
            self.httpx_client.close()
        self._closed = True

    def fetch_batch(
        self,
        *,
        project_id: str,
        collection_id: str,
        batch_id: str,
        max_retries: int | None = None,
        timeout: timedelta | None = None,
    ) -> list[Document]:
        """
        Fetch the documents of a batch.

        The batch is returned as newline-delimited JSON; every non-empty line is one
        document.

        :param project_id: the project owning the batch.
        :param collection_id: the collection owning the batch.
        :param batch_id: the batch to fetch.
        :param max_retries: Maximum number of attempts. If not provided, the default
            from the client will be used.
        :param timeout: Request timeout duration. If not provided, the default from the
            client will be used.

        :return: the documents of the batch, in order.

        :raises BatchFetchError: if the request fails or the API answers with a
            non-2xx status.
        :raises BatchParseError: if any line of the body is not a valid document.
        """
        try:
            result = self._send_request(
                api_name="get_batch",
                max_retries=max_retries,
                timeout=timeout,
                project_id=project_id,
                collection_id=collection_id,
                batch_id=batch_id,
            )
        except APIError as e:
            raise BatchFetchError(f"Failed to fetch batch {batch_id}: {e}") from e

        documents = parse_ndjson_documents(result.text)
        logger.info(f"Fetched {len(documents)} documents for batch {batch_id}")
        return documents

    def submit_batch(
        self,
        *,
        project_id: str,
        collection_id: str,
        batch_id: str,
        version: str,
        documents: list[EnrichedDocument],
        timeout: timedelta | None = None,
    ):
        """
        Submit enriched documents to a batch.

        :param project_id: the project owning the batch.
        :param collection_id: the collection owning the batch.
        :param batch_id: the batch the documents belong to.
        :param version: the API version the batch was created with.
        :param documents: the enriched documents, in order.
        :param timeout: Request timeout duration. If not provided, the default from the
            client will be used.

        :raises BatchSubmitError: if the request fails or the API answers with a
            non-2xx status.
        """
        data = SubmitBatchInput(version=version, documents=documents)
        try:
            self._send_request(
                api_name="post_batch",
                data=data,
                max_retries=1,
                timeout=timeout,
                project_id=project_id,
                collection_id=collection_id,
                batch_id=batch_id,
            )
        except APIError as e:
            raise BatchSubmitError(f"Failed to submit batch {batch_id}: {e}") from e
        logger.info(f"Submitted {len(documents)} enriched documents for batch {batch_id}")

    def _send_http_request(
        self,
        http_method: str,
        target_path: str,
        data: BaseModel | None = None,
        timeout: timedelta | None = None,
    ) -> _SendRequestResult:
        timeout = timeout or self.timeout
        headers = {"Authorization": f"Bearer {self.api_key}"}

        if http_method == "GET":
            headers["Accept"] = "application/json"
            response = self.httpx_client.get(
                target_path,
                headers=headers,
                timeout=timeout.total_seconds(),
            )
        elif http_method == "POST":
            # httpx sets Content-Type: application/json for json= bodies
            response = self.httpx_client.post(
                target_path,
                json=data.model_dump(mode="json") if data else None,
                headers=headers,
                timeout=timeout.total_seconds(),
            )
        else:
            raise RuntimeError(f"Unsupported HTTP method: {http_method}")

        response.raise_for_status()
        return _SendRequestResult(text=response.text)

    def _send_request(
        self,
        api_name: str,
        data: BaseModel | None = None,
        max_retries: int | None = None,
        timeout: timedelta | None = None,
        **url_params: str,
    ) -> _SendRequestResult:
        """
        Send a request to the enrichment API.

        :param api_name: the name of the API in API_DEFINITIONS
        :param data: the data to send
        :param max_retries: Maximum number of attempts. If not provided, the default
            from the client will be used.
        :param timeout: Request timeout duration. If not provided, the default from the
            client will be used.
        :param url_params: values of the placeholders in the API path. They are
            percent-encoded, so "/", "?" and "#" stay inside their path segment.

        :return: the body of the response.

        :raises APIError: the typed error of the last failed attempt.
        """
        max_retries = max_retries or self.max_retries
        timeout = timeout or self.timeout

        if api_name not in API_DEFINITIONS:
            raise APIError(f"API name '{api_name}' is not defined in the API definitions.")
        http_method, api_path = API_DEFINITIONS[api_name]

        target_path = f"{self.api_url}{API_VERSION_PATH}/{api_path}".format(
            **{name: quote(value, safe="") for name, value in url_params.items()}
        )

        @retry(
            stop=stop_after_attempt(max_retries),
            wait=wait_fixed(self.retry_wait),
            reraise=True,  # re-raise last exception instead of wrapping in RetryError
            retry=retry_if_exception(is_retryable_api_exception),
        )
        def _send_request_with_retry() -> _SendRequestResult:
            try:
                with handle_httpx_exceptions():
                    return self._send_http_request(
                        http_method=http_method,
                        target_path=target_path,
                        data=data,
                        timeout=timeout,
                    )
            except APIError as e:
                logger.warning(
                    f"Failed to send request to {api_name} {target_path}: "
                    f"{type(e).__name__} {e}"
                )
                raise

        return _send_request_with_retry()
