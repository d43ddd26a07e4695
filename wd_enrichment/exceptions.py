"""
Exception hierarchy for the enrichment service.

This module defines the errors raised while ingesting webhooks, queuing tasks and
talking to the enrichment API.
"""

from contextlib import contextmanager

import httpx


class EnrichmentError(Exception):
    """Base class for all exceptions raised by the enrichment service."""

    pass


class WebhookAuthError(EnrichmentError):
    """The webhook request carried a missing or invalid bearer token."""

    pass


class WebhookValidationError(EnrichmentError):
    """The webhook request could not be turned into a known event."""

    def __init__(self, message: str, status_code: int = 400) -> None:
        """
        Initialize WebhookValidationError.

        :param message: Error message to display.
        :param status_code: HTTP status code the webhook caller should receive.
        """
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class TaskQueueFullError(EnrichmentError):
    """Raised when a task is pushed onto a bounded queue that is at capacity."""

    pass


class TaskQueueClosedError(EnrichmentError):
    """Raised when a task is pushed onto a queue that has been closed."""

    pass


class APIError(EnrichmentError):
    """Base class for errors returned while talking to the enrichment API."""

    pass


class APINetworkError(APIError):
    """Network-related error when talking to the enrichment API."""

    def __init__(self, message: str) -> None:
        """
        Initialize APINetworkError.

        :param message: Error message to display.
        """
        self.message = message
        super().__init__(message)


class APITimeoutError(APINetworkError):
    """Request to the enrichment API timed out."""

    pass


class APIServerError(APIError):
    """Exception raised for all 5xx server errors."""

    def __init__(self, message: str, code: int):
        """
        Initialize APIServerError.

        :param message: Error message.
        :param code: HTTP status code associated with the error.
        """
        self.message = message
        self.code = code
        super().__init__(self.message)


class APIClientError(APIError):
    """Exception raised for all 4xx client errors."""

    def __init__(self, message: str, code: int):
        """
        Initialize APIClientError.

        :param message: Error message.
        :param code: HTTP status code associated with the error.
        """
        self.message = message
        self.code = code
        super().__init__(self.message)


class APIAuthError(APIClientError):
    """The enrichment API rejected the configured API key."""

    pass


class BatchFetchError(EnrichmentError):
    """A batch could not be retrieved from the enrichment API."""

    pass


class BatchParseError(BatchFetchError):
    """A line of a fetched batch is not a valid JSON document."""

    def __init__(self, message: str, line_number: int):
        """
        Initialize BatchParseError.

        :param message: Error message.
        :param line_number: 1-based line number of the offending record.
        """
        self.message = message
        self.line_number = line_number
        super().__init__(self.message)


class BatchSubmitError(EnrichmentError):
    """Enriched documents could not be delivered to the enrichment API."""

    pass


@contextmanager
def handle_httpx_exceptions():
    """Context manager that converts httpx exceptions into API exceptions."""
    try:
        yield
    except httpx.HTTPError as exc:
        if isinstance(exc, httpx.TimeoutException):
            raise APITimeoutError(f"Timeout error: {exc}") from exc

        if isinstance(exc, httpx.HTTPStatusError):
            status = exc.response.status_code
            body_text = exc.response.text

            if status in (401, 403):
                msg = "Unauthorized. Please check the enrichment API key."
                raise APIAuthError(msg, status) from exc
            elif 400 <= status < 500:
                raise APIClientError(f"Client error {status}: {body_text}", status) from exc
            elif 500 <= status < 600:
                raise APIServerError(f"Server error {status}: {body_text}", status) from exc
            raise APIError(f"Unexpected HTTP status {status}: {body_text}") from exc

        # NetworkError, ProtocolError and friends
        if isinstance(exc, httpx.RequestError):
            raise APINetworkError(f"Network error: {exc}") from exc

        raise APIError(f"Unexpected error: {exc}") from exc
