"""Configuration of the enrichment service, read from the environment."""

# Python imports
import os
from datetime import timedelta

# 3rd party imports
import dotenv
from pydantic import BaseModel, Field

# Local imports
from wd_enrichment.constants import (
    DEFAULT_HOST,
    DEFAULT_LOG_LEVEL,
    DEFAULT_MAX_RETRIES,
    DEFAULT_PORT,
    DEFAULT_QUEUE_CAPACITY,
    DEFAULT_REQUEST_TIMEOUT,
    DEFAULT_RETRY_WAIT,
    DEFAULT_WORKER_STOP_TIMEOUT,
)


class EnrichmentSettings(BaseModel):
    """Settings of the enrichment service."""

    api_url: str = Field(description="Base URL of the enrichment API.")
    api_key: str = Field(description="API key used as bearer token towards the API.")
    webhook_secret: str = Field(
        description="Base64 encoded HMAC secret used to sign webhook tokens."
    )
    queue_capacity: int = Field(default=DEFAULT_QUEUE_CAPACITY, ge=0)
    request_timeout: timedelta = DEFAULT_REQUEST_TIMEOUT
    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=1)
    retry_wait: timedelta = DEFAULT_RETRY_WAIT
    log_level: str = DEFAULT_LOG_LEVEL
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT

    @property
    def worker_stop_timeout(self) -> timedelta:
        """
        Time given to the worker to finish its current task on shutdown.

        Covers every fetch attempt with the waits between them, one submit, and a
        margin of DEFAULT_WORKER_STOP_TIMEOUT.
        """
        return (
            self.request_timeout * (self.max_retries + 1)
            + self.retry_wait * (self.max_retries - 1)
            + DEFAULT_WORKER_STOP_TIMEOUT
        )

    @classmethod
    def from_env(cls, load_dotenv: bool = True) -> "EnrichmentSettings":
        """
        Read the settings from environment variables.

        Values from a ``.env`` file in the working directory are loaded first, without
        overriding variables already set.

        :param load_dotenv: whether to load the ``.env`` file.

        :raises ValueError: if a required variable is missing.
        """
        if load_dotenv:
            dotenv.load_dotenv()  # type: ignore

        def required(name: str) -> str:
            value = os.getenv(name)
            if not value:
                raise ValueError(f"{name} environment variable must be set.")
            return value

        return cls(
            api_url=required("WD_API_URL"),
            api_key=required("WD_API_KEY"),
            webhook_secret=required("WEBHOOK_SECRET"),
            queue_capacity=int(
                os.getenv("TASK_QUEUE_CAPACITY", str(DEFAULT_QUEUE_CAPACITY))
            ),
            request_timeout=timedelta(
                seconds=float(
                    os.getenv(
                        "WD_API_TIMEOUT_SECONDS",
                        str(DEFAULT_REQUEST_TIMEOUT.total_seconds()),
                    )
                )
            ),
            max_retries=int(os.getenv("WD_API_MAX_RETRIES", str(DEFAULT_MAX_RETRIES))),
            retry_wait=timedelta(
                seconds=float(
                    os.getenv(
                        "WD_API_RETRY_WAIT_SECONDS",
                        str(DEFAULT_RETRY_WAIT.total_seconds()),
                    )
                )
            ),
            log_level=os.getenv("LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
            host=os.getenv("HOST", DEFAULT_HOST),
            port=int(os.getenv("PORT", str(DEFAULT_PORT))),
        )
