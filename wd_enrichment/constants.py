"""
Constants and default values used throughout the enrichment service.

This module defines configuration defaults for timeouts, retries, queue capacity and
webhook authentication.
"""

from datetime import timedelta

DEFAULT_REQUEST_TIMEOUT = timedelta(seconds=30)
DEFAULT_RETRY_WAIT = timedelta(seconds=2)
# Number of fetch attempts; one attempt means no retry.
DEFAULT_MAX_RETRIES = 1

# 0 means the task queue is unbounded.
DEFAULT_QUEUE_CAPACITY = 0
DEFAULT_WORKER_STOP_TIMEOUT = timedelta(seconds=10)

BEARER_PREFIX = "Bearer "
DEFAULT_JWT_ALGORITHMS = ["HS256", "HS384", "HS512"]

API_VERSION_PATH = "v2"
DEFAULT_ANNOTATION_CONFIDENCE = 1.0

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080
DEFAULT_LOG_LEVEL = "INFO"
