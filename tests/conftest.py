from datetime import timedelta

import pytest

from tests.utils import API_URL, SECRET
from wd_enrichment.auth import TokenValidator
from wd_enrichment.clients import BatchClient
from wd_enrichment.gate import IngestionGate
from wd_enrichment.task_queue import TaskQueue


@pytest.fixture
def validator() -> TokenValidator:
    return TokenValidator(SECRET)


@pytest.fixture
def task_queue() -> TaskQueue:
    return TaskQueue()


@pytest.fixture
def gate(validator: TokenValidator, task_queue: TaskQueue) -> IngestionGate:
    return IngestionGate(validator, task_queue)


@pytest.fixture
def client():
    with BatchClient(
        api_url=API_URL, api_key="api-key", retry_wait=timedelta(0)
    ) as batch_client:
        yield batch_client
