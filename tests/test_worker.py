import json
import threading
import time
from datetime import timedelta
from typing import Any

import httpx
import pytest
import respx
from respx import MockRouter

from tests.utils import API_URL, BATCH_URL, make_task, to_ndjson
from wd_enrichment.clients import BatchClient
from wd_enrichment.models import Document, EnrichedDocument
from wd_enrichment.task_queue import TaskQueue
from wd_enrichment.worker import EnrichmentWorker, WorkerState


def wait_for(condition, timeout: float = 5.0):
    deadline = time.monotonic() + timeout
    while not condition():
        if time.monotonic() > deadline:
            raise AssertionError("condition not met in time")
        time.sleep(0.01)


@pytest.fixture
def worker(task_queue: TaskQueue, client: BatchClient):
    worker = EnrichmentWorker(task_queue, client)
    yield worker
    worker.stop(timeout=timedelta(seconds=2))


@respx.mock
def test_process_round_trip(worker: EnrichmentWorker, respx_mock: MockRouter):
    respx_mock.get(BATCH_URL).mock(
        return_value=httpx.Response(
            200,
            text=to_ndjson(
                {
                    "document_id": "d1",
                    "title": "one",
                    "features": [{"properties": {"field_name": "NY"}}],
                },
                {
                    "document_id": "d2",
                    "title": "two",
                    "features": [
                        {"properties": {"field_name": "ZZ"}},
                        {"properties": {"field_name": "CA"}},
                    ],
                },
            ),
        )
    )
    submit_route = respx_mock.post(BATCH_URL).mock(return_value=httpx.Response(200))

    assert worker.process(make_task()) is True

    payload = json.loads(submit_route.calls.last.request.content)
    assert payload["version"] == "2023-03-31"
    documents = payload["documents"]
    assert [doc["document_id"] for doc in documents] == ["d1", "d2"]
    assert [doc["title"] for doc in documents] == ["one", "two"]
    assert [
        [f["properties"]["entity_type"] for f in doc["features"]] for doc in documents
    ] == [["New York"], ["ZZ", "California"]]
    for doc in documents:
        assert all(f["type"] == "annotation" for f in doc["features"])
        assert all("field_name" not in f["properties"] for f in doc["features"])
    assert worker.state == WorkerState.IDLE
    assert worker.stats.succeeded == 1


@respx.mock
def test_process_leaves_out_documents_without_id(
    worker: EnrichmentWorker, respx_mock: MockRouter
):
    respx_mock.get(BATCH_URL).mock(
        return_value=httpx.Response(
            200, text=to_ndjson({"document_id": "d1"}, {"title": "orphan"})
        )
    )
    submit_route = respx_mock.post(BATCH_URL).mock(return_value=httpx.Response(200))

    worker.process(make_task())

    payload = json.loads(submit_route.calls.last.request.content)
    assert payload["documents"] == [{"document_id": "d1", "features": []}]


@respx.mock
def test_fetch_failure_skips_submit(worker: EnrichmentWorker, respx_mock: MockRouter):
    respx_mock.get(BATCH_URL).mock(return_value=httpx.Response(500))
    submit_route = respx_mock.post(BATCH_URL).mock(return_value=httpx.Response(200))

    assert worker.process(make_task()) is False

    assert not submit_route.called
    assert worker.state == WorkerState.IDLE
    assert worker.stats.failed == 1


@respx.mock
def test_parse_failure_skips_submit(worker: EnrichmentWorker, respx_mock: MockRouter):
    respx_mock.get(BATCH_URL).mock(
        return_value=httpx.Response(200, text='{"document_id": "d1"}\nnot json\n')
    )
    submit_route = respx_mock.post(BATCH_URL).mock(return_value=httpx.Response(200))

    assert worker.process(make_task()) is False
    assert not submit_route.called


@respx.mock
def test_submit_failure_is_contained(worker: EnrichmentWorker, respx_mock: MockRouter):
    respx_mock.get(BATCH_URL).mock(
        return_value=httpx.Response(200, text=to_ndjson({"document_id": "d1"}))
    )
    submit_route = respx_mock.post(BATCH_URL).mock(return_value=httpx.Response(503))

    assert worker.process(make_task()) is False

    assert submit_route.call_count == 1
    assert worker.stats.failed == 1


def test_state_transitions(task_queue: TaskQueue):
    states: list[WorkerState] = []

    class RecordingClient:
        def fetch_batch(self, **kwargs: Any) -> list[Document]:
            states.append(worker.state)
            return [Document(document_id="d1")]

        def submit_batch(self, **kwargs: Any):
            states.append(worker.state)

    def enricher(documents) -> list[EnrichedDocument]:
        states.append(worker.state)
        return [EnrichedDocument(document_id=doc.document_id) for doc in documents]

    worker = EnrichmentWorker(task_queue, RecordingClient(), enricher=enricher)  # type: ignore[arg-type]

    assert worker.state == WorkerState.IDLE
    worker.process(make_task())

    assert states == [
        WorkerState.FETCHING,
        WorkerState.TRANSFORMING,
        WorkerState.SUBMITTING,
    ]
    assert worker.state == WorkerState.IDLE


@respx.mock
def test_run_processes_tasks_in_order(
    worker: EnrichmentWorker, task_queue: TaskQueue, respx_mock: MockRouter
):
    fetched: list[str] = []

    def fetch_side_effect(request: httpx.Request):
        fetched.append(request.url.path.rsplit("/", 1)[-1])
        return httpx.Response(200, text=to_ndjson({"document_id": "d1"}))

    respx_mock.get(url__regex=rf"{API_URL}/v2/projects/p1/collections/c1/batches/.*").mock(
        side_effect=fetch_side_effect
    )
    respx_mock.post(url__regex=rf"{API_URL}/v2/.*").mock(
        return_value=httpx.Response(200)
    )

    worker.start()
    for batch_id in ["b1", "b2", "b3"]:
        task_queue.put(make_task(batch_id))

    wait_for(lambda: worker.stats.succeeded == 3)
    assert fetched == ["b1", "b2", "b3"]


def test_run_survives_failures(task_queue: TaskQueue):
    calls: list[str] = []

    class FlakyClient:
        def fetch_batch(self, *, batch_id: str, **kwargs: Any) -> list[Document]:
            calls.append(batch_id)
            if batch_id == "b1":
                raise RuntimeError("boom")
            return []

        def submit_batch(self, **kwargs: Any):
            pass

    worker = EnrichmentWorker(task_queue, FlakyClient())  # type: ignore[arg-type]
    worker.start()
    try:
        task_queue.put(make_task("b1"))
        task_queue.put(make_task("b2"))
        wait_for(lambda: worker.stats.succeeded == 1)
    finally:
        worker.stop(timeout=timedelta(seconds=2))

    assert calls == ["b1", "b2"]
    assert worker.stats.failed == 1


def test_processes_one_task_at_a_time(task_queue: TaskQueue):
    active = 0
    max_active = 0
    lock = threading.Lock()

    class SlowClient:
        def fetch_batch(self, **kwargs: Any) -> list[Document]:
            nonlocal active, max_active
            with lock:
                active += 1
                max_active = max(max_active, active)
            time.sleep(0.02)
            with lock:
                active -= 1
            return []

        def submit_batch(self, **kwargs: Any):
            pass

    worker = EnrichmentWorker(task_queue, SlowClient())  # type: ignore[arg-type]
    worker.start()
    try:
        for i in range(5):
            task_queue.put(make_task(f"b{i}"))
        wait_for(lambda: worker.stats.succeeded == 5)
    finally:
        worker.stop(timeout=timedelta(seconds=2))

    assert max_active == 1


def test_stop_wakes_idle_worker(worker: EnrichmentWorker):
    worker.start()
    assert worker.is_running

    assert worker.stop(timeout=timedelta(seconds=2)) is True
    assert not worker.is_running


def test_stop_lets_in_flight_task_finish(task_queue: TaskQueue):
    started = threading.Event()
    release = threading.Event()
    submitted: list[str] = []

    class BlockingClient:
        def fetch_batch(self, **kwargs: Any) -> list[Document]:
            started.set()
            release.wait(timeout=5)
            return []

        def submit_batch(self, *, batch_id: str, **kwargs: Any):
            submitted.append(batch_id)

    worker = EnrichmentWorker(task_queue, BlockingClient())  # type: ignore[arg-type]
    worker.start()
    task_queue.put(make_task("b1"))
    task_queue.put(make_task("b2"))
    assert started.wait(timeout=5)

    stopper = threading.Thread(target=worker.stop)
    stopper.start()
    wait_for(lambda: task_queue.closed)
    release.set()
    stopper.join(timeout=5)

    assert not worker.is_running
    # b1 was in flight and completed; b2 was still queued and is dropped
    assert submitted == ["b1"]


def test_start_twice_rejected(worker: EnrichmentWorker):
    worker.start()
    with pytest.raises(RuntimeError):
        worker.start()
