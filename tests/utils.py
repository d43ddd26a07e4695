import base64
import json
import time
from typing import Any

import jwt

from wd_enrichment.models import Task

SECRET = b"webhook-signing-secret-" * 3
SECRET_B64 = base64.b64encode(SECRET).decode("ascii")

API_URL = "http://test.com"
BATCH_URL = f"{API_URL}/v2/projects/p1/collections/c1/batches/b1"


def make_token(
    claims: dict[str, Any] | None = None,
    secret: bytes = SECRET,
    algorithm: str = "HS256",
) -> str:
    payload = {"sub": "discovery", "iat": int(time.time())}
    payload.update(claims or {})
    return jwt.encode(payload, secret, algorithm=algorithm)


def bearer(token: str | None = None) -> str:
    return f"Bearer {token if token is not None else make_token()}"


def make_task(batch_id: str = "b1") -> Task:
    return Task(
        version="2023-03-31",
        project_id="p1",
        collection_id="c1",
        batch_id=batch_id,
    )


def batch_created_body(data: dict[str, Any] | None = None, **extra: Any) -> str:
    payload: dict[str, Any] = {
        "event": "enrichment.batch.created",
        "version": "2023-03-31",
        "data": {"project_id": "p1", "collection_id": "c1", "batch_id": "b1"}
        if data is None
        else data,
    }
    payload.update(extra)
    return json.dumps(payload)


def to_ndjson(*documents: dict[str, Any]) -> str:
    return "\n".join(json.dumps(doc) for doc in documents) + "\n"
