from __future__ import annotations

import uuid
from dataclasses import dataclass


@dataclass(frozen=True)
class CommitKeys:
    attempt_id: str
    idempotency_key: str


def new_commit_keys() -> CommitKeys:
    """Fresh keys for one commit attempt; a retried sale never reuses them."""
    return CommitKeys(attempt_id=str(uuid.uuid4()), idempotency_key=str(uuid.uuid4()))


def idempotency_headers(keys: CommitKeys) -> dict[str, str]:
    return {"Idempotency-Key": keys.idempotency_key}
