"""Sync Schemas — synchronizer status as reported by /api/v1/sync/status."""

from pydantic import BaseModel


class LastEventOut(BaseModel):
    event_name: str
    tx_hash: str | None = None
    block_number: int | None = None
    outcome: str
    processed_at: str


class DeadLetterOut(BaseModel):
    event_name: str
    tx_hash: str | None = None
    block_number: int | None = None
    log_index: int | None = None
    error_code: str
    reason: str
    failed_at: str


class SyncStatusResponse(BaseModel):
    enabled: bool
    chain_ready: bool
    state: str
    queue_depth: int = 0
    received: int = 0
    processed: int = 0
    created: int = 0
    duplicates: int = 0
    ignored: int = 0
    skipped: int = 0
    last_event: LastEventOut | None = None
    dead_letters: list[DeadLetterOut] = []
