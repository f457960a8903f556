"""Sync Status — read-only view of the event synchronizer."""

from fastapi import APIRouter, Depends

from craftsync.api.dependencies import get_chain, get_synchronizer
from craftsync.core.domain_types import ListenerState
from craftsync.schemas.sync import SyncStatusResponse

router = APIRouter(prefix="/api/v1/sync", tags=["sync"])


@router.get("/status", response_model=SyncStatusResponse)
async def sync_status(
    chain=Depends(get_chain),
    synchronizer=Depends(get_synchronizer),
):
    chain_ready = chain is not None and chain.is_ready()
    if synchronizer is None:
        return SyncStatusResponse(
            enabled=False, chain_ready=chain_ready,
            state=ListenerState.STOPPED.value,
        )
    return SyncStatusResponse(
        enabled=True, chain_ready=chain_ready, **synchronizer.status(),
    )
