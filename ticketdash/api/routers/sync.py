"""Sync router — manual trigger, status, and connection check."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ticketdash.api.deps import get_jira_token, get_sync_service
from ticketdash.api.schemas.sync import (
    SyncRequest,
    SyncResultResponse,
    SyncStatusResponse,
    VerifyRequest,
    VerifyResponse,
)
from ticketdash.engines.sync.models import SyncParams
from ticketdash.services.sync_service import SyncService

router = APIRouter()


@router.post("", response_model=SyncResultResponse)
async def trigger_sync(
    body: SyncRequest,
    token: str = Depends(get_jira_token),
    svc: SyncService = Depends(get_sync_service),
) -> SyncResultResponse:
    result = await svc.trigger_sync(
        SyncParams(
            jira_url=body.jira_url,
            email=body.email,
            token=token,
            category_rules_json=body.category_rules_json,
        )
    )
    return SyncResultResponse(**result.to_dict())


@router.get("/status", response_model=SyncStatusResponse)
async def get_sync_status(
    svc: SyncService = Depends(get_sync_service),
) -> SyncStatusResponse:
    status = await svc.get_sync_status()
    return SyncStatusResponse(
        is_syncing=status.is_syncing,
        last_sync_at=status.last_sync_at,
        last_error=status.last_error,
    )


@router.post("/verify", response_model=VerifyResponse)
async def verify_connection(
    body: VerifyRequest,
    token: str = Depends(get_jira_token),
    svc: SyncService = Depends(get_sync_service),
) -> VerifyResponse:
    result = await svc.verify_connection(body.jira_url, body.email, token)
    return VerifyResponse(**result)
