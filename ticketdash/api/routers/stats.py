"""Stats router — dashboard aggregates."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from ticketdash.api.deps import get_sync_service
from ticketdash.api.schemas.stats import DashboardResponse
from ticketdash.services.sync_service import SyncService

router = APIRouter()


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    svc: SyncService = Depends(get_sync_service),
) -> DashboardResponse:
    result = await svc.get_dashboard()
    return DashboardResponse(**result.to_dict())
