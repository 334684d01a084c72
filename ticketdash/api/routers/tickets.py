"""Tickets router."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from ticketdash.api.deps import get_sync_service
from ticketdash.api.schemas.ticket import TicketItem
from ticketdash.services.sync_service import SyncService

router = APIRouter()


@router.get("", response_model=list[TicketItem])
async def list_tickets(
    status: str | None = Query(None),
    priority: str | None = Query(None),
    category: str | None = Query(None),
    svc: SyncService = Depends(get_sync_service),
) -> list[TicketItem]:
    tickets = await svc.get_tickets(status=status, priority=priority, category=category)
    return [TicketItem.model_validate(t) for t in tickets]
