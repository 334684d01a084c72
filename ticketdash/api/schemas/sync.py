"""Sync request/response schemas."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

from ticketdash.engines.categorizer.rules import EMPTY_RULES_PAYLOAD


class SyncRequest(BaseModel):
    jira_url: str = Field(min_length=1)
    email: str = Field(min_length=1)
    category_rules_json: str = EMPTY_RULES_PAYLOAD


class VerifyRequest(BaseModel):
    jira_url: str = Field(min_length=1)
    email: str = Field(min_length=1)


class SyncResultResponse(BaseModel):
    synced: int
    errors: int
    last_sync: str
    trigger: Literal["manual", "background"]


class SyncStatusResponse(BaseModel):
    is_syncing: bool
    last_sync_at: str | None
    last_error: str | None


class VerifyResponse(BaseModel):
    email: str
    connected: bool
