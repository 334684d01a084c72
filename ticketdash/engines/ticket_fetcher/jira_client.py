"""Async Jira Cloud client with token pagination and failure classification."""

from __future__ import annotations

import base64
from datetime import datetime, timezone
from typing import Any

import httpx
import structlog

from ticketdash.engines.ticket_fetcher.models import LABEL_DELIMITER, FetchedTicket

log = structlog.get_logger("ticketdash.engine")

PAGE_SIZE = 100
DEFAULT_RETRY_AFTER = 60  # seconds
MAX_RETRY_AFTER = 300  # seconds

SEARCH_FIELDS = [
    "summary",
    "status",
    "priority",
    "issuetype",
    "assignee",
    "reporter",
    "created",
    "updated",
    "resolutiondate",
    "labels",
    "project",
]

# Jira priority may be unset on some projects; the column is NOT NULL.
NO_PRIORITY = "None"


class FetchError(Exception):
    """Base class for remote fetch failures."""


class UnauthorizedError(FetchError):
    """Raised on HTTP 401; credentials rejected, not retried."""

    def __init__(self) -> None:
        super().__init__("authentication failed (401), check your email and API token")


class RateLimitError(FetchError):
    """Raised on HTTP 429 with the (capped) number of seconds to wait."""

    def __init__(self, retry_after: int) -> None:
        self.retry_after = retry_after
        super().__init__(f"rate limited (429), retry after {retry_after}s")


class ApiError(FetchError):
    """Raised on any other non-2xx status; carries the raw body for diagnostics."""

    def __init__(self, status: int, body: str) -> None:
        self.status = status
        self.body = body
        super().__init__(f"jira returned {status}: {body}")


class ParseError(FetchError):
    """Raised when a 2xx response body is not the expected JSON shape."""


class PaginationError(FetchError):
    """Raised when the remote hands out a continuation token without progress."""


class TransportError(FetchError):
    """Raised when the HTTP request itself fails (DNS, connect, timeout)."""


class JiraClient:
    """Thin async wrapper around the Jira Cloud ``search/jql`` endpoint."""

    def __init__(
        self,
        base_url: str,
        email: str,
        token: str,
        *,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._email = email
        self._search_url = f"{base_url.rstrip('/')}/rest/api/3/search/jql"
        self._headers = {
            "Authorization": self.create_auth_header(email, token),
            "Accept": "application/json",
            "Content-Type": "application/json",
        }
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    # ── lifecycle ──────────────────────────────────────────────────────────

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> JiraClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # ── public ─────────────────────────────────────────────────────────────

    async def fetch_tickets(self, since: str | None = None) -> list[FetchedTicket]:
        """Return every issue assigned to the authenticated user.

        With *since* (an ISO-8601 timestamp) only issues updated at or after
        it are requested, oldest update first; without it the full history is
        requested, newest first.

        Follows ``nextPageToken`` until a page omits it. A non-final page
        with no issues raises :class:`PaginationError`.
        """
        jql = build_jql(since)
        tickets: list[FetchedTicket] = []
        next_page_token: str | None = None
        page = 0

        while True:
            data = await self._search(jql, next_page_token)
            issues = data.get("issues") or []
            tickets.extend(convert_issue(issue) for issue in issues)
            next_page_token = data.get("nextPageToken")
            page += 1
            log.debug(
                "jira.page_fetched",
                page=page,
                issues=len(issues),
                has_more=next_page_token is not None,
            )

            if not next_page_token:
                break
            if not issues:
                raise PaginationError(
                    f"page {page} returned no issues but a continuation token"
                )

        log.info("jira.fetch_complete", tickets=len(tickets), pages=page, since=since)
        return tickets

    async def verify_connection(self) -> dict[str, Any]:
        """Fetch one backfill page to prove the credentials work."""
        await self._search(build_jql(None), None)
        return {"email": self._email, "connected": True}

    # ── internal ───────────────────────────────────────────────────────────

    async def _search(self, jql: str, next_page_token: str | None) -> dict[str, Any]:
        body: dict[str, Any] = {
            "jql": jql,
            "maxResults": PAGE_SIZE,
            "fields": SEARCH_FIELDS,
        }
        if next_page_token:
            body["nextPageToken"] = next_page_token

        try:
            response = await self._client.post(self._search_url, json=body, headers=self._headers)
        except httpx.HTTPError as exc:
            raise TransportError(f"request to jira failed: {exc}") from exc

        status = response.status_code
        if response.is_success:
            try:
                data = response.json()
            except ValueError as exc:
                raise ParseError(f"failed to parse jira response: {exc}") from exc
            if not isinstance(data, dict):
                raise ParseError("failed to parse jira response: expected a JSON object")
            return data
        if status == 401:
            raise UnauthorizedError()
        if status == 429:
            retry_after = self._get_retry_after(response)
            log.warning("jira.rate_limited", retry_after=retry_after)
            raise RateLimitError(retry_after)
        raise ApiError(status, response.text)

    @staticmethod
    def create_auth_header(email: str, token: str) -> str:
        encoded = base64.b64encode(f"{email}:{token}".encode()).decode()
        return f"Basic {encoded}"

    @staticmethod
    def _get_retry_after(response: httpx.Response) -> int:
        """Seconds from ``Retry-After``, defaulting to 60 and capped at 300."""
        value = response.headers.get("Retry-After")
        try:
            retry_after = int(value) if value is not None else None
        except ValueError:
            retry_after = None
        if retry_after is None or retry_after < 0:
            log.warning(
                "jira.retry_after_missing",
                header=value,
                default_seconds=DEFAULT_RETRY_AFTER,
            )
            retry_after = DEFAULT_RETRY_AFTER
        return min(retry_after, MAX_RETRY_AFTER)


def build_jql(since: str | None) -> str:
    """JQL for the current user's issues, incremental when *since* is given."""
    if since:
        return (
            f'assignee = currentUser() AND updated >= "{format_jql_timestamp(since)}" '
            "ORDER BY updated ASC"
        )
    return "assignee = currentUser() ORDER BY created DESC"


def format_jql_timestamp(value: str) -> str:
    """Render an ISO-8601 cursor in the ``yyyy-MM-dd HH:mm`` form JQL accepts."""
    parsed = parse_datetime(value)
    return parsed.astimezone(timezone.utc).strftime("%Y-%m-%d %H:%M")


def parse_datetime(value: str) -> datetime:
    """Parse a Jira/ISO-8601 timestamp into an aware datetime.

    Jira emits ``2025-01-06T16:00:00.000+0000``, which older
    ``fromisoformat`` implementations reject, hence the strptime fallback.
    """
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        parsed = datetime.strptime(value, "%Y-%m-%dT%H:%M:%S.%f%z")
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def convert_issue(issue: dict[str, Any]) -> FetchedTicket:
    """Flatten one search result issue into a :class:`FetchedTicket`.

    Raises :class:`ParseError` when required fields are missing or malformed.
    """
    try:
        fields = issue["fields"]
        resolved = fields.get("resolutiondate")
        priority = fields.get("priority")
        assignee = fields.get("assignee")
        reporter = fields.get("reporter")
        return FetchedTicket(
            jira_key=issue["key"],
            summary=fields["summary"],
            status=fields["status"]["name"],
            priority=priority["name"] if priority else NO_PRIORITY,
            issue_type=fields["issuetype"]["name"],
            assignee=assignee["displayName"] if assignee else None,
            reporter=reporter["displayName"] if reporter else None,
            created_at=parse_datetime(fields["created"]),
            updated_at=parse_datetime(fields["updated"]),
            resolved_at=parse_datetime(resolved) if resolved else None,
            labels=LABEL_DELIMITER.join(fields.get("labels") or []),
            project_key=fields["project"]["key"],
        )
    except (KeyError, TypeError, ValueError) as exc:
        key = issue.get("key") if isinstance(issue, dict) else None
        raise ParseError(f"failed to parse jira issue {key!r}: {exc!r}") from exc
