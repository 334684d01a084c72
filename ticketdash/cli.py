"""CLI entry point: ticketdash.

Subcommands:
    ticketdash sync                      # Pull tickets from Jira into the local store
    ticketdash verify                    # Check the Jira credentials
    ticketdash tickets --status Done     # List stored tickets
    ticketdash dashboard                 # Print dashboard aggregations
    ticketdash serve --port 8000         # Run the HTTP API

Connection settings come from TICKETDASH_* environment variables and can be
overridden per invocation.
"""

from __future__ import annotations

import asyncio
import functools
import json
import sys
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import click

from ticketdash.core.config import Settings
from ticketdash.core.logging import setup_logging
from ticketdash.dao.ticket_dao import TicketDAO
from ticketdash.engines.sync.events import SYNC_PROGRESS, EventBus
from ticketdash.engines.sync.orchestrator import SyncGuard, SyncOrchestrator
from ticketdash.engines.ticket_fetcher.jira_client import FetchError, JiraClient
from ticketdash.services import ServiceError
from ticketdash.services.aggregation_service import AggregationService
from ticketdash.services.sync_service import SyncService
from ticketdash.store import TicketStore

T = TypeVar("T")


def _run(
    settings: Settings,
    fn: Callable[[SyncService], Awaitable[T]],
    bus: EventBus | None = None,
) -> T:
    """Open the store, run *fn* against a fresh service, exit 1 on failure."""

    async def _main() -> T:
        client_factory = functools.partial(JiraClient, timeout=settings.http_timeout)
        async with TicketStore(settings.db_path) as store:
            orchestrator = SyncOrchestrator(store, SyncGuard(), bus or EventBus(), client_factory)
            service = SyncService(store, orchestrator, AggregationService(TicketDAO()), client_factory)
            return await fn(service)

    try:
        return asyncio.run(_main())
    except (ServiceError, FetchError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def _print_progress(name: str, payload: Any) -> None:
    if name != SYNC_PROGRESS:
        return
    total = payload["total"]
    suffix = f" {payload['current']}/{total}" if total is not None else ""
    click.echo(f"  {payload['phase']}{suffix}", err=True)


def _jira_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    fn = click.option("--token", default=None, help="Jira API token (TICKETDASH_JIRA_TOKEN)")(fn)
    fn = click.option("--email", default=None, help="Jira account email (TICKETDASH_JIRA_EMAIL)")(fn)
    fn = click.option("--jira-url", default=None, help="Jira base URL (TICKETDASH_JIRA_URL)")(fn)
    return fn


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """ticketdash: Jira ticket sync and dashboard aggregation."""
    setup_logging("DEBUG" if verbose else None)
    ctx.obj = Settings.from_env()


@main.command("sync")
@_jira_options
@click.option(
    "--rules",
    default=None,
    help="Category rules: inline JSON or a path to a JSON file (TICKETDASH_CATEGORY_RULES)",
)
@click.pass_obj
def sync(
    settings: Settings,
    jira_url: str | None,
    email: str | None,
    token: str | None,
    rules: str | None,
) -> None:
    """Fetch new and updated tickets, categorize them, and store them."""
    try:
        params = settings.sync_params(
            jira_url=jira_url, email=email, token=token, category_rules=rules
        )
    except ServiceError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    bus = EventBus()
    bus.subscribe(_print_progress)
    click.echo(f"Syncing from {params.jira_url} ...")
    result = _run(settings, lambda svc: svc.trigger_sync(params), bus)
    click.echo(f"Synced {result.synced} tickets (last sync: {result.last_sync})")


@main.command("verify")
@_jira_options
@click.pass_obj
def verify(
    settings: Settings,
    jira_url: str | None,
    email: str | None,
    token: str | None,
) -> None:
    """Check that the Jira credentials are accepted."""
    url = jira_url or settings.jira_url
    account = email or settings.jira_email
    secret = token or settings.jira_token
    result = _run(settings, lambda svc: svc.verify_connection(url, account, secret))
    click.echo(f"Connected to {url} as {result['email']}")


@main.command("tickets")
@click.option("--status", default=None, help="Filter by status")
@click.option("--priority", default=None, help="Filter by priority")
@click.option("--category", default=None, help="Filter by category ('Uncategorized' for none)")
@click.option("--json", "as_json", is_flag=True, help="Emit JSON instead of a table")
@click.pass_obj
def tickets(
    settings: Settings,
    status: str | None,
    priority: str | None,
    category: str | None,
    as_json: bool,
) -> None:
    """List stored tickets, most recently created first."""
    rows = _run(
        settings,
        lambda svc: svc.get_tickets(status=status, priority=priority, category=category),
    )
    if as_json:
        payload = [
            {
                "jira_key": t.jira_key,
                "summary": t.summary,
                "status": t.status,
                "priority": t.priority,
                "category": t.category,
                "created_at": t.created_at.isoformat(),
                "resolved_at": t.resolved_at.isoformat() if t.resolved_at else None,
            }
            for t in rows
        ]
        click.echo(json.dumps(payload, indent=2))
        return

    if not rows:
        click.echo("No tickets.")
        return
    for t in rows:
        category_label = t.category or "-"
        click.echo(f"{t.jira_key:<12} {t.status:<14} {t.priority:<10} {category_label:<16} {t.summary}")


@main.command("dashboard")
@click.option("--json", "as_json", is_flag=True, help="Emit JSON instead of a summary")
@click.pass_obj
def dashboard(settings: Settings, as_json: bool) -> None:
    """Print the dashboard aggregations."""
    result = _run(settings, lambda svc: svc.get_dashboard())
    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        return

    s = result.summary
    click.echo(f"Total: {s.total_tickets}  Open: {s.open_tickets}  Resolved: {s.resolved_tickets}")
    click.echo(
        f"Resolution: avg {s.avg_resolution_hours:.1f}h, median {s.median_resolution_hours:.1f}h"
    )
    for title, entries in (
        ("By status", result.tickets_by_status),
        ("By priority", result.tickets_by_priority),
        ("By category", result.tickets_by_category),
    ):
        click.echo(f"\n{title}:")
        for entry in entries:
            click.echo(f"  {entry.name}: {entry.count}")
    click.echo("\nResolution time by priority:")
    for avg in result.resolution_time_by_priority:
        click.echo(
            f"  {avg.name}: avg {avg.avg_hours:.1f}h, median {avg.median_hours:.1f}h "
            f"({avg.count} resolved)"
        )
    click.echo("\nMonthly created/resolved:")
    for point in result.tickets_over_time:
        click.echo(f"  {point.date}: {point.created}/{point.resolved}")


@main.command("serve")
@click.option("--host", default="127.0.0.1", help="Bind address")
@click.option("--port", default=8000, type=int, help="Bind port")
def serve(host: str, port: int) -> None:
    """Run the HTTP API (and the background scheduler, if enabled)."""
    import uvicorn

    uvicorn.run("ticketdash.api:create_app", factory=True, host=host, port=port)
