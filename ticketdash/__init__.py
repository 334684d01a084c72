"""ticketdash — Jira ticket sync, categorization and dashboard aggregation."""

__version__ = "0.1.0"
