"""Sync engines — remote fetch, categorization and sync orchestration."""
