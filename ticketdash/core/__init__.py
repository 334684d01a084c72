"""Core infrastructure — database base, logging, configuration, schema migrations."""
