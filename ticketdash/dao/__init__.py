"""Data-access objects — synchronous SQLAlchemy over the local SQLite store."""
