"""Runtime settings read from ``TICKETDASH_*`` environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from ticketdash.engines.categorizer.rules import EMPTY_RULES_PAYLOAD
from ticketdash.engines.sync.models import SyncParams
from ticketdash.services import ConfigurationError

DEFAULT_DB_PATH = Path.home() / ".ticketdash" / "tickets.db"
DEFAULT_CORS_ORIGINS = "http://localhost:1420,http://localhost:3000"


def _env_float(key: str, default: float) -> float:
    raw = os.environ.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{key} must be a number, got {raw!r}") from exc


def _env_str(key: str) -> str:
    return os.environ.get(key, "").strip()


def load_rules_payload(value: str) -> str:
    """Return the rule JSON itself, reading it from disk when *value* is a path.

    Anything that starts with ``{`` is treated as inline JSON; an empty value
    means no rules.
    """
    value = value.strip()
    if not value:
        return EMPTY_RULES_PAYLOAD
    if value.startswith("{"):
        return value
    path = Path(value).expanduser()
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"cannot read category rules from {path}: {exc}") from exc


@dataclass
class Settings:
    db_path: Path = DEFAULT_DB_PATH
    sync_interval_minutes: float = 0
    jira_url: str = ""
    jira_email: str = ""
    jira_token: str = field(default="", repr=False)
    category_rules: str = ""
    http_timeout: float = 30.0
    cors_origins: list[str] = field(
        default_factory=lambda: [o.strip() for o in DEFAULT_CORS_ORIGINS.split(",")]
    )

    @classmethod
    def from_env(cls) -> Settings:
        db_path = _env_str("TICKETDASH_DB_PATH")
        cors = os.environ.get("TICKETDASH_CORS_ORIGINS", DEFAULT_CORS_ORIGINS)
        return cls(
            db_path=Path(db_path).expanduser() if db_path else DEFAULT_DB_PATH,
            sync_interval_minutes=_env_float("TICKETDASH_SYNC_INTERVAL_MINUTES", 0),
            jira_url=_env_str("TICKETDASH_JIRA_URL"),
            jira_email=_env_str("TICKETDASH_JIRA_EMAIL"),
            jira_token=_env_str("TICKETDASH_JIRA_TOKEN"),
            category_rules=_env_str("TICKETDASH_CATEGORY_RULES"),
            http_timeout=_env_float("TICKETDASH_HTTP_TIMEOUT", 30.0),
            cors_origins=[o.strip() for o in cors.split(",") if o.strip()],
        )

    def sync_params(
        self,
        *,
        jira_url: str | None = None,
        email: str | None = None,
        token: str | None = None,
        category_rules: str | None = None,
    ) -> SyncParams:
        """Build :class:`SyncParams`, explicit arguments overriding settings.

        Raises :class:`ConfigurationError` if the URL, email or token is blank.
        """
        params = SyncParams(
            jira_url=jira_url or self.jira_url,
            email=email or self.jira_email,
            token=token or self.jira_token,
            category_rules_json=load_rules_payload(
                category_rules if category_rules is not None else self.category_rules
            ),
        )
        missing = [
            env
            for env, value in (
                ("TICKETDASH_JIRA_URL", params.jira_url),
                ("TICKETDASH_JIRA_EMAIL", params.email),
                ("TICKETDASH_JIRA_TOKEN", params.token),
            )
            if not value
        ]
        if missing:
            raise ConfigurationError(f"missing Jira connection settings: {', '.join(missing)}")
        return params
