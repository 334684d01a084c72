"""Tests for environment-driven settings."""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from ticketdash.core.config import DEFAULT_DB_PATH, Settings, load_rules_payload
from ticketdash.engines.categorizer import EMPTY_RULES_PAYLOAD
from ticketdash.services import ConfigurationError


def _clean_env() -> dict[str, str]:
    return {k: v for k, v in os.environ.items() if not k.startswith("TICKETDASH_")}


class TestFromEnv:
    def test_defaults(self):
        with patch.dict(os.environ, _clean_env(), clear=True):
            settings = Settings.from_env()
        assert settings.db_path == DEFAULT_DB_PATH
        assert settings.sync_interval_minutes == 0
        assert settings.http_timeout == 30.0
        assert settings.jira_url == ""

    def test_overrides(self, tmp_path):
        env = {
            **_clean_env(),
            "TICKETDASH_DB_PATH": str(tmp_path / "x.db"),
            "TICKETDASH_SYNC_INTERVAL_MINUTES": "15",
            "TICKETDASH_HTTP_TIMEOUT": "5",
            "TICKETDASH_CORS_ORIGINS": "http://a, http://b",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = Settings.from_env()
        assert settings.db_path == Path(tmp_path / "x.db")
        assert settings.sync_interval_minutes == 15
        assert settings.http_timeout == 5.0
        assert settings.cors_origins == ["http://a", "http://b"]

    def test_bad_number(self):
        env = {**_clean_env(), "TICKETDASH_SYNC_INTERVAL_MINUTES": "often"}
        with patch.dict(os.environ, env, clear=True):
            with pytest.raises(ConfigurationError, match="TICKETDASH_SYNC_INTERVAL_MINUTES"):
                Settings.from_env()

    def test_token_hidden_from_repr(self):
        assert "hunter2" not in repr(Settings(jira_token="hunter2"))


class TestSyncParams:
    def test_from_settings(self):
        settings = Settings(jira_url="https://j", jira_email="a@b.c", jira_token="t")
        params = settings.sync_params()
        assert params.jira_url == "https://j"
        assert params.category_rules_json == EMPTY_RULES_PAYLOAD
        assert "token=" not in repr(params)

    def test_arguments_override(self):
        settings = Settings(jira_url="https://j", jira_email="a@b.c", jira_token="t")
        params = settings.sync_params(email="other@b.c", category_rules='{"categoryRules": []}')
        assert params.email == "other@b.c"

    def test_missing_values(self):
        with pytest.raises(ConfigurationError) as exc_info:
            Settings(jira_url="https://j").sync_params()
        assert "TICKETDASH_JIRA_EMAIL" in str(exc_info.value)
        assert "TICKETDASH_JIRA_TOKEN" in str(exc_info.value)
        assert "TICKETDASH_JIRA_URL" not in str(exc_info.value)


class TestLoadRulesPayload:
    def test_inline_json(self):
        assert load_rules_payload(' {"categoryRules": []} ') == '{"categoryRules": []}'

    def test_empty(self):
        assert load_rules_payload("") == EMPTY_RULES_PAYLOAD

    def test_file(self, tmp_path):
        path = tmp_path / "rules.json"
        path.write_text('{"categoryRules": [1]}')
        assert load_rules_payload(str(path)) == '{"categoryRules": [1]}'

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_rules_payload(str(tmp_path / "absent.json"))
