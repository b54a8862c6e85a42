from __future__ import annotations

import pytest

from jiraconnector.config import ConnectorConfig, load_config, load_connector_config
from jiraconnector.errors import ConfigError


def _cfg(**connector) -> dict:
    return {"jira": {"db_url": "postgresql+psycopg://jira-host/jiradb"}, "connector": connector}


def test_defaults():
    config = ConnectorConfig.from_dict(_cfg())
    assert config.tag_upsert_path == "/Jira/"
    assert config.tag_upsert_batch_size == 200
    assert config.project_keys_filter == ()
    assert config.caller_key is None
    assert config.missing_issue_policy == "lenient"
    assert config.worklog_seq_base == 10100
    assert config.worklog_seq_step == 199
    assert config.timezone == "UTC"


def test_missing_db_url_is_fatal():
    with pytest.raises(ConfigError):
        ConnectorConfig.from_dict({"jira": {"db_url": ""}})


def test_project_keys_filter_from_string_and_list():
    assert ConnectorConfig.from_dict(_cfg(project_keys_filter="WT , OPS,DEV")).project_keys_filter == ("WT", "OPS", "DEV")
    assert ConnectorConfig.from_dict(_cfg(project_keys_filter=["WT", "OPS"])).project_keys_filter == ("WT", "OPS")


@pytest.mark.parametrize("connector", [
    {"tag_upsert_batch_size": 0},
    {"tag_refresh_interval_minutes": "soon"},
    {"missing_issue_policy": "sometimes"},
])
def test_invalid_values_rejected(connector):
    with pytest.raises(ConfigError):
        ConnectorConfig.from_dict(_cfg(**connector))


def test_unknown_timezone_rejected():
    with pytest.raises(ConfigError):
        ConnectorConfig.from_dict({"jira": {"db_url": "sqlite://", "timezone": "Asia/Perth"}})


def test_load_config_expands_env(tmp_path, monkeypatch):
    monkeypatch.setenv("JIRA_DB_URL", "postgresql+psycopg://jira-host/jiradb")
    monkeypatch.setenv("CALLER_KEY", "secret")
    monkeypatch.delenv("PROJECT_KEYS_FILTER", raising=False)
    path = tmp_path / "config.yaml"
    path.write_text(
        "jira:\n"
        "  db_url: ${JIRA_DB_URL}\n"
        "connector:\n"
        "  caller_key: ${CALLER_KEY}\n"
        "  project_keys_filter: ${PROJECT_KEYS_FILTER}\n"
        "  missing_issue_policy: strict\n",
        encoding="utf-8",
    )
    assert load_config(str(path))["jira"]["db_url"] == "postgresql+psycopg://jira-host/jiradb"

    config = load_connector_config(str(path))
    assert config.caller_key == "secret"
    assert config.project_keys_filter == ()
    assert config.missing_issue_policy == "strict"
