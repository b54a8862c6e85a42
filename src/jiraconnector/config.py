from __future__ import annotations
import os
import re
from dataclasses import dataclass
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from dotenv import load_dotenv
import yaml

from jiraconnector.errors import ConfigError

load_dotenv()

MISSING_ISSUE_POLICIES = ("lenient", "strict")


def _env_expand(value: str) -> str:
    # supports ${VAR} interpolation for YAML strings
    pattern = re.compile(r"\$\{([A-Z0-9_]+)\}")
    def repl(m):
        return os.getenv(m.group(1), "")
    return pattern.sub(repl, value)


def load_config(path: str) -> dict:
    with open(path, "r", encoding="utf-8") as f:
        cfg = yaml.safe_load(f) or {}
    # recursively expand env vars
    def walk(obj):
        if isinstance(obj, dict):
            return {k: walk(v) for k, v in obj.items()}
        if isinstance(obj, list):
            return [walk(x) for x in obj]
        if isinstance(obj, str):
            return _env_expand(obj)
        return obj
    return walk(cfg)


def _blank_to_none(value) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


def _parse_project_keys(value) -> tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        value = re.split(r"\s*,\s*", value)
    return tuple(str(k).strip() for k in value if str(k).strip())


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in {"1", "true", "t", "yes", "y"}


def _positive_int(section: dict, key: str, default: int) -> int:
    raw = section.get(key)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise ConfigError(f"{key} must be an integer, got {raw!r}")
    if value <= 0:
        raise ConfigError(f"{key} must be positive, got {value}")
    return value


@dataclass(frozen=True)
class ConnectorConfig:
    db_url: str
    db_user: str | None = None
    db_password: str | None = None
    timezone: str = "UTC"
    tag_upsert_path: str = "/Jira/"
    tag_upsert_batch_size: int = 200
    project_keys_filter: tuple[str, ...] = ()
    caller_key: str | None = None
    tag_sync_interval_minutes: int = 5
    tag_refresh_interval_minutes: int = 15
    missing_issue_policy: str = "lenient"
    delete_orphaned_tags: bool = False
    worklog_seq_base: int = 10100
    worklog_seq_step: int = 199
    api_base_url: str = "https://wisetime.com/connect/api"
    api_key: str = ""
    store_url: str = "sqlite:///connector-store.db"

    @classmethod
    def from_dict(cls, cfg: dict) -> "ConnectorConfig":
        jira = cfg.get("jira", {}) or {}
        connector = cfg.get("connector", {}) or {}
        wisetime = cfg.get("wisetime", {}) or {}
        store = cfg.get("store", {}) or {}

        db_url = _blank_to_none(jira.get("db_url"))
        if not db_url:
            raise ConfigError("Missing required jira.db_url configuration")

        tz = _blank_to_none(jira.get("timezone")) or "UTC"
        try:
            ZoneInfo(tz)
        except (ZoneInfoNotFoundError, ValueError):
            raise ConfigError(f"Unknown time zone {tz!r}")

        policy = (_blank_to_none(connector.get("missing_issue_policy")) or "lenient").lower()
        if policy not in MISSING_ISSUE_POLICIES:
            raise ConfigError(f"missing_issue_policy must be one of {MISSING_ISSUE_POLICIES}, got {policy!r}")

        return cls(
            db_url=db_url,
            db_user=_blank_to_none(jira.get("db_user")),
            db_password=_blank_to_none(jira.get("db_password")),
            timezone=tz,
            tag_upsert_path=_blank_to_none(connector.get("tag_upsert_path")) or "/Jira/",
            tag_upsert_batch_size=_positive_int(connector, "tag_upsert_batch_size", 200),
            project_keys_filter=_parse_project_keys(connector.get("project_keys_filter")),
            caller_key=_blank_to_none(connector.get("caller_key")),
            tag_sync_interval_minutes=_positive_int(connector, "tag_sync_interval_minutes", 5),
            tag_refresh_interval_minutes=_positive_int(connector, "tag_refresh_interval_minutes", 15),
            missing_issue_policy=policy,
            delete_orphaned_tags=_parse_bool(connector.get("delete_orphaned_tags")),
            worklog_seq_base=_positive_int(connector, "worklog_seq_base", 10100),
            worklog_seq_step=_positive_int(connector, "worklog_seq_step", 199),
            api_base_url=_blank_to_none(wisetime.get("api_base_url")) or "https://wisetime.com/connect/api",
            api_key=_blank_to_none(wisetime.get("api_key")) or "",
            store_url=_blank_to_none(store.get("url")) or "sqlite:///connector-store.db",
        )


def load_connector_config(path: str) -> ConnectorConfig:
    return ConnectorConfig.from_dict(load_config(path))
