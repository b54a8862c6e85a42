from __future__ import annotations
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine, URL, make_url

from jiraconnector.config import ConnectorConfig


def build_db_url(config: ConnectorConfig) -> URL:
    url = make_url(config.db_url)
    if config.db_user:
        url = url.set(username=config.db_user)
    if config.db_password:
        url = url.set(password=config.db_password)
    return url


def describe_db_url(url: URL) -> str:
    # never log credentials
    return "host: %s, port: %s, database name: %s" % (
        url.host or "DEFAULT",
        url.port or "DEFAULT",
        url.database or "UNKNOWN",
    )


def get_engine(config: ConnectorConfig) -> Engine:
    url = build_db_url(config)
    if url.get_backend_name() == "sqlite":
        return create_engine(url, future=True)
    return create_engine(url, future=True, pool_size=10, pool_timeout=60, pool_pre_ping=True)
