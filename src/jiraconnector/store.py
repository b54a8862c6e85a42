from __future__ import annotations
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine


class ConnectorStore:
    """Integer key/value store for sync watermarks, kept outside the Jira DB."""

    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._ensure_table()

    @classmethod
    def from_url(cls, url: str) -> "ConnectorStore":
        return cls(create_engine(url, future=True))

    def _ensure_table(self) -> None:
        with self.engine.begin() as conn:
            conn.execute(text("""
                CREATE TABLE IF NOT EXISTS connector_store (
                    store_key VARCHAR(255) PRIMARY KEY,
                    store_value BIGINT NOT NULL
                )
            """))

    def get_int(self, key: str) -> int | None:
        with self.engine.begin() as conn:
            value = conn.execute(
                text("SELECT store_value FROM connector_store WHERE store_key = :key"),
                {"key": key},
            ).scalar()
        return int(value) if value is not None else None

    def put_int(self, key: str, value: int) -> None:
        with self.engine.begin() as conn:
            updated = conn.execute(
                text("UPDATE connector_store SET store_value = :value WHERE store_key = :key"),
                {"key": key, "value": value},
            ).rowcount
            if not updated:
                conn.execute(
                    text("INSERT INTO connector_store (store_key, store_value) VALUES (:key, :value)"),
                    {"key": key, "value": value},
                )
