from __future__ import annotations

import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine, text
from sqlalchemy.pool import StaticPool


ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from jiraconnector.config import ConnectorConfig  # noqa: E402
from jiraconnector.db.repository import JiraRepository  # noqa: E402
from jiraconnector.models import Issue  # noqa: E402
from jiraconnector.store import ConnectorStore  # noqa: E402

SCHEMA_PATH = Path(__file__).resolve().parent / "jira_schema.sql"


def _memory_engine():
    return create_engine("sqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False})


class JiraTestData:
    """Writes fixtures straight into the test Jira DB."""

    def __init__(self, engine) -> None:
        self.engine = engine

    def _run(self, sql: str, params: dict | None = None):
        with self.engine.begin() as conn:
            return conn.execute(text(sql), params or {})

    def save_project(self, project_id: int, key: str) -> None:
        self._run("INSERT INTO project (id, pkey) VALUES (:id, :pkey)", {"id": project_id, "pkey": key})

    def save_issue_type(self, type_id: str, name: str) -> None:
        self._run("INSERT INTO issuetype (id, pname) VALUES (:id, :pname)", {"id": type_id, "pname": name})

    def save_issue(self, project_id: int, issue: Issue, issue_type_id: str | None = None) -> Issue:
        self._run(
            """
            INSERT INTO jiraissue (id, project, issuenum, summary, issuetype, timespent)
            VALUES (:id, :project, :issuenum, :summary, :issuetype, :timespent)
            """,
            {
                "id": issue.id,
                "project": project_id,
                "issuenum": int(issue.issue_number),
                "summary": issue.summary,
                "issuetype": issue_type_id,
                "timespent": issue.time_spent,
            },
        )
        return issue

    def save_user(self, user_id: int, username: str, email: str) -> None:
        self._run(
            """
            INSERT INTO cwd_user (id, user_name, lower_user_name, email_address, lower_email_address)
            VALUES (:id, :name, :lower_name, :email, :lower_email)
            """,
            {"id": user_id, "name": username, "lower_name": username.lower(),
             "email": email, "lower_email": email.lower()},
        )

    def save_default_time_zone(self, property_id: int, tz: str) -> None:
        self._run(
            "INSERT INTO propertyentry (id, property_key) VALUES (:id, 'jira.default.timezone')",
            {"id": property_id},
        )
        self._run("INSERT INTO propertystring (id, propertyvalue) VALUES (:id, :tz)", {"id": property_id, "tz": tz})

    def remove_default_time_zone(self) -> None:
        self._run("DELETE FROM propertyentry WHERE property_key = 'jira.default.timezone'")
        self._run("DELETE FROM propertystring")

    def worklogs(self) -> list[dict]:
        return [dict(r) for r in self._run("SELECT * FROM worklog ORDER BY id").mappings().all()]

    def time_spent(self, issue_id: int) -> int:
        return int(self._run("SELECT timespent FROM jiraissue WHERE id = :id", {"id": issue_id}).scalar())


def make_issue(issue_id: int, project_key: str = "WT", issue_number: int | None = None,
               time_spent: int = 0, issue_type: str = "") -> Issue:
    number = issue_number if issue_number is not None else issue_id
    return Issue(
        id=issue_id,
        project_key=project_key,
        issue_number=str(number),
        summary=f"Issue summary {issue_id}",
        time_spent=time_spent,
        issue_type=issue_type,
    )


@pytest.fixture
def jira_engine():
    engine = _memory_engine()
    statements = [s for s in SCHEMA_PATH.read_text(encoding="utf-8").split(";") if s.strip()]
    with engine.begin() as conn:
        for stmt in statements:
            conn.execute(text(stmt))
    yield engine
    engine.dispose()


@pytest.fixture
def jira_db(jira_engine) -> JiraTestData:
    return JiraTestData(jira_engine)


@pytest.fixture
def repository(jira_engine) -> JiraRepository:
    return JiraRepository(jira_engine, fallback_timezone="UTC")


@pytest.fixture
def store():
    engine = _memory_engine()
    yield ConnectorStore(engine)
    engine.dispose()


@pytest.fixture
def tag_client():
    return MagicMock()


@pytest.fixture
def config() -> ConnectorConfig:
    return ConnectorConfig(
        db_url="sqlite://",
        tag_upsert_path="/Jira/",
        tag_upsert_batch_size=100,
        api_key="test-key",
    )
