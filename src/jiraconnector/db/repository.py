from __future__ import annotations
import logging
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Callable, Iterator, Sequence, TypeVar
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from sqlalchemy import bindparam, text
from sqlalchemy.engine import Connection, Engine

from jiraconnector.models import Issue, TagReference, Worklog

T = TypeVar("T")

WORKLOG_SEQ_NAME = "Worklog"
DEFAULT_WORKLOG_SEQ_BASE = 10100
DEFAULT_WORKLOG_SEQ_STEP = 199
CREATED_FORMAT = "%Y-%m-%d %H:%M:%S"

ISSUE_SELECT = """
    SELECT jiraissue.id AS id, project.pkey AS pkey, jiraissue.issuenum AS issuenum,
           jiraissue.summary AS summary, jiraissue.timespent AS timespent,
           issuetype.pname AS issuetype
    FROM project
    INNER JOIN jiraissue ON project.id = jiraissue.project
    LEFT JOIN issuetype ON issuetype.id = jiraissue.issuetype
"""


def _issue_from_row(row) -> Issue:
    return Issue(
        id=int(row["id"]),
        project_key=row["pkey"],
        issue_number=str(int(row["issuenum"])),
        summary=row["summary"] or "",
        time_spent=int(row["timespent"] or 0),
        issue_type=row["issuetype"] or "",
    )


class JiraRepository:
    """
    Simple, unsophisticated access to the Jira database.

    Every method runs in its own transaction unless called from inside
    run_in_transaction(), in which case it joins that transaction.

    Work-log ids are minted by this class rather than by Jira: the next id is
    the Worklog sequence counter (or the configured base when absent) plus a
    fixed step, and the counter is advanced in the same transaction. The step
    keeps us clear of ids Jira hands out from its own cached sequence block in
    normal operation. This is a heuristic, not a guarantee: a Jira instance
    with a large enough id cache or a concurrent bulk import can still collide.
    """

    def __init__(
        self,
        engine: Engine,
        fallback_timezone: str = "UTC",
        worklog_seq_base: int = DEFAULT_WORKLOG_SEQ_BASE,
        worklog_seq_step: int = DEFAULT_WORKLOG_SEQ_STEP,
    ) -> None:
        self.engine = engine
        self.fallback_timezone = fallback_timezone
        self.worklog_seq_base = worklog_seq_base
        self.worklog_seq_step = worklog_seq_step
        self._tx_conn: Connection | None = None
        self.log = logging.getLogger("repository")

    @contextmanager
    def _connect(self) -> Iterator[Connection]:
        if self._tx_conn is not None:
            yield self._tx_conn
            return
        with self.engine.begin() as conn:
            yield conn

    def run_in_transaction(self, unit_of_work: Callable[[], T]) -> T:
        if self._tx_conn is not None:
            # already inside a transaction, join it
            return unit_of_work()
        with self.engine.begin() as conn:
            self._tx_conn = conn
            try:
                return unit_of_work()
            finally:
                self._tx_conn = None

    def ping_store(self) -> bool:
        try:
            with self._connect() as conn:
                conn.execute(text("SELECT 1 FROM jiraissue")).first()
            return True
        except Exception as e:
            self.log.warning("Jira DB ping failed: %s", e)
            return False

    # Issues

    def find_issue_by_tag(self, tag_name: str) -> Issue | None:
        ref = TagReference.from_tag_name(tag_name)
        if ref is None:
            return None
        with self._connect() as conn:
            row = conn.execute(
                text(ISSUE_SELECT + " WHERE project.pkey = :pkey AND jiraissue.issuenum = :issuenum"),
                {"pkey": ref.project_key, "issuenum": ref.issue_number},
            ).mappings().first()
        return _issue_from_row(row) if row else None

    def find_issues_after(self, cursor_id: int, limit: int, project_keys: Sequence[str] = ()) -> list[Issue]:
        q = ISSUE_SELECT + " WHERE jiraissue.id > :cursor_id"
        params: dict = {"cursor_id": cursor_id, "limit": limit}
        if project_keys:
            q += " AND project.pkey IN :project_keys"
            params["project_keys"] = list(project_keys)
        q += " ORDER BY jiraissue.id ASC LIMIT :limit"
        stmt = text(q)
        if project_keys:
            stmt = stmt.bindparams(bindparam("project_keys", expanding=True))
        with self._connect() as conn:
            rows = conn.execute(stmt, params).mappings().all()
        return [_issue_from_row(r) for r in rows]

    def count_issues(self, project_keys: Sequence[str] = ()) -> int:
        q = "SELECT COUNT(*) FROM project INNER JOIN jiraissue ON project.id = jiraissue.project"
        params: dict = {}
        stmt = text(q)
        if project_keys:
            stmt = text(q + " WHERE project.pkey IN :project_keys").bindparams(
                bindparam("project_keys", expanding=True)
            )
            params["project_keys"] = list(project_keys)
        with self._connect() as conn:
            return int(conn.execute(stmt, params).scalar() or 0)

    def update_time_spent(self, issue_id: int, new_total: int) -> None:
        with self._connect() as conn:
            conn.execute(
                text("UPDATE jiraissue SET timespent = :total WHERE id = :issue_id"),
                {"total": new_total, "issue_id": issue_id},
            )

    # Users

    def user_exists(self, username: str) -> bool:
        # Jira usernames are not case sensitive
        with self._connect() as conn:
            row = conn.execute(
                text("SELECT user_name FROM cwd_user WHERE lower_user_name = :username"),
                {"username": (username or "").lower()},
            ).first()
        return row is not None

    def resolve_user_by_email(self, email: str) -> str | None:
        if not email:
            return None
        with self._connect() as conn:
            return conn.execute(
                text("SELECT user_name FROM cwd_user WHERE lower_email_address = :email"),
                {"email": email.lower()},
            ).scalars().first()

    # Time zone

    def _time_zone_property(self, conn: Connection) -> str | None:
        return conn.execute(text("""
            SELECT propertystring.propertyvalue
            FROM propertyentry
            INNER JOIN propertystring ON propertystring.id = propertyentry.id
            WHERE propertyentry.property_key = 'jira.default.timezone'
        """)).scalars().first()

    def has_configured_time_zone(self) -> bool:
        with self._connect() as conn:
            value = self._time_zone_property(conn)
        if not value:
            return False
        try:
            ZoneInfo(value)
            return True
        except (ZoneInfoNotFoundError, ValueError):
            return False

    def default_time_zone(self) -> ZoneInfo:
        with self._connect() as conn:
            return self._resolve_time_zone(self._time_zone_property(conn))

    def _resolve_time_zone(self, value: str | None) -> ZoneInfo:
        if value:
            try:
                return ZoneInfo(value)
            except (ZoneInfoNotFoundError, ValueError):
                self.log.warning("Jira default time zone %r is not recognised, using %s", value, self.fallback_timezone)
        return ZoneInfo(self.fallback_timezone)

    # Work-logs

    def current_worklog_seq_id(self) -> int | None:
        with self._connect() as conn:
            value = conn.execute(
                text("SELECT seq_id FROM sequence_value_item WHERE seq_name = :name"),
                {"name": WORKLOG_SEQ_NAME},
            ).scalar()
        return int(value) if value is not None else None

    def create_worklog(self, worklog: Worklog) -> int:
        with self._connect() as conn:
            current = conn.execute(
                text("SELECT seq_id FROM sequence_value_item WHERE seq_name = :name"),
                {"name": WORKLOG_SEQ_NAME},
            ).scalar()
            base = int(current) if current is not None else self.worklog_seq_base
            next_id = base + self.worklog_seq_step

            created = (
                worklog.created.replace(tzinfo=timezone.utc)
                .astimezone(self._resolve_time_zone(self._time_zone_property(conn)))
                .strftime(CREATED_FORMAT)
            )
            conn.execute(text("""
                INSERT INTO worklog (id, issueid, author, timeworked, created, worklogbody)
                VALUES (:id, :issue_id, :author, :time_worked, :created, :body)
            """), {
                "id": next_id,
                "issue_id": worklog.issue_id,
                "author": worklog.author,
                "time_worked": worklog.time_worked,
                "created": created,
                "body": worklog.body,
            })

            if current is None:
                conn.execute(
                    text("INSERT INTO sequence_value_item (seq_name, seq_id) VALUES (:name, :seq_id)"),
                    {"name": WORKLOG_SEQ_NAME, "seq_id": next_id},
                )
            else:
                conn.execute(
                    text("UPDATE sequence_value_item SET seq_id = :seq_id WHERE seq_name = :name"),
                    {"name": WORKLOG_SEQ_NAME, "seq_id": next_id},
                )
        self.log.debug("Created worklog id=%s issue=%s", next_id, worklog.issue_id)
        return next_id
