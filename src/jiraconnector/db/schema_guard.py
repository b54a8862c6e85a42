from __future__ import annotations
import logging
from sqlalchemy import inspect
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

REQUIRED_TABLES_AND_COLUMNS: dict[str, set[str]] = {
    "jiraissue": {"id", "issuenum", "summary", "timespent", "project", "issuetype"},
    "project": {"id", "pkey"},
    "issuetype": {"id", "pname"},
    "cwd_user": {"user_name", "lower_user_name", "lower_email_address"},
    "worklog": {"id", "issueid", "author", "timeworked", "created", "worklogbody"},
    "sequence_value_item": {"seq_id", "seq_name"},
    "propertyentry": {"id", "property_key"},
    "propertystring": {"id", "propertyvalue"},
}


def _actual_tables_and_columns(engine: Engine) -> dict[str, set[str]]:
    inspector = inspect(engine)
    actual: dict[str, set[str]] = {}
    for table in inspector.get_table_names():
        name = table.lower()
        if name not in REQUIRED_TABLES_AND_COLUMNS:
            continue
        # transform to lower case to ensure we are comparing the same case
        actual.setdefault(name, set()).update(c["name"].lower() for c in inspector.get_columns(table))
    return actual


def verify_schema(engine: Engine) -> bool:
    log = logging.getLogger("schema")
    log.info("Checking if Jira DB has correct schema...")
    try:
        actual = _actual_tables_and_columns(engine)
    except SQLAlchemyError as e:
        log.warning("Unable to inspect Jira DB schema: %s", e)
        return False

    ok = True
    for table, columns in REQUIRED_TABLES_AND_COLUMNS.items():
        if table not in actual:
            log.warning("Missing required table %s", table)
            ok = False
            continue
        missing = columns - actual[table]
        if missing:
            log.warning("Table %s is missing columns %s", table, sorted(missing))
            ok = False
    return ok
