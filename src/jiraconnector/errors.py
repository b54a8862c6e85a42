from __future__ import annotations


class ConnectorError(Exception):
    """Base error for the Jira connector."""


class ConfigError(ConnectorError):
    pass


class SchemaIncompatibleError(ConnectorError):
    pass


class TagApiError(ConnectorError):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class TagSyncError(ConnectorError):
    """Tag upsert failed; the watermark was left where it was."""


class IssueNotFoundError(ConnectorError):
    def __init__(self, tag_names: list[str]):
        super().__init__("Can't find Jira issue for tag(s) " + ", ".join(tag_names))
        self.tag_names = tag_names
