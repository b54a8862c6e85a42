from __future__ import annotations
import logging

from jiraconnector.config import ConnectorConfig
from jiraconnector.db.repository import JiraRepository
from jiraconnector.errors import TagSyncError
from jiraconnector.models import Issue
from jiraconnector.store import ConnectorStore
from jiraconnector.sync.refresh_policy import compute_refresh_batch_size

LAST_SYNCED_ISSUE_KEY = "last-synced-issue-id"
LAST_REFRESHED_ISSUE_KEY = "last-refreshed-issue-id"


def ellipsize(items: list[str]) -> str:
    if len(items) < 6:
        return ", ".join(items)
    return f"{items[0]}, ... , {items[-1]}"


def _plural(n: int) -> str:
    return "tags" if n > 1 else "tag"


class TagSyncRunner:
    def __init__(self, config: ConnectorConfig, repository: JiraRepository, tag_client, store: ConnectorStore) -> None:
        self.config = config
        self.repository = repository
        self.tag_client = tag_client
        self.store = store
        self.log = logging.getLogger("sync")

    def sync_new_issues(self) -> int:
        """Drain all unsynced issues into tags. Returns the number of issues sent."""
        synced = 0
        while True:
            last_synced_id = self.store.get_int(LAST_SYNCED_ISSUE_KEY) or 0
            issues = self.repository.find_issues_after(
                last_synced_id, self.config.tag_upsert_batch_size, self.config.project_keys_filter
            )
            if not issues:
                self.log.info("No new tags found. Last issue ID synced: %s", last_synced_id)
                return synced

            self.log.info("Detected %s new %s: %s", len(issues), _plural(len(issues)),
                          ellipsize([i.key for i in issues]))
            self._upsert_tags(issues)

            last_id = issues[-1].id
            self.store.put_int(LAST_SYNCED_ISSUE_KEY, last_id)
            self.log.info("Last synced issue ID: %s", last_id)
            synced += len(issues)

    def refresh_issues(self, batch_size: int) -> int:
        """Send one batch of already synced issues to keep their tags fresh."""
        last_refreshed_id = self.store.get_int(LAST_REFRESHED_ISSUE_KEY) or 0
        issues = self.repository.find_issues_after(last_refreshed_id, batch_size, self.config.project_keys_filter)
        if not issues:
            # start over the next time we are called
            self.store.put_int(LAST_REFRESHED_ISSUE_KEY, 0)
            return 0

        self.log.info("Refreshing %s %s: %s", len(issues), _plural(len(issues)),
                      ellipsize([i.key for i in issues]))
        self._upsert_tags(issues)
        self.store.put_int(LAST_REFRESHED_ISSUE_KEY, issues[-1].id)
        return len(issues)

    def tag_refresh_batch_size(self, interval_minutes: int | None = None) -> int:
        """Refresh batch size for a caller invoked every `interval_minutes` (default: the refresh interval)."""
        if interval_minutes is None:
            interval_minutes = self.config.tag_refresh_interval_minutes
        return compute_refresh_batch_size(
            self.repository.count_issues(self.config.project_keys_filter),
            interval_minutes,
            self.config.tag_upsert_batch_size,
        )

    def _upsert_tags(self, issues: list[Issue]) -> None:
        upsert_requests = [i.to_upsert_tag_request(self.config.tag_upsert_path) for i in issues]
        try:
            self.tag_client.upsert_batch(upsert_requests)
        except Exception as e:
            raise TagSyncError(f"Tag upsert failed for {ellipsize([i.key for i in issues])}: {e}") from e
