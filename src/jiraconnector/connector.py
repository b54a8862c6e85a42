from __future__ import annotations
import logging
from typing import Callable

from jiraconnector.config import ConnectorConfig
from jiraconnector.db.connection import build_db_url, describe_db_url, get_engine
from jiraconnector.db.repository import JiraRepository
from jiraconnector.db.schema_guard import verify_schema
from jiraconnector.errors import ConfigError, SchemaIncompatibleError
from jiraconnector.models import PostResult, TimeGroup
from jiraconnector.posting.time_posting import TimePoster
from jiraconnector.posting.worklog_body import format_worklog_body
from jiraconnector.store import ConnectorStore
from jiraconnector.sync.sync_runner import TagSyncRunner
from jiraconnector.tags.client import TagApiClient

CONNECTOR_TYPE = "wisetime-jira-connector"


class JiraConnector:
    """
    Entry points called by the host runtime: scheduled tag syncs and posted
    time webhooks. The host must not run two syncs, or two posts, at once.
    """

    def __init__(
        self,
        config: ConnectorConfig,
        repository: JiraRepository,
        tag_client,
        store: ConnectorStore,
        body_formatter: Callable[[TimeGroup], str] = format_worklog_body,
    ) -> None:
        self.config = config
        self.repository = repository
        self.tag_client = tag_client
        self.store = store
        self.sync_runner = TagSyncRunner(config, repository, tag_client, store)
        self.time_poster = TimePoster(config, repository, tag_client, body_formatter)
        self.log = logging.getLogger("connector")

    def init(self) -> None:
        if not verify_schema(self.repository.engine):
            raise SchemaIncompatibleError("Jira Database schema is unsupported by this connector")
        if not self.repository.has_configured_time_zone():
            self.log.warning(
                "Jira default time zone is not set or not recognised, worklogs will use %s",
                self.config.timezone,
            )

    def on_scheduled_sync(self) -> int:
        return self.sync_runner.sync_new_issues()

    def on_refresh_sync(self) -> int:
        return self.sync_runner.refresh_issues(self.sync_runner.tag_refresh_batch_size())

    def perform_tag_update(self) -> None:
        """
        New issues first (blocks until drained), then one refresh batch. Runs on
        the sync cadence, so the refresh batch is sized for that interval.
        """
        self.on_scheduled_sync()
        self.sync_runner.refresh_issues(
            self.sync_runner.tag_refresh_batch_size(self.config.tag_sync_interval_minutes)
        )

    def on_time_posted(self, time_group: TimeGroup) -> PostResult:
        return self.time_poster.post_time(time_group)

    def is_connector_healthy(self) -> bool:
        return self.repository.ping_store()

    def shutdown(self) -> None:
        close = getattr(self.tag_client, "close", None)
        if close:
            close()
        self.repository.engine.dispose()
        self.store.engine.dispose()


def build_connector(config: ConnectorConfig) -> JiraConnector:
    if not config.api_key:
        raise ConfigError("Missing required wisetime.api_key configuration")
    log = logging.getLogger("connector")
    log.info("Connecting to Jira database %s", describe_db_url(build_db_url(config)))
    repository = JiraRepository(
        get_engine(config),
        fallback_timezone=config.timezone,
        worklog_seq_base=config.worklog_seq_base,
        worklog_seq_step=config.worklog_seq_step,
    )
    return JiraConnector(
        config,
        repository,
        TagApiClient(config.api_base_url, config.api_key),
        ConnectorStore.from_url(config.store_url),
    )
