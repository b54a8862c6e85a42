from __future__ import annotations
import logging
from datetime import datetime
from typing import Callable

from jiraconnector.config import ConnectorConfig
from jiraconnector.db.repository import JiraRepository
from jiraconnector.errors import IssueNotFoundError
from jiraconnector.models import PostResult, Tag, TagReference, TimeGroup, User, Worklog
from jiraconnector.posting.duration import activity_start_time, tag_duration_secs
from jiraconnector.posting.worklog_body import clean_worklog_body, format_worklog_body


class TimePoster:
    """
    Turns a posted time group into Jira worklogs.

    All issue updates and worklog inserts for one group happen in a single
    transaction. With the `strict` missing-issue policy a tag without a Jira
    issue rolls the whole group back; with `lenient` that tag is skipped.
    """

    def __init__(
        self,
        config: ConnectorConfig,
        repository: JiraRepository,
        tag_client=None,
        body_formatter: Callable[[TimeGroup], str] = format_worklog_body,
    ) -> None:
        self.config = config
        self.repository = repository
        self.tag_client = tag_client
        self.body_formatter = body_formatter
        self.log = logging.getLogger("posting")

    def post_time(self, time_group: TimeGroup) -> PostResult:
        self.log.info("Posted time received: %s", time_group.group_id)

        if self.config.caller_key and self.config.caller_key != time_group.caller_key:
            return PostResult.permanent_failure("Invalid caller key in posted time webhook call")

        if not time_group.tags:
            return PostResult.success("Time group has no tags. There is nothing to post to Jira.")

        relevant_tags = self._relevant_tags(time_group.tags)
        if not relevant_tags:
            return PostResult.success(
                "There is nothing to post to Jira. The time group has no Jira tags or it contains tags that "
                "don't match the configured project keys filter. Tags were: "
                + ", ".join(t.name for t in time_group.tags)
            )

        try:
            start_time = activity_start_time(time_group)
        except ValueError:
            return PostResult.permanent_failure("Time group has a malformed activity hour")
        if start_time is None:
            return PostResult.permanent_failure("Cannot post time group with no time rows")

        author = self._find_user(time_group.user)
        if author is None:
            return PostResult.permanent_failure("User does not exist in Jira")

        worked_time = tag_duration_secs(time_group, len(relevant_tags))
        body = clean_worklog_body(self.body_formatter(time_group))

        try:
            skipped = self.repository.run_in_transaction(
                lambda: self._post_to_issues(time_group, relevant_tags, author, start_time, worked_time, body)
            )
        except IssueNotFoundError as e:
            self.log.warning("Can't post time to Jira: %s", e)
            self._delete_orphaned_tags(e.tag_names)
            return PostResult.permanent_failure(str(e), e)
        except Exception as e:
            self.log.warning("There was an error posting time to the Jira database", exc_info=True)
            return PostResult.transient_failure("There was an error posting time to the Jira database", e)

        if skipped:
            return PostResult.success("Skipped tags with no matching Jira issue: " + ", ".join(skipped))
        return PostResult.success()

    def _post_to_issues(
        self,
        time_group: TimeGroup,
        tags: list[Tag],
        author: str,
        start_time: datetime,
        worked_time: int,
        body: str,
    ) -> list[str]:
        missing: list[str] = []
        for tag in tags:
            issue = self.repository.find_issue_by_tag(tag.name)
            if issue is None:
                missing.append(tag.name)
                if self.config.missing_issue_policy == "lenient":
                    self.log.warning("Can't find Jira issue for tag %s, skipping", tag.name)
                continue
            if missing and self.config.missing_issue_policy == "strict":
                # the group is going to be rolled back, keep looking for missing tags only
                continue

            self.repository.update_time_spent(issue.id, issue.time_spent + worked_time)
            self.repository.create_worklog(Worklog(
                issue_id=issue.id,
                author=author,
                time_worked=worked_time,
                created=start_time,
                body=body,
            ))
            self.log.info("Posted time %s to Jira issue %s", time_group.group_id, issue.key)

        if missing and self.config.missing_issue_policy == "strict":
            raise IssueNotFoundError(missing)
        return missing

    def _relevant_tags(self, tags: list[Tag]) -> list[Tag]:
        relevant: list[Tag] = []
        seen: set[str] = set()
        for tag in tags:
            if tag.name in seen:
                continue
            if self._created_by_connector(tag) and self._relevant_project_key(tag):
                seen.add(tag.name)
                relevant.append(tag)
        return relevant

    def _created_by_connector(self, tag: Tag) -> bool:
        path = self.config.tag_upsert_path
        # the stripped form is the old, deprecated path format
        return tag.path in (path, path + tag.name, path.strip("/"))

    def _relevant_project_key(self, tag: Tag) -> bool:
        ref = TagReference.from_tag_name(tag.name)
        if ref is None:
            return False
        if self.config.project_keys_filter:
            return ref.project_key in self.config.project_keys_filter
        return True

    def _find_user(self, user: User) -> str | None:
        if not user.external_id:
            return self.repository.resolve_user_by_email(user.email)
        if self.repository.user_exists(user.external_id):
            # this is the user's Jira username
            return user.external_id
        if len(user.external_id.split("@")) == 2:
            # looks like an email
            return self.repository.resolve_user_by_email(user.external_id)
        return None

    def _delete_orphaned_tags(self, tag_names: list[str]) -> None:
        if not (self.config.delete_orphaned_tags and self.tag_client):
            return
        for name in tag_names:
            try:
                self.tag_client.delete_tag(name)
            except Exception:
                self.log.warning("Failed to delete orphaned tag %s", name, exc_info=True)
