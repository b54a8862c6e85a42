from __future__ import annotations
import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

TAG_NAME_RE = re.compile(r"^([^-]+)-([0-9]+)$")


@dataclass(frozen=True)
class TagReference:
    """A tag name parsed as `{projectKey}-{issueNumber}`, e.g. WT-1234."""

    project_key: str
    issue_number: int

    @classmethod
    def from_tag_name(cls, tag_name: str | None) -> "TagReference | None":
        m = TAG_NAME_RE.match(tag_name or "")
        if not m:
            return None
        return cls(project_key=m.group(1), issue_number=int(m.group(2)))


@dataclass(frozen=True)
class UpsertTagRequest:
    name: str
    description: str
    path: str
    additional_keywords: list[str] = field(default_factory=list)
    external_id: str | None = None
    metadata: dict[str, str] = field(default_factory=dict)

    def to_payload(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "path": self.path,
            "additionalKeywords": list(self.additional_keywords),
            "externalId": self.external_id,
            "metadata": dict(self.metadata),
        }


@dataclass(frozen=True)
class Issue:
    id: int
    project_key: str
    issue_number: str
    summary: str
    time_spent: int
    issue_type: str = ""

    @property
    def key(self) -> str:
        return f"{self.project_key}-{self.issue_number}"

    def to_upsert_tag_request(self, path: str) -> UpsertTagRequest:
        metadata = {"Project": self.project_key}
        if self.issue_type:
            metadata["Type"] = self.issue_type
        return UpsertTagRequest(
            name=self.key,
            description=self.summary or "",
            path=path,
            additional_keywords=[self.key],
            external_id=str(self.id),
            metadata=metadata,
        )


@dataclass(frozen=True)
class Worklog:
    issue_id: int
    author: str
    time_worked: int
    created: datetime  # naive, UTC
    body: str


class DurationSplitStrategy(str, Enum):
    DIVIDE_BETWEEN_TAGS = "DIVIDE_BETWEEN_TAGS"
    WHOLE_DURATION_TO_EACH_TAG = "WHOLE_DURATION_TO_EACH_TAG"


@dataclass(frozen=True)
class Tag:
    name: str
    path: str = ""
    description: str = ""


@dataclass(frozen=True)
class TimeRow:
    activity_hour: int  # YYYYMMDDHH
    duration_secs: int
    activity: str = ""
    description: str = ""


@dataclass(frozen=True)
class User:
    external_id: str = ""
    email: str = ""
    name: str = ""
    experience_weighting_percent: int = 100


def _weighting_percent(value) -> int:
    # a missing or null weighting means no adjustment
    return 100 if value is None else int(value)


@dataclass(frozen=True)
class TimeGroup:
    group_id: str
    tags: list[Tag] = field(default_factory=list)
    time_rows: list[TimeRow] = field(default_factory=list)
    user: User = field(default_factory=User)
    total_duration_secs: int = 0
    duration_split_strategy: DurationSplitStrategy = DurationSplitStrategy.DIVIDE_BETWEEN_TAGS
    caller_key: str | None = None
    group_name: str = ""
    description: str = ""

    @classmethod
    def from_dict(cls, payload: dict) -> "TimeGroup":
        user = payload.get("user") or {}
        strategy = payload.get("durationSplitStrategy") or DurationSplitStrategy.DIVIDE_BETWEEN_TAGS.value
        return cls(
            group_id=str(payload.get("groupId") or ""),
            tags=[
                Tag(name=t.get("name") or "", path=t.get("path") or "", description=t.get("description") or "")
                for t in payload.get("tags") or []
            ],
            time_rows=[
                TimeRow(
                    activity_hour=int(r.get("activityHour") or 0),
                    duration_secs=int(r.get("durationSecs") or 0),
                    activity=r.get("activity") or "",
                    description=r.get("description") or "",
                )
                for r in payload.get("timeRows") or []
            ],
            user=User(
                external_id=user.get("externalId") or "",
                email=user.get("email") or "",
                name=user.get("name") or "",
                experience_weighting_percent=_weighting_percent(user.get("experienceWeightingPercent")),
            ),
            total_duration_secs=int(payload.get("totalDurationSecs") or 0),
            duration_split_strategy=DurationSplitStrategy(strategy),
            caller_key=payload.get("callerKey"),
            group_name=payload.get("groupName") or "",
            description=payload.get("description") or "",
        )


class PostStatus(str, Enum):
    SUCCESS = "SUCCESS"
    PERMANENT_FAILURE = "PERMANENT_FAILURE"
    TRANSIENT_FAILURE = "TRANSIENT_FAILURE"


@dataclass(frozen=True)
class PostResult:
    status: PostStatus
    message: str = ""
    error: BaseException | None = None

    @classmethod
    def success(cls, message: str = "") -> "PostResult":
        return cls(PostStatus.SUCCESS, message)

    @classmethod
    def permanent_failure(cls, message: str, error: BaseException | None = None) -> "PostResult":
        return cls(PostStatus.PERMANENT_FAILURE, message, error)

    @classmethod
    def transient_failure(cls, message: str, error: BaseException | None = None) -> "PostResult":
        return cls(PostStatus.TRANSIENT_FAILURE, message, error)
