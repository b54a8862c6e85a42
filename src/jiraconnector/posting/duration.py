from __future__ import annotations
from datetime import datetime

from jiraconnector.models import DurationSplitStrategy, TimeGroup


def activity_start_time(time_group: TimeGroup) -> datetime | None:
    """Earliest activity hour of the group (naive UTC), or None without rows."""
    if not time_group.time_rows:
        return None
    first = min(r.activity_hour for r in time_group.time_rows)
    return datetime.strptime(str(first), "%Y%m%d%H")


def tag_duration_secs(time_group: TimeGroup, tag_count: int) -> int:
    if tag_count <= 0:
        return 0
    weighted = time_group.total_duration_secs * time_group.user.experience_weighting_percent / 100.0
    if time_group.duration_split_strategy == DurationSplitStrategy.WHOLE_DURATION_TO_EACH_TAG:
        return int(round(weighted))
    return int(round(weighted / tag_count))
