from __future__ import annotations
import re

from jiraconnector.models import TimeGroup

# Emoji and other pictographs; MySQL utf8 and most Jira installs can't store astral-plane characters
PICTOGRAPHIC_RE = re.compile("[\U00010000-\U0010FFFF\u2600-\u27BF\uFE0E\uFE0F\u20E3]")


def strip_pictographs(value: str) -> str:
    return PICTOGRAPHIC_RE.sub("", value or "")


def _hms(total_secs: int) -> str:
    hours, rest = divmod(max(0, int(total_secs)), 3600)
    minutes, secs = divmod(rest, 60)
    return f"{hours}:{minutes:02d}:{secs:02d}"


def format_worklog_body(time_group: TimeGroup) -> str:
    lines: list[str] = []
    if time_group.description:
        lines.append(time_group.description)
    elif time_group.group_name:
        lines.append(time_group.group_name)

    seen = set()
    for row in sorted(time_group.time_rows, key=lambda r: r.activity_hour):
        entry = " - ".join(p for p in (row.activity, row.description) if p)
        if entry and entry not in seen:
            seen.add(entry)
            lines.append(entry)

    if lines:
        lines.append("")
    lines.append(f"Total Worked Time: {_hms(time_group.total_duration_secs)}")
    if time_group.user.experience_weighting_percent != 100:
        lines.append(f"Experience factor: {time_group.user.experience_weighting_percent}%")
    return "\n".join(lines)


def clean_worklog_body(value: str) -> str:
    return strip_pictographs(value).strip()
