from __future__ import annotations

from jiraconnector.models import TimeGroup, TimeRow, User
from jiraconnector.posting.worklog_body import clean_worklog_body, format_worklog_body, strip_pictographs


def test_strip_pictographs():
    assert strip_pictographs("Deploy \U0001F680 done ✅") == "Deploy  done "
    assert strip_pictographs("Plain text, ünïcödé") == "Plain text, ünïcödé"


def test_clean_worklog_body_trims():
    assert clean_worklog_body("  \U0001F600 Worked on login \n") == "Worked on login"


def test_format_worklog_body():
    group = TimeGroup(
        group_id="g",
        description="Fixing the login page",
        time_rows=[
            TimeRow(2018110110, 600, activity="Editor", description="login.py"),
            TimeRow(2018110109, 300, activity="Browser"),
            TimeRow(2018110111, 300, activity="Editor", description="login.py"),
        ],
        user=User(experience_weighting_percent=50),
        total_duration_secs=1500,
    )
    assert format_worklog_body(group).splitlines() == [
        "Fixing the login page",
        "Browser",
        "Editor - login.py",
        "",
        "Total Worked Time: 0:25:00",
        "Experience factor: 50%",
    ]
