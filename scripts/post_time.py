#!/usr/bin/env python3
"""Post one time group JSON file to Jira.

Examples:
  python scripts/post_time.py time_group.json
  python scripts/post_time.py time_group.json --config config/config.yaml
"""

from __future__ import annotations
import argparse
import json
import os
import sys

from jiraconnector.config import load_connector_config
from jiraconnector.connector import build_connector
from jiraconnector.models import PostStatus, TimeGroup
from jiraconnector.utils.logging import configure_logging


def main() -> int:
    parser = argparse.ArgumentParser(description="Post a time group to Jira")
    parser.add_argument("time_group", help="Path to a time group JSON payload")
    parser.add_argument("--config", default=os.path.join("config", "config.example.yaml"))
    args = parser.parse_args()

    configure_logging()
    with open(args.time_group, "r", encoding="utf-8") as f:
        time_group = TimeGroup.from_dict(json.load(f))

    connector = build_connector(load_connector_config(args.config))
    try:
        connector.init()
        result = connector.on_time_posted(time_group)
    finally:
        connector.shutdown()

    print(f"{result.status.value}: {result.message}")
    return 0 if result.status == PostStatus.SUCCESS else 1


if __name__ == "__main__":
    sys.exit(main())
