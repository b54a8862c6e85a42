from __future__ import annotations
import argparse
import logging
import os
import sys

from jiraconnector.config import load_connector_config
from jiraconnector.connector import build_connector
from jiraconnector.errors import ConnectorError
from jiraconnector.utils.logging import configure_logging


def main() -> int:
    parser = argparse.ArgumentParser(description="Sync Jira issues to tags")
    parser.add_argument("--config", default=os.path.join("config", "config.example.yaml"))
    parser.add_argument("--mode", choices=["all", "new", "refresh"], default="all")
    args = parser.parse_args()

    configure_logging()
    log = logging.getLogger("run_sync")
    connector = build_connector(load_connector_config(args.config))
    try:
        connector.init()
        if args.mode == "all":
            connector.perform_tag_update()
        elif args.mode == "new":
            connector.on_scheduled_sync()
        else:
            connector.on_refresh_sync()
    except ConnectorError as e:
        log.error("Sync failed: %s", e)
        return 1
    finally:
        connector.shutdown()
    return 0


if __name__ == "__main__":
    sys.exit(main())
