#!/usr/bin/env python3
"""
Squad Mission Control - workspace sync job

Usage:
    python run.py                     # Sync and budget check with config/config.yaml
    python run.py --workspace ~/ws    # Override the workspace root
    python run.py --dry-run           # Parse and evaluate, write nothing
    python run.py --status            # Show when the last sync ran
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys

from dotenv import load_dotenv

# Load environment variables (WORKSPACE_PATH)
load_dotenv()

from src.config import get_validated_config, load_config, set_config_value
from src.config_schema import AppConfig
from src.errors import MissionControlError
from src.sync import JsonFileStore, last_sync_status, run_cycle

logger = logging.getLogger("mission_control")


def configure_logging(config: AppConfig, quiet: bool) -> None:
    level = logging.WARNING if quiet else getattr(logging, config.logging.level)
    logging.basicConfig(level=level, format=config.logging.format)


async def run(args: argparse.Namespace, config: AppConfig) -> int:
    store = JsonFileStore(args.store or config.sync.store_path)

    if args.status:
        status = await last_sync_status(store)
        print(json.dumps(status or {"last_sync": None, "message": "No sync has been performed yet"}, indent=2))
        return 0

    report = await run_cycle(
        config,
        store,
        dry_run=args.dry_run,
        skip_alerts=args.skip_alerts,
    )
    if not args.quiet:
        print(json.dumps(report.to_dict(), indent=2, ensure_ascii=False))
    return 0 if report.success else 1


def main() -> None:
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        description="Sync the squad workspace into the mission control store"
    )
    parser.add_argument(
        "--config", default="config/config.yaml", help="Path to config file"
    )
    parser.add_argument("--workspace", help="Override workspace root")
    parser.add_argument("--store", help="Override JSON store path")
    parser.add_argument(
        "--dry-run", action="store_true", help="Parse and evaluate without writing"
    )
    parser.add_argument(
        "--skip-alerts", action="store_true", help="Sync only, no budget check"
    )
    parser.add_argument(
        "--status", action="store_true", help="Print the last sync status and exit"
    )
    parser.add_argument("--quiet", action="store_true", help="Suppress output")
    args: argparse.Namespace = parser.parse_args()

    load_config(args.config)
    if args.workspace:
        set_config_value("workspace.path", args.workspace)
    config = get_validated_config()

    configure_logging(config, args.quiet)

    try:
        sys.exit(asyncio.run(run(args, config)))
    except MissionControlError as e:
        logger.error("%s", e.message)
        sys.exit(2)


if __name__ == "__main__":
    main()
