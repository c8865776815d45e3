import argparse
import json
import sys

from loguru import logger

from techtask_radar.config import get_settings
from techtask_radar.db.database import get_engine, init_db
from techtask_radar.errors import ConfigurationError, PersistenceError
from techtask_radar.logging_setup import configure_logging
from techtask_radar.scheduler.jobs import run_once
from techtask_radar.storage.seen import build_seen_store


def run_check() -> int:
    """Crawl once and post new tasks; returns the process exit code."""
    settings = get_settings()
    try:
        settings.ensure_complete()
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 2

    result = run_once(settings)
    print(json.dumps(result.to_dict(), ensure_ascii=False))
    return 0 if result.ok else 1


def run_schedule() -> int:
    from techtask_radar.scheduler.runner import create_scheduler

    settings = get_settings()
    try:
        settings.ensure_complete()
    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        return 2

    scheduler = create_scheduler(settings, blocking=True)
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        logger.info("Scheduler stopped")
    return 0


def init_database() -> int:
    """Create the blobs table."""
    settings = get_settings()
    init_db(get_engine(settings.database_url))
    return 0


def show_seen() -> int:
    settings = get_settings()
    try:
        seen = build_seen_store(settings).load()
    except PersistenceError as e:
        logger.error(f"Could not load seen links: {e}")
        return 1
    print(len(seen))
    return 0


def main():
    parser = argparse.ArgumentParser(description="Astana Hub tech-task watcher")
    parser.add_argument("--log-level", default="INFO", help="Log level (default: INFO)")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # run command
    subparsers.add_parser("run", help="Crawl once and post new tasks")

    # schedule command
    subparsers.add_parser("schedule", help="Run the check periodically")

    # serve command
    subparsers.add_parser("serve", help="Start API server")

    # init-db command
    subparsers.add_parser("init-db", help="Initialize database")

    # seen command
    subparsers.add_parser("seen", help="Print the number of delivered links")

    args = parser.parse_args()
    configure_logging(args.log_level)

    if args.command == "run":
        sys.exit(run_check())
    elif args.command == "schedule":
        sys.exit(run_schedule())
    elif args.command == "serve":
        import uvicorn

        settings = get_settings()
        uvicorn.run(
            "techtask_radar.main:app",
            host=settings.api_host,
            port=settings.api_port,
            reload=settings.debug,
        )
    elif args.command == "init-db":
        sys.exit(init_database())
    elif args.command == "seen":
        sys.exit(show_seen())
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
