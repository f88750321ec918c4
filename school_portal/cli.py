"""Command-line access to the school portal backend.

Lists or exports any table and manages the persisted admin session.
"""

from __future__ import annotations

import argparse
import asyncio
import getpass
import json
import logging
import sys
from typing import Optional, Sequence

from school_portal.config import Settings, get_settings
from school_portal.context import AppContext
from school_portal.pages.dashboard import SECTIONS
from school_portal.services.backend import BackendError
from school_portal.ui import DataExport
from school_portal.utils import retry_async

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level, format=LOG_FORMAT)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="school-portal",
        description="Browse and export school portal data.",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--log-level", help="Override the configured log level")
    commands = parser.add_subparsers(dest="command", required=True)

    list_cmd = commands.add_parser("list", help="Print the rows of a table as JSON")
    list_cmd.add_argument("table", choices=SECTIONS)
    list_cmd.add_argument("--retry", action="store_true", help="Retry failed fetches with backoff")

    export_cmd = commands.add_parser("export", help="Write a table to a CSV or JSON file")
    export_cmd.add_argument("table", choices=SECTIONS)
    export_cmd.add_argument("--format", choices=("csv", "json"), default="csv")
    export_cmd.add_argument("--output", required=True, help="Destination file path")
    export_cmd.add_argument("--retry", action="store_true", help="Retry failed fetches with backoff")

    login_cmd = commands.add_parser("login", help="Sign in and persist the session")
    login_cmd.add_argument("email")

    commands.add_parser("logout", help="Forget the persisted session")
    commands.add_parser("whoami", help="Show the signed-in user")
    return parser.parse_args(argv)


async def fetch_rows(ctx: AppContext, table: str, settings: Settings, *, retry: bool = False) -> list:
    repository = ctx.gateways.by_table(table)
    if not retry:
        return await repository.list()
    return await retry_async(
        repository.list,
        attempts=settings.retry_attempts,
        delay=settings.retry_delay,
    )


async def run(args: argparse.Namespace, settings: Settings, ctx: Optional[AppContext] = None) -> int:
    ctx = ctx or AppContext.from_settings(settings)
    async with ctx:
        if args.command in ("list", "export"):
            rows = await fetch_rows(ctx, args.table, settings, retry=args.retry)
            if args.command == "list":
                print(DataExport.to_json(rows))
            else:
                path = DataExport.write(rows, args.output, format=args.format)
                print(f"Exported {len(rows)} rows to {path}")
            return 0

        session = ctx.session
        if args.command == "login":
            password = getpass.getpass("Password: ")
            user = await session.sign_in(args.email, password)
            print(f"Signed in as {user.email}")
        elif args.command == "logout":
            session.sign_out()
            print("Signed out")
        elif args.command == "whoami":
            if not session.is_authenticated():
                print("Not signed in")
                return 1
            print(json.dumps(session.user.to_dict(), ensure_ascii=False))
        return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    configure_logging((args.log_level or settings.log_level).upper())
    try:
        return asyncio.run(run(args, settings))
    except BackendError as exc:
        logger.error("%s failed: %s", args.command, exc)
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
