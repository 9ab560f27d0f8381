"""Anything AI entry point.

Changes:
  - 2026-09-12: Added ``usage`` subcommand (prints recent token usage).
  - 2026-09-08: Added ``seed`` subcommand (upserts the default departments).
  - 2026-09-05: ``serve`` is the default subcommand.
"""

import argparse
import asyncio
import logging

from anythingai.config import Settings, get_settings
from anythingai.logging_setup import setup_logging

logger = logging.getLogger(__name__)


def run_seed(settings: Settings) -> int:
    from anythingai.store.file_store import FileChatStore
    from anythingai.store.seed import seed_departments

    store = FileChatStore(settings.store_path)
    departments = asyncio.run(seed_departments(store))
    for d in departments:
        code = f"code: {d.access_code}" if d.access_code else "no code"
        print(f'Department: "{d.name}" {d.icon} - {code}')
    print("Done. All departments seeded. Register with any department name.")
    return 0


def run_usage(settings: Settings, limit: int) -> int:
    from rich.console import Console
    from rich.table import Table

    from anythingai.llm.usage import UsageLogger

    records = UsageLogger(settings.usage_log_path).read_recent(limit)
    console = Console()
    if not records:
        console.print("No usage recorded yet.")
        return 0

    table = Table(title=f"Last {len(records)} requests")
    for column in ("Timestamp", "Model", "Input", "Output", "Total", "Duration (ms)"):
        table.add_column(column)
    for r in records:
        table.add_row(
            r.timestamp,
            r.model,
            str(r.inputTokens),
            str(r.outputTokens),
            str(r.totalTokens),
            str(r.durationMs),
        )
    console.print(table)
    return 0


def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        description="Anything AI - chat backend",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  anythingai                         Start the API server (default)
  anythingai serve --port 3001       Start the API server on a given port
  anythingai serve --dev             Start with auto-reload (dev mode)
  anythingai seed                    Create or update the default departments
  anythingai usage --limit 20        Show the 20 most recent usage records
""",
    )
    parser.add_argument(
        "command",
        nargs="?",
        default="serve",
        choices=["serve", "seed", "usage"],
        help="Subcommand (default: serve)",
    )
    parser.add_argument("--host", default=None, help="Bind address (default from settings)")
    parser.add_argument("--port", type=int, default=None, help="Port (default from settings)")
    parser.add_argument("--dev", action="store_true", help="Auto-reload on code changes")
    parser.add_argument(
        "--limit", type=int, default=50, help="Number of records for 'usage' (default: 50)"
    )

    args = parser.parse_args()

    settings = get_settings()
    setup_logging(level=settings.log_level)

    try:
        if args.command == "seed":
            raise SystemExit(run_seed(settings))
        elif args.command == "usage":
            raise SystemExit(run_usage(settings, args.limit))
        else:
            from anythingai.api.serve import run_server

            run_server(host=args.host, port=args.port, dev=args.dev)
    except KeyboardInterrupt:
        logger.info("Anything AI stopped.")


if __name__ == "__main__":
    main()
