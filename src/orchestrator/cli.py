"""
Store Review Insights CLI
=========================

Command-line access to the dashboard service. Every command prints JSON
to stdout; logs go to stderr.

Commands:
    stores      - List the stores selected by a scope
    reviews     - Fetch the reviews of a scope
    dashboard   - Full analytics of a scope

Usage:
    python -m src.orchestrator.cli stores --region Sul
    python -m src.orchestrator.cli reviews --store-id 12 --refresh
    python -m src.orchestrator.cli dashboard --state SP --kind team --granularity week
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from src.data import FetchTimeoutError, Scope, get_settings, sort_by_code
from src.reviews import ScopeNotFoundError

from .logging_config import setup_logging

logger = logging.getLogger(__name__)


def _scope(args) -> Scope:
    return Scope.of(
        store_id=args.store_id,
        team=args.team,
        state=args.state,
        region=args.region,
    )


def _print(payload) -> None:
    print(json.dumps(payload, indent=2, ensure_ascii=False, default=str))


def _service():
    # Lazy: pulls in the API stack
    from src.api.services import DashboardService
    return DashboardService(get_settings())


def cmd_stores(args, service) -> int:
    """List the stores selected by the scope."""
    stores = sort_by_code(service.get_stores(_scope(args)))
    _print({
        "total": len(stores),
        "stores": [dict(s.to_dict(), display_name=s.display_name) for s in stores],
    })
    return 0


def cmd_reviews(args, service) -> int:
    """Fetch the reviews of the scope."""
    result = asyncio.run(service.get_reviews(_scope(args), force_refresh=args.refresh))
    _print(result.to_dict())
    return 0


def cmd_dashboard(args, service) -> int:
    """Print the full dashboard of the scope."""
    payload = asyncio.run(service.get_dashboard(
        _scope(args),
        kind=args.kind,
        granularity=args.granularity,
        force_refresh=args.refresh,
    ))
    _print(payload)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="store-reviews",
        description="Store Review Insights CLI",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    # Scope flags shared by every command
    scope_parser = argparse.ArgumentParser(add_help=False)
    scope_parser.add_argument("--store-id", help="Store id (overrides every other filter)")
    scope_parser.add_argument("--team", help="Team label")
    scope_parser.add_argument("--state", help="State code")
    scope_parser.add_argument("--region", help="Region name")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    subparsers.add_parser("stores", parents=[scope_parser], help="List stores of a scope")

    reviews_parser = subparsers.add_parser("reviews", parents=[scope_parser], help="Fetch reviews of a scope")
    reviews_parser.add_argument(
        "--refresh",
        action="store_true",
        help="Bypass the cache",
    )

    dashboard_parser = subparsers.add_parser("dashboard", parents=[scope_parser], help="Full analytics of a scope")
    dashboard_parser.add_argument(
        "--kind",
        choices=["region", "state", "team"],
        default="region",
        help="Grouping for the scope analyses (default: region)",
    )
    dashboard_parser.add_argument(
        "--granularity",
        choices=["day", "week", "month"],
        default="day",
        help="Time series bucket (default: day)",
    )
    dashboard_parser.add_argument(
        "--refresh",
        action="store_true",
        help="Bypass the cache",
    )

    return parser


def main(argv: Optional[List[str]] = None, service=None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    settings = get_settings()
    setup_logging(
        level="DEBUG" if args.verbose else settings.logging.level,
        json_output=settings.logging.json_logs,
        log_file=settings.logging.log_file,
    )

    commands = {
        "stores": cmd_stores,
        "reviews": cmd_reviews,
        "dashboard": cmd_dashboard,
    }

    try:
        return commands[args.command](args, service or _service())
    except ScopeNotFoundError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2
    except FetchTimeoutError as e:
        print(f"ERROR: {e}. Narrow the filters to fetch fewer stores.", file=sys.stderr)
        return 3


if __name__ == "__main__":
    sys.exit(main())
