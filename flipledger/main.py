"""CLI entry point for the automatic delist job.

Usage:
    python -m flipledger.main run
    python -m flipledger.main run --user 6f1c...-uuid
    python -m flipledger.main history --user 6f1c...-uuid --status failed --limit 20
"""

from __future__ import annotations

import argparse
import json
import sys
from dataclasses import asdict
from datetime import datetime
from typing import Any, Callable, Optional

from .common.config import Settings, settings as default_settings
from .common.database import create_supabase_client
from .common.logging import configure_root
from .delist.audit_log import AuditLogWriter, DelistHistory, HistoryPage
from .delist.credentials import TokenCredentialProvider
from .delist.locks import LockManager
from .delist.matcher import LinkMatcher
from .delist.orchestrator import DelistOrchestrator
from .delist.runner import DelistRunner, RunSummary
from .delist.storage import (
    DelistLogStore,
    LinkStore,
    LockStore,
    SaleStore,
    TokenStore,
    utc_now,
)
from .marketplaces.dispatcher import DelistDispatcher
from .marketplaces.http_client import MarketplaceHTTPClient
from .marketplaces.oauth import TokenRefresher


def build_runner(
    client: Any,
    config: Settings,
    dispatcher: Optional[DelistDispatcher] = None,
    clock: Callable[[], datetime] = utc_now,
    refresher: Optional[TokenRefresher] = None,
) -> DelistRunner:
    """Wire the delist pipeline around one Supabase client.

    The delist clients and the token refresher share one rate-limited
    HTTP transport unless they are passed in.
    """
    http = None
    if dispatcher is None or refresher is None:
        http = MarketplaceHTTPClient(config.marketplaces)
    links = LinkStore(client, clock=clock)
    sales = SaleStore(client)
    orchestrator = DelistOrchestrator(
        matcher=LinkMatcher(links),
        dispatcher=dispatcher or DelistDispatcher.default(config.marketplaces, http=http),
        links=links,
        sales=sales,
        audit_log=AuditLogWriter(DelistLogStore(client)),
        config=config.delist,
    )
    return DelistRunner(
        orchestrator=orchestrator,
        locks=LockManager(LockStore(client), config.delist, clock=clock),
        sales=sales,
        credentials=TokenCredentialProvider(
            TokenStore(client),
            config.delist,
            clock=clock,
            refresher=refresher or TokenRefresher(http, config.marketplaces),
        ),
    )


def _print_summary(summary: RunSummary) -> None:
    """Print a human-readable summary of the delist run."""
    print(f"\n{'=' * 60}")
    print("  Auto-Delist Run")
    print(f"{'=' * 60}")
    print(f"  Users processed:  {summary.users_processed}")
    print(f"  Users locked:     {summary.users_skipped}")
    print(f"  Users errored:    {summary.users_errored}")
    print(f"  Sales processed:  {summary.total_delists}")
    print(f"  Delisted:         {summary.successful_delists}")
    print()

    if summary.results:
        print(f"  {'User':<38} {'Done':>5} {'OK':>4} {'Skip':>5} {'Fail':>5}  Note")
        print(f"  {'-' * 38} {'-' * 5} {'-' * 4} {'-' * 5} {'-' * 5}  {'-' * 12}")
        for r in summary.results:
            note = "locked" if r.locked else (r.error or "")
            if not note and r.missing_credentials:
                note = "no token: " + ",".join(m.value for m in r.missing_credentials)
            d = r.delists
            print(
                f"  {r.user_id[:38]:<38} {d.processed:>5} {d.success:>4} "
                f"{d.skipped:>5} {d.failed:>5}  {note}"
            )
        print()


def _print_history(page: HistoryPage) -> None:
    s = page.summary
    print(
        f"\n  {s.total} entries: {s.success} success, {s.failed} failed, "
        f"{s.skipped} skipped, {s.not_found} not found\n"
    )
    for entry in page.logs:
        when = entry.created_at.strftime("%Y-%m-%d %H:%M") if entry.created_at else "-"
        sold = entry.sold_on.value if entry.sold_on else "?"
        removed = entry.delisted_from.value if entry.delisted_from else "?"
        route = f"{sold}->{removed}"
        print(
            f"  {when:<16} {entry.status.value:<10} {route:<14} "
            f"{entry.item_sku or '':<14} {entry.item_size or '':<6} {entry.error_message or ''}"
        )
    print()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="FlipLedger auto-delist: remove cross-listed duplicates after a sale",
    )
    parser.add_argument("--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    run_p = sub.add_parser("run", help="Process unprocessed sales")
    run_p.add_argument(
        "--user",
        type=str,
        default=None,
        help="Only process this user id (default: every user with tokens)",
    )

    hist_p = sub.add_parser("history", help="Show a user's delist log")
    hist_p.add_argument("--user", type=str, required=True, help="User id")
    hist_p.add_argument(
        "--status",
        type=str,
        default=None,
        help="Filter: success | failed | skipped | not_found",
    )
    hist_p.add_argument("--limit", type=int, default=None, help="Max entries (<= 200)")
    hist_p.add_argument("--json", action="store_true", help="Print JSON instead of a table")

    args = parser.parse_args(argv)
    configure_root(args.verbose)

    config = default_settings
    client = create_supabase_client(config.supabase)

    if args.command == "run":
        runner = build_runner(client, config)
        if args.user:
            summary = RunSummary(results=[runner.process_user(args.user)])
        else:
            summary = runner.run_all()
        _print_summary(summary)
        return 1 if summary.users_errored else 0

    history = DelistHistory(DelistLogStore(client), config.delist)
    page = history.query(args.user, limit=args.limit, status=args.status)
    if args.json:
        payload = {
            "logs": [entry.model_dump(mode="json") for entry in page.logs],
            "summary": asdict(page.summary),
        }
        json.dump(payload, sys.stdout, indent=2, ensure_ascii=False)
        print()
    else:
        _print_history(page)
    return 0


if __name__ == "__main__":
    sys.exit(main())
