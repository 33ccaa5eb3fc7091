"""Push the local library to Supabase, or inspect sync status.

Usage:
    stashbox-sync push [--json]
    stashbox-sync pull [--json]
    stashbox-sync status [--json]

Configuration comes from the environment (or ``.env``): SUPABASE_ENABLED,
SUPABASE_URL, SUPABASE_ANON_KEY, SUPABASE_ACCESS_TOKEN and DB_PATH.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import TYPE_CHECKING

from stashbox.adapters.supabase import CloudSyncService, SupabaseClient
from stashbox.config import AppConfig, load_config
from stashbox.core.logging_utils import setup_json_logging
from stashbox.db.session import DatabaseSessionManager
from stashbox.infrastructure.persistence.sqlite.repositories import (
    SqliteLibraryRepositoryAdapter,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from stashbox.adapters.supabase.models import SyncResult, SyncStatus

logger = logging.getLogger(__name__)

__all__ = ["main", "run_command"]

MAX_PRINTED_ERRORS = 10
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _print_result(title: str, result: SyncResult) -> None:
    print(f"\n=== {title} ===")
    if result.not_implemented:
        print("Pull from cloud is not implemented yet; nothing was changed.")
    print(
        f"Folders: {result.folders_synced}  Tags: {result.tags_synced}  "
        f"Items: {result.items_synced}"
    )
    print(f"Duration: {result.duration_seconds:.1f}s  (run {result.correlation_id})")
    if result.errors:
        print(f"\nErrors ({len(result.errors)}):")
        for err in result.errors[:MAX_PRINTED_ERRORS]:
            print(f"  - {err}")
        if len(result.errors) > MAX_PRINTED_ERRORS:
            print(f"  ... and {len(result.errors) - MAX_PRINTED_ERRORS} more")
        if result.retryable_errors:
            print(f"{len(result.retryable_errors)} look transient; re-run to retry them.")


def _print_status(status: SyncStatus) -> None:
    print("\n=== Sync Status ===")
    print(f"Signed in: {'yes' if status.is_authenticated else 'no'}")
    last = status.last_sync_at.isoformat() if status.last_sync_at else "never (this session)"
    print(f"Last sync: {last}")
    counts = status.local_counts
    print(f"Local: {counts.items} items, {counts.folders} folders, {counts.tags} tags")
    for warning in status.warnings:
        print(f"  ! {warning}")


async def run_command(command: str, cfg: AppConfig, *, as_json: bool = False) -> int:
    """Run one CLI command against the configured stores.

    Returns:
        Exit code (0 for success, 1 for error)
    """
    if not cfg.supabase.enabled:
        logger.warning("cloud_sync_disabled")
        print("Cloud sync is disabled. Set SUPABASE_ENABLED=true to enable.", file=sys.stderr)
        return 1
    if not cfg.supabase.is_configured:
        logger.error("cloud_sync_not_configured")
        print(
            "Supabase is not configured. Set SUPABASE_URL, SUPABASE_ANON_KEY "
            "and SUPABASE_ACCESS_TOKEN.",
            file=sys.stderr,
        )
        return 1

    db = DatabaseSessionManager(
        cfg.runtime.db_path,
        operation_timeout=cfg.database.operation_timeout,
        max_retries=cfg.database.max_retries,
    )
    db.migrate()
    local = SqliteLibraryRepositoryAdapter(db)

    try:
        async with SupabaseClient(
            cfg.supabase.api_url,
            cfg.supabase.anon_key,
            cfg.supabase.access_token,
            timeout=cfg.supabase.timeout_sec,
            max_retries=cfg.supabase.max_retries,
        ) as remote:
            service = CloudSyncService(
                local, remote, ensure_profile=cfg.cloud_sync.ensure_profile
            )

            if command == "status":
                status = await service.get_sync_status()
                if as_json:
                    print(status.model_dump_json(indent=2))
                else:
                    _print_status(status)
                return 0

            if command == "pull":
                result = await service.pull_from_cloud()
                title = "Cloud Pull"
            else:
                result = await service.sync_all()
                title = "Cloud Sync Summary"

            if as_json:
                print(result.model_dump_json(indent=2))
            else:
                _print_result(title, result)
            return 0 if result.success else 1
    finally:
        db.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="stashbox-sync", description="Push the local Stashbox library to Supabase"
    )
    parser.add_argument(
        "command",
        nargs="?",
        choices=("push", "pull", "status"),
        default="push",
        help="push (default): upload everything; pull: not implemented; status: show state",
    )
    parser.add_argument("--json", action="store_true", help="Print the result as JSON")
    parser.add_argument(
        "--log-level",
        default=None,
        type=str.upper,
        choices=LOG_LEVELS,
        help="Override LOG_LEVEL",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        cfg = load_config()
    except RuntimeError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        sys.exit(1)

    level = (args.log_level or cfg.runtime.log_level).upper()
    if cfg.runtime.log_json:
        setup_json_logging(level, use_loguru=cfg.runtime.log_use_loguru)
    else:
        logging.basicConfig(
            level=level,
            format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            handlers=[logging.StreamHandler()],
        )

    try:
        exit_code = asyncio.run(run_command(args.command, cfg, as_json=args.json))
    except Exception as exc:
        logger.exception("cloud_sync_cli_failed")
        print(f"\nERROR: {exc}", file=sys.stderr)
        exit_code = 1
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
