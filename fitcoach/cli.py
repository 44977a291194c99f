# -*- coding: utf-8 -*-
"""
Command line entry point.

Usage:
    fitcoach serve [--host HOST] [--port PORT]
    fitcoach sync [--precache]
    fitcoach status
    fitcoach reminders
    fitcoach clear-cache [--all] [--yes]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys

from .config import settings
from .logging_config import setup_logging


def _build_local():
    from .cache.store import CacheStore
    from .session import AuthSession
    from .sync.queue import SyncQueue

    cache = CacheStore()
    return cache, SyncQueue(cache), AuthSession(cache)


def cmd_serve(args: argparse.Namespace) -> int:
    """Run the API server."""
    import uvicorn

    uvicorn.run("fitcoach.api:app", host=args.host, port=args.port or settings.port, log_config=None)
    return 0


async def _sync(args: argparse.Namespace) -> int:
    from .backend import create_backend_client
    from .errors import BackendNotConfigured
    from .offline import OfflineContext, precache_user_data
    from .sync.manager import SyncManager

    cache, queue, session = _build_local()
    try:
        client = await create_backend_client()
    except BackendNotConfigured as exc:
        print(f"Error: {exc}")
        return 1

    context = OfflineContext(queue, SyncManager(client, queue, cache))
    context.initialize()
    print(f"Pending operations: {context.pending_operations}")
    await context.set_network_state(True, True)
    result = await context.sync_now()
    if result is None:
        print("Sync did not run.")
        return 1
    print(f"Processed: {result.processed}  Failed: {result.failed}")
    for err in result.errors:
        print(f"  {err.operation_id}: {err.error}")

    if args.precache:
        if not session.restore():
            print("No cached user; skipping precache.")
        else:
            states = await precache_user_data(client, context, session)
            for name, state in states.items():
                origin = "cache" if state.is_from_cache else "backend"
                print(f"  {name}: {origin}" + (f" ({state.error})" if state.error else ""))
    return 0 if result.failed == 0 else 2


def cmd_sync(args: argparse.Namespace) -> int:
    """Replay queued mutations against the backend."""
    return asyncio.run(_sync(args))


def cmd_status(args: argparse.Namespace) -> int:
    """Show queue and cache status."""
    from .cache.keys import CacheKeys
    from .offline.precache import get_cached_home_stats
    from .sync.manager import pending_summary

    cache, queue, session = _build_local()
    session.restore()

    print(f"Database: {cache.db_path}")
    print(f"Signed in: {session.user_id or '-'}")
    print(f"Last sync: {cache.get_cache(CacheKeys.last_sync_time) or 'never'}")
    print(f"Pending operations: {queue.get_queue_length()}")
    for row in pending_summary(queue):
        print(f"  {row['operation']}: {row['count']}")
    failed = queue.get_failed_operations()
    print(f"Failed operations: {len(failed)}")
    for op in failed:
        print(f"  {op.type.value}/{op.action.value} {op.id}: {op.error}")
    print(f"Cache entries: {len(cache.get_all_cache_keys())}")
    if session.user_id:
        stats = get_cached_home_stats(cache, session.user_id)
        if stats is not None:
            print(f"Home stats ({stats.date}):")
            print(f"  workouts completed: {stats.workouts_completed}")
            print(f"  meals: {stats.meals_logged}/{stats.meals_planned}")
            print(f"  steps: {stats.steps_count}/{stats.steps_goal}")
            print(f"  water: {stats.water_intake}/{stats.water_goal} ml")
            print(f"  supplements: {stats.supplements_taken}/{stats.supplements_total}")
            print(f"  check-in: {stats.check_in_status}")
    return 0


async def _reminders(args: argparse.Namespace) -> int:
    from .backend import create_backend_client
    from .errors import BackendNotConfigured
    from .reminders.generator import generate_reminders

    _, _, session = _build_local()
    if not session.restore():
        print("No cached user. Sign in from the app first.")
        return 1
    try:
        client = await create_backend_client()
    except BackendNotConfigured as exc:
        print(f"Error: {exc}")
        return 1

    reminders = await generate_reminders(client, session.user_id, session.profile)
    if args.json:
        print(json.dumps([r.model_dump(mode="json") for r in reminders], indent=2, ensure_ascii=False))
        return 0
    if not reminders:
        print("Nothing due.")
    for r in reminders:
        print(f"[{r.priority.value:>6}] {r.title}: {r.message}")
    return 0


def cmd_reminders(args: argparse.Namespace) -> int:
    """Print the reminders that apply right now."""
    return asyncio.run(_reminders(args))


def cmd_clear_cache(args: argparse.Namespace) -> int:
    """Clear cached data for the last user, or everything."""
    cache, _, session = _build_local()
    session.restore()

    if not args.all and not session.user_id:
        print("No cached user; use --all to clear everything.")
        return 0

    if not args.yes:
        scope = "all cached data" if args.all else f"cached data for {session.user_id}"
        confirm = input(f"Are you sure you want to clear {scope}? [y/N] ")
        if confirm.lower() != "y":
            print("Cancelled.")
            return 0

    removed = cache.clear_all_cache() if args.all else cache.clear_user_cache(session.user_id)
    print(f"Removed {removed} cache entries.")
    return 0


def main() -> int:
    parser = argparse.ArgumentParser(
        description="fitcoach offline data layer",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--log-level", help="Override FITCOACH_LOG_LEVEL")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", default="0.0.0.0")
    serve_parser.add_argument("--port", type=int, default=None, help="Default: PORT or 5000")

    sync_parser = subparsers.add_parser("sync", help="Replay the offline queue")
    sync_parser.add_argument("--precache", action="store_true", help="Refresh cached data afterwards")

    subparsers.add_parser("status", help="Show queue and cache status")

    reminders_parser = subparsers.add_parser("reminders", help="Show current reminders")
    reminders_parser.add_argument("--json", action="store_true", help="Print as JSON")

    clear_parser = subparsers.add_parser("clear-cache", help="Clear cached data")
    clear_parser.add_argument("--all", action="store_true", help="Clear every user's cache")
    clear_parser.add_argument("-y", "--yes", action="store_true", help="Skip confirmation")

    args = parser.parse_args()
    setup_logging(args.log_level)

    commands = {
        "serve": cmd_serve,
        "sync": cmd_sync,
        "status": cmd_status,
        "reminders": cmd_reminders,
        "clear-cache": cmd_clear_cache,
    }
    if args.command not in commands:
        parser.print_help()
        return 0
    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
