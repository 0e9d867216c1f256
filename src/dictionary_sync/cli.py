"""Command line interface for dictionary-sync.

Every command loads the persisted settings, acts, and persists again.
``watch`` keeps the periodic sync running until interrupted and then runs
a bounded final sync.

Notices and listings go to stdout; logs go to stderr.
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path

from . import __version__
from .bootstrap import build_orchestrator, resolve_config
from .config_loader import ensure_config
from .errors import ConfigError
from .logger import setup_logging
from .sync.models import SyncOutcome, SyncTrigger
from .sync.orchestrator import SyncOrchestrator
from .sync.reporter import (
    format_status,
    format_sync_report,
    format_word_list,
    report_to_json,
)
from .sync.resolver import CONFLICT_STRATEGIES, THRESHOLD_STRATEGIES
from .sync.store import STORE_KINDS

logger = logging.getLogger(__name__)


def _echo(message: str) -> None:
    print(message, flush=True)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def _cmd_add(orchestrator: SyncOrchestrator, args) -> int:
    added = 0
    for text in args.words:
        if await orchestrator.add_word(text) is not None:
            added += 1
    return 0 if added else 1


async def _cmd_remove(orchestrator: SyncOrchestrator, args) -> int:
    removed = 0
    for text in args.words:
        if await orchestrator.remove_word(text):
            removed += 1
    return 0 if removed == len(args.words) else 1


async def _cmd_list(orchestrator: SyncOrchestrator, args) -> int:
    if args.json:
        matches = orchestrator.search(args.filter)
        _echo(
            json.dumps(
                {"words": matches, "total": len(orchestrator.words)},
                indent=2,
            )
        )
    else:
        _echo(format_word_list(orchestrator.words, args.filter))
    return 0


async def _cmd_sync(orchestrator: SyncOrchestrator, args) -> int:
    report = await orchestrator.sync(
        SyncTrigger.MANUAL, interactive=not args.non_interactive
    )
    if args.json:
        _echo(json.dumps(report_to_json(report), indent=2))
    else:
        _echo(format_sync_report(report))
    return 0 if report.outcome == SyncOutcome.COMMITTED else 1


async def _cmd_watch(orchestrator: SyncOrchestrator, args) -> int:
    report = await orchestrator.start()
    _echo(format_sync_report(report))
    _echo(
        f"Watching {orchestrator.settings_store.path} every "
        f"{orchestrator.settings.polling_interval:g}s. Press Ctrl-C to stop."
    )
    try:
        await asyncio.Event().wait()
    finally:
        final = await orchestrator.shutdown()
        if final is not None:
            _echo(format_sync_report(final))
    return 0


async def _cmd_status(orchestrator: SyncOrchestrator, args) -> int:
    status = orchestrator.status()
    if args.json:
        _echo(json.dumps(status, indent=2))
    else:
        _echo(format_status(status))
    return 0


async def _cmd_settings(orchestrator: SyncOrchestrator, args) -> int:
    polling_rate_ms = None
    if args.polling_rate is not None:
        polling_rate_ms = int(round(args.polling_rate * 1000))
    if args.threshold is not None or polling_rate_ms is not None:
        try:
            await orchestrator.update_settings(
                warning_threshold=args.threshold,
                sync_polling_rate=polling_rate_ms,
            )
        except ValueError as e:
            print(f"ERROR: Invalid setting: {e}", file=sys.stderr)
            return 1
    _echo(f"Warning threshold: {orchestrator.settings.warning_threshold}")
    _echo(f"Polling rate:      {orchestrator.settings.polling_interval:g}s")
    return 0


_COMMANDS = {
    "add": _cmd_add,
    "remove": _cmd_remove,
    "list": _cmd_list,
    "sync": _cmd_sync,
    "watch": _cmd_watch,
    "status": _cmd_status,
    "settings": _cmd_settings,
}


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="dictionary-sync",
        description="Keep a personal spell-check dictionary in sync across machines",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Add words to the shared dictionary and the native one
  dictionary-sync add colour behaviour

  # Share the list through a synced folder, sync once
  dictionary-sync --settings-file ~/Sync/dictionary.json sync

  # Keep syncing in the background until Ctrl-C
  dictionary-sync --store hunspell --store-path ~/.hunspell_en_US watch

  # Ask before removing 10 or more words, poll every 30 seconds
  dictionary-sync settings --threshold 10 --polling-rate 30
        """,
    )
    parser.add_argument("--config", help="YAML config file (default: discovered)")
    parser.add_argument(
        "--settings-file",
        help="Shared settings file (overrides DICTIONARY_SYNC_SETTINGS_FILE)",
    )
    parser.add_argument(
        "--store",
        choices=STORE_KINDS,
        help="Native dictionary adapter (overrides DICTIONARY_SYNC_STORE)",
    )
    parser.add_argument(
        "--store-path",
        help="Personal dictionary file for hunspell/aspell",
    )
    parser.add_argument(
        "--conflict-strategy",
        choices=CONFLICT_STRATEGIES,
        help="How conflicting words are decided",
    )
    parser.add_argument(
        "--threshold-strategy",
        choices=THRESHOLD_STRATEGIES,
        help="How bulk removals are decided",
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )
    parser.add_argument("--log-file", help="Also write logs to this file")
    parser.add_argument(
        "--version",
        action="version",
        version=f"dictionary-sync version {__version__}",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("add", help="Add words (surrounding whitespace is trimmed)")
    p.add_argument("words", nargs="+")

    p = sub.add_parser("remove", help="Remove words")
    p.add_argument("words", nargs="+")

    p = sub.add_parser("list", help="List the dictionary")
    p.add_argument("--filter", help="Case-insensitive substring filter")
    p.add_argument("--json", action="store_true", help="JSON output")

    p = sub.add_parser("sync", help="Run one sync cycle")
    p.add_argument(
        "--non-interactive",
        action="store_true",
        help="End without changes instead of asking",
    )
    p.add_argument("--json", action="store_true", help="JSON output")

    sub.add_parser("watch", help="Sync periodically until interrupted")

    p = sub.add_parser("status", help="Show sync status")
    p.add_argument("--json", action="store_true", help="JSON output")

    p = sub.add_parser("settings", help="Show or change sync settings")
    p.add_argument(
        "--threshold",
        type=int,
        help="Ask before removing at least this many words",
    )
    p.add_argument(
        "--polling-rate",
        type=float,
        metavar="SECONDS",
        help="Seconds between periodic syncs",
    )

    sub.add_parser("init", help="Write a starter config file")
    return parser


def _overrides(args: argparse.Namespace) -> dict:
    overrides = {}
    for key in (
        "config",
        "settings_file",
        "store",
        "store_path",
        "conflict_strategy",
        "threshold_strategy",
    ):
        value = getattr(args, key, None)
        if value:
            overrides[key] = value
    if args.debug:
        overrides["debug"] = True
    return overrides


async def main(args: argparse.Namespace) -> int:
    """Run one parsed command and return its exit status."""
    if args.command == "init":
        target = Path(args.config).expanduser() if args.config else None
        path = ensure_config(target)
        _echo(f"Config file: {path}")
        return 0

    try:
        config, yaml_config, _ = resolve_config(_overrides(args))
        # LOG_LEVEL and --debug win over the config file.
        if not args.debug and not os.getenv("LOG_LEVEL"):
            logging.getLogger().setLevel(yaml_config.logging.level.upper())
        orchestrator = build_orchestrator(config, notifier=_echo)
    except ValueError as e:
        logger.error("Configuration error: %s", e)
        print(f"ERROR: Configuration error: {e}", file=sys.stderr)
        return 1

    if args.command != "watch":
        await orchestrator.load()
    return await _COMMANDS[args.command](orchestrator, args)


def run(argv: list[str] | None = None) -> None:
    """Console script entry point."""
    args = build_parser().parse_args(argv)
    setup_logging(mode="cli", debug=args.debug, log_file=args.log_file)

    try:
        code = asyncio.run(main(args))
    except ConfigError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        code = 1
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        code = 0
    sys.exit(code)


if __name__ == "__main__":
    run()
