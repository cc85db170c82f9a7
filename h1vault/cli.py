#!/usr/bin/env python3
"""
h1vault command line.

Examples:
  h1vault sync                      # run one sync cycle now
  h1vault watch                     # sync now, then every 10 minutes
  h1vault config set username alice
  h1vault config set api_token <token>
  h1vault summary                   # bounty totals from the synced notes
"""

import argparse
import dataclasses
import logging
import sys

from .config import DEFAULT_ENV_FILE, DEFAULT_LOG_FILE, ENV_KEYS, SettingsStore, coerce_setting, setup_logging
from .summary import print_summary, summarize_notes
from .sync import STATUS_OK, BugBountySync, SyncScheduler
from .vault import VaultStore

logger = logging.getLogger(__name__)


def load_settings(args):
    store = SettingsStore(args.env_file)
    settings = store.load()
    if args.vault_path:
        settings = dataclasses.replace(settings, vault_path=args.vault_path)
    return store, settings


def interval_arg(value):
    try:
        return coerce_setting('interval_seconds', value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def print_counters(counters):
    print("\n--- Sync Summary ---")
    print(f"  Status: {counters['status']}")
    print(f"  Notes created: {counters['created']}")
    print(f"  Notes updated: {counters['updated']}")
    print(f"  Notes unchanged: {counters['unchanged']}")
    if counters['errors'] > 0:
        print(f"  Errors: {counters['errors']}")


def cmd_sync(args):
    _, settings = load_settings(args)
    syncer = BugBountySync(settings)
    syncer.startup()
    counters = syncer.sync()
    print_counters(counters)
    return 0 if counters['status'] == STATUS_OK else 1


def cmd_watch(args):
    _, settings = load_settings(args)
    interval = args.interval or settings.interval_seconds
    syncer = BugBountySync(settings)
    syncer.startup()
    scheduler = SyncScheduler(syncer.sync, interval_seconds=interval)
    scheduler.start(run_immediately=True)
    try:
        scheduler.wait()
    except KeyboardInterrupt:
        logger.info("Interrupted, stopping scheduler...")
        scheduler.stop()
    return 0


def cmd_config(args):
    store, settings = load_settings(args)
    if args.action == 'set':
        if not args.field or args.value is None:
            print("Usage: config set <field> <value>")
            return 1
        try:
            settings = store.update(**{args.field: args.value})
        except ValueError as e:
            print(f"Error: {e}")
            return 1
        print(f"Updated {args.field}.")

    print("Current Configuration:")
    for key, value in settings.masked().items():
        print(f"  {key}: {value}")
    return 0


def cmd_summary(args):
    _, settings = load_settings(args)
    summary = summarize_notes(VaultStore(settings.vault_path), settings.bugs_folder)
    print_summary(summary)
    return 0


def build_parser():
    parser = argparse.ArgumentParser(
        description="Sync HackerOne reports and earnings into a Markdown vault.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--debug", action="store_true", help="Enable detailed debug logging.")
    parser.add_argument("--env-file", default=DEFAULT_ENV_FILE, help="Settings file (default: .env).")
    parser.add_argument("--log-file", default=DEFAULT_LOG_FILE, help="Log file (default: h1vault.log). Empty to disable.")
    parser.add_argument("--vault-path", default=None, help="Vault root directory (overrides H1_VAULT_PATH).")

    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("sync", help="Run one sync cycle now")

    watch_parser = subparsers.add_parser("watch", help="Sync now and then periodically")
    watch_parser.add_argument("--interval", type=interval_arg, default=None, help="Seconds between cycles (default: H1_SYNC_INTERVAL or 600).")

    config_parser = subparsers.add_parser("config", help="Show or change settings")
    config_parser.add_argument("action", choices=["show", "set"])
    config_parser.add_argument("field", nargs="?", choices=sorted(ENV_KEYS), help="Setting to change")
    config_parser.add_argument("value", nargs="?", help="New value")

    subparsers.add_parser("summary", help="Print bounty totals from the synced notes")
    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(debug=args.debug, log_file=args.log_file or None)

    commands = {
        "sync": cmd_sync,
        "watch": cmd_watch,
        "config": cmd_config,
        "summary": cmd_summary,
    }
    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
