"""
Wallet history CLI.

Usage:
  python -m wallet_history backfill <ADDRESS>        # 365-day history for one wallet
  python -m wallet_history sweep [--schedule]        # 24h sweep of all tracked wallets
  python -m wallet_history wallets add|remove <ADDRESS>
  python -m wallet_history wallets list
  python -m wallet_history history <ADDRESS> [--limit N]

Exit codes: 0 run completed, 1 run aborted by an unhandled error, 2 usage error.
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Sequence

from wallet_history.config import Settings, get_settings
from wallet_history.database import WalletRegistry, get_database, is_valid_wallet
from wallet_history.history_logging import get_logger
from wallet_history.worker import run_backfill, run_incremental_sweep, run_scheduled_sweep

logger = get_logger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wallet-history",
        description="Ingest Solana wallet SOL transfer history into local storage.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    backfill = sub.add_parser("backfill", help="Historical backfill for one wallet.")
    backfill.add_argument("address", help="Base58 wallet address.")

    sweep = sub.add_parser("sweep", help="Incremental sweep for all tracked wallets.")
    sweep.add_argument(
        "--no-seed",
        action="store_true",
        help="Do not register DEFAULT_WALLET when no wallets are tracked.",
    )
    sweep.add_argument(
        "--schedule",
        action="store_true",
        help="Keep running and repeat the sweep every SWEEP_INTERVAL_SEC.",
    )

    wallets = sub.add_parser("wallets", help="Manage tracked wallets.")
    wallets_sub = wallets.add_subparsers(dest="wallets_command", required=True)
    add = wallets_sub.add_parser("add", help="Track a wallet.")
    add.add_argument("address")
    remove = wallets_sub.add_parser("remove", help="Stop tracking a wallet.")
    remove.add_argument("address")
    wallets_sub.add_parser("list", help="List tracked wallets.")

    history = sub.add_parser("history", help="Print stored transfers for a wallet as JSON lines.")
    history.add_argument("address")
    history.add_argument("--limit", type=int, default=500)
    return parser


def _cmd_backfill(settings: Settings, args: argparse.Namespace) -> int:
    if not is_valid_wallet(args.address):
        logger.error("cli_invalid_wallet", wallet=args.address)
        return EXIT_USAGE
    summary = run_backfill(settings, args.address)
    logger.info(
        "cli_backfill_done",
        stored=summary.stored,
        signatures_seen=summary.signatures_seen,
        failed_wallets=len(summary.failed_wallets),
    )
    return EXIT_OK


def _cmd_sweep(settings: Settings, args: argparse.Namespace) -> int:
    if args.schedule:
        return run_scheduled_sweep(settings, seed_default=not args.no_seed)
    summary = run_incremental_sweep(settings, seed_default=not args.no_seed)
    logger.info(
        "cli_sweep_done",
        wallets=summary.wallets,
        stored=summary.stored,
        failed_wallets=len(summary.failed_wallets),
    )
    return EXIT_OK


def _cmd_wallets(settings: Settings, args: argparse.Namespace) -> int:
    registry = WalletRegistry(settings.database_url)
    try:
        registry.init_db()
        if args.wallets_command == "add":
            if not is_valid_wallet(args.address):
                logger.error("cli_invalid_wallet", wallet=args.address)
                return EXIT_USAGE
            added = registry.add_wallet(args.address)
            print(json.dumps({"wallet": args.address.strip(), "registered": added}))
        elif args.wallets_command == "remove":
            removed = registry.remove_wallet(args.address)
            print(json.dumps({"wallet": args.address.strip(), "removed": removed}))
        else:
            for wallet in registry.list_wallets():
                print(json.dumps({"id": wallet.id, "wallet": wallet.address}))
    finally:
        registry.dispose()
    return EXIT_OK


def _cmd_history(settings: Settings, args: argparse.Namespace) -> int:
    db = get_database(settings.db_path)
    for record in db.get_transfer_history(args.address.strip(), limit=args.limit):
        row = record.to_dict()
        row["direction"] = record.direction_for(args.address.strip())
        print(json.dumps(row))
    return EXIT_OK


_COMMANDS = {
    "backfill": _cmd_backfill,
    "sweep": _cmd_sweep,
    "wallets": _cmd_wallets,
    "history": _cmd_history,
}


def main(argv: Sequence[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    try:
        settings = get_settings()
    except ValueError as e:
        logger.error("cli_config_error", error=str(e))
        return EXIT_USAGE
    try:
        return _COMMANDS[args.command](settings, args)
    except KeyboardInterrupt:
        logger.info("cli_interrupted", command=args.command)
        return EXIT_FAILURE
    except Exception as e:
        logger.exception("cli_run_failed", command=args.command, error=str(e))
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
