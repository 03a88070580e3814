# main.py

"""Entry point for the price_tracker command line."""

import argparse
import logging
import sys

from src.config.logging_config import setup_logging
from src.config.settings import Settings

logger = logging.getLogger("price_tracker.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    store_labels = ", ".join(s["label"] for s in Settings.AVAILABLE_STORES)

    parser = argparse.ArgumentParser(
        prog="price_tracker",
        description="Track product prices and get alerted on drops.",
        epilog=f"Supported stores: {store_labels}",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    add = commands.add_parser("add", help="Start tracking a product URL.")
    add.add_argument("url", help="Product page URL.")
    add.add_argument("-o", "--owner", required=True, help="Owner id or e-mail.")
    add.add_argument(
        "-t",
        "--target",
        default=None,
        help="Alert when the price falls to or below this value.",
    )

    list_cmd = commands.add_parser("list", help="List tracked items.")
    list_cmd.add_argument("-o", "--owner", required=True)
    list_cmd.add_argument(
        "-a",
        "--all",
        action="store_true",
        default=False,
        dest="include_inactive",
        help="Include removed items.",
    )

    history = commands.add_parser("history", help="Show an item's prices.")
    history.add_argument("item_id", type=int)
    history.add_argument("-o", "--owner", required=True)

    target = commands.add_parser("target", help="Change an item's target.")
    target.add_argument("item_id", type=int)
    target.add_argument("price", help="New target price, or 'none'.")
    target.add_argument("-o", "--owner", required=True)

    remove = commands.add_parser("remove", help="Stop tracking an item.")
    remove.add_argument("item_id", type=int)
    remove.add_argument("-o", "--owner", required=True)

    savings = commands.add_parser(
        "savings", help="Summarise price drops across tracked items.",
    )
    savings.add_argument("-o", "--owner", required=True)

    commands.add_parser("sweep", help="Check every active item now.")
    commands.add_parser(
        "daemon", help="Check prices on the configured schedule.",
    )
    return parser


def _dispatch(args: argparse.Namespace) -> int:
    """Route a parsed command to its runner."""
    from src.cli import runner

    if args.command == "add":
        return runner.cli_add(args.url, args.owner, args.target)
    if args.command == "list":
        return runner.cli_list(args.owner, args.include_inactive)
    if args.command == "history":
        return runner.cli_history(args.item_id, args.owner)
    if args.command == "target":
        return runner.cli_set_target(args.item_id, args.owner, args.price)
    if args.command == "remove":
        return runner.cli_remove(args.item_id, args.owner)
    if args.command == "savings":
        return runner.cli_savings(args.owner)
    if args.command == "sweep":
        return runner.cli_sweep()
    return runner.cli_daemon()


def main() -> None:
    """Parse arguments and run the requested command."""
    log_file = setup_logging()
    logger.info("price_tracker starting: log file %s", log_file)

    args = _build_parser().parse_args()
    try:
        exit_code = _dispatch(args)
    except Exception:
        logger.critical("Fatal error in '%s'", args.command, exc_info=True)
        raise
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
