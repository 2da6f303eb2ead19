"""
Command line entry point.

Usage:
    client-transaction GET /i/api/1.1/jot/client_event.json
    client-transaction POST /i/api/graphql/abc/CreateTweet --html home.html
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import ValidationError

from client_transaction.config import TransactionSettings
from client_transaction.document import HomePageDocument
from client_transaction.errors import TransactionError
from client_transaction.fetch import build_fetcher, load_home_page
from client_transaction.resilience import initialize_with_retry
from client_transaction.session import ClientTransaction
from observability import get_logger, setup_logging

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate an x-client-transaction-id header value",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s GET /i/api/1.1/jot/client_event.json
  %(prog)s POST /i/api/graphql/abc/CreateTweet --html home.html --count 3
  %(prog)s GET /i/api/2/guide.json --config settings.yaml --backend curl_cffi
        """
    )
    parser.add_argument("method", help="HTTP method of the request")
    parser.add_argument("path", help="Request path, e.g. /i/api/1.1/jot/client_event.json")
    parser.add_argument("--html", help="Read home page markup from a file instead of fetching it")
    parser.add_argument("--config", help="YAML settings file (defaults to CLIENT_TX_* env vars)")
    parser.add_argument("--backend", choices=["httpx", "curl_cffi"], help="HTTP backend for fetches")
    parser.add_argument("--time", type=int, dest="time_now", help="Fixed seconds since the transaction epoch")
    parser.add_argument("--count", type=int, default=1, help="Number of ids to print")
    parser.add_argument("--retries", type=int, default=1,
                        help="Initialization attempts before giving up")
    parser.add_argument("--log-level", help="Log level (DEBUG, INFO, WARNING, ...)")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")
    return parser


def load_settings(args: argparse.Namespace) -> TransactionSettings:
    settings = TransactionSettings.from_yaml(args.config) if args.config else TransactionSettings.from_env()
    overrides = {}
    if args.backend:
        overrides["fetch_backend"] = args.backend
    if args.log_level:
        overrides["log_level"] = args.log_level
    if args.json_logs:
        overrides["json_logging"] = True
    if overrides:
        settings = TransactionSettings(**{**settings.model_dump(), **overrides})
    return settings


async def run(args: argparse.Namespace, settings: TransactionSettings) -> List[str]:
    async with build_fetcher(settings) as fetch:
        if args.html:
            document = HomePageDocument(Path(args.html).read_text(encoding="utf-8"))
        else:
            document = await load_home_page(fetch, settings.home_page_url)

        transaction = ClientTransaction(document, fetch=fetch, settings=settings)
        await initialize_with_retry(transaction, max_attempts=max(args.retries, 1))
        return [
            transaction.generate_transaction_id(args.method.upper(), args.path, time_now=args.time_now)
            for _ in range(max(args.count, 1))
        ]


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        settings = load_settings(args)
    except (ValidationError, ValueError, yaml.YAMLError, OSError) as e:
        setup_logging(log_level=args.log_level, json_output=args.json_logs)
        logger.error(f"Invalid configuration: {e}")
        return 1
    setup_logging(log_level=settings.log_level, json_output=settings.json_logging)

    try:
        transaction_ids = asyncio.run(run(args, settings))
    except (TransactionError, OSError) as e:
        logger.error(f"Could not generate transaction id: {e}")
        return 1

    for transaction_id in transaction_ids:
        print(transaction_id)
    return 0


if __name__ == "__main__":
    sys.exit(main())
