#!/usr/bin/env python3
"""
Classify a transaction (by hash) or raw call-data as GitPay or not.

Exit codes: 0 tagged, 1 not tagged, 2 lookup failure.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from gitpay.config import ConfigError, TransferConfig, get_config
from gitpay.fetchers import ChainFetcher, FetchConfig, FetchError
from gitpay.processors import TagMatchMode, TransferClassifier

logger = logging.getLogger(__name__)

EXIT_TAGGED = 0
EXIT_NOT_TAGGED = 1
EXIT_LOOKUP_FAILED = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Check whether a transaction carries the GitPay tag",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Look up a transaction on the configured network
  gitpay-classify --tx 0x5c504ed432cb51138bcf09aa5e8a410dd4a1e204ef84bfed1be16dfba1b22060

  # Classify raw call-data, allowing the tag anywhere
  gitpay-classify --data 0xa9059cbb... --mode anywhere
        """,
    )

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument("--tx", help="Transaction hash to look up")
    source.add_argument("--data", help="Raw 0x-prefixed call-data")

    parser.add_argument(
        "--mode",
        choices=[m.value for m in TagMatchMode],
        default=None,
        help="Tag placement rule (defaults to TAG_MATCH_MODE)",
    )
    return parser


async def _fetch_call_data(tx_hash: str) -> bytes:
    config = get_config()
    config.validate_configuration()
    chains = config.chains

    node = ChainFetcher(
        chains.rpc_url,
        FetchConfig(
            max_retries=chains.MAX_RETRY_ATTEMPTS,
            retry_delay=chains.RETRY_DELAY_SECONDS,
            timeout=chains.REQUEST_TIMEOUT_SECONDS,
        ),
    )
    try:
        return await node.get_transaction_input(tx_hash)
    finally:
        await node.close()


async def run(args: argparse.Namespace) -> int:
    mode = args.mode or TransferConfig().TAG_MATCH_MODE
    classifier = TransferClassifier(mode)

    if args.tx:
        try:
            call_data = await _fetch_call_data(args.tx)
        except (ConfigError, FetchError) as e:
            logger.error(f"❌ Could not look up {args.tx}: {e}")
            return EXIT_LOOKUP_FAILED
    else:
        call_data = args.data

    result = classifier.classify(call_data)
    print(json.dumps(result.to_dict(), indent=2))
    return EXIT_TAGGED if result.is_tagged else EXIT_NOT_TAGGED


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(run(args))
    except KeyboardInterrupt:
        logger.info("⏹️  Interrupted by user")
        return 130


if __name__ == "__main__":
    sys.exit(main())
