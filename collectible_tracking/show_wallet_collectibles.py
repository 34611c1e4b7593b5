#!/usr/bin/env python3
"""
Show the digital collectibles held by a set of wallets.

This script queries ethereum wallets through OpenSea and solana wallets
through Alchemy, reconciles owned assets with creation and transfer history,
and generates a CSV report of the resulting collectibles.
"""

import argparse
import asyncio
import os
import sys
from typing import List, Optional

from collectible_tracking.lib.aggregator import CollectiblesClient
from collectible_tracking.lib.formatters import CollectibleReport, write_report
from collectible_tracking.lib.models import CollectiblesResult, CollectibleState
from collectible_tracking.lib.opensea_client import DEFAULT_ASSET_LIMIT, DEFAULT_EVENT_LIMIT


CHAIN_LABELS = {"eth": "ethereum", "sol": "solana"}


def log(chain: str, message: str) -> None:
    """Log a message with chain prefix."""
    print(f"[{chain}] {message}", file=sys.stderr)


def summarize_state(chain: str, state: CollectibleState) -> None:
    """Log per-wallet counts for one chain."""
    for wallet, collectibles in state.items():
        owned = sum(1 for c in collectibles if c.is_owned)
        log(chain, f"{wallet}: {owned} owned, {len(collectibles) - owned} no longer held")


def validate_wallets(wallets: List[str]) -> List[str]:
    """
    Validate and deduplicate wallet addresses, preserving order.

    Args:
        wallets: Wallet addresses from the command line

    Returns:
        Stripped, deduplicated addresses

    Raises:
        ValueError: If any address is empty
    """
    validated: List[str] = []
    for wallet in wallets:
        address = wallet.strip()
        if not address:
            raise ValueError("Wallet address must not be empty")
        if address not in validated:
            validated.append(address)
    return validated


async def fetch_collectibles(
    client: CollectiblesClient,
    eth_wallets: List[str],
    sol_wallets: List[str],
    timeout: Optional[float] = None,
) -> CollectiblesResult:
    """
    Run the aggregation, bounded by an overall timeout if given.

    The client's HTTP connections are closed on the way out, including when
    the timeout cancels in-flight requests.
    """
    try:
        return await asyncio.wait_for(client.get_collectibles(eth_wallets, sol_wallets), timeout)
    finally:
        await client.aclose()


def main(args: Optional[List[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        args: Command line arguments (uses sys.argv if None)

    Returns:
        Exit code (0 for success, 1 for error or partial failure)
    """
    parser = argparse.ArgumentParser(
        description="Reconcile NFT holdings across wallets and generate a CSV report.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Two ethereum wallets, output to stdout
  %(prog)s --eth-wallets 0x... 0x...

  # Ethereum and solana wallets, save to file
  %(prog)s --eth-wallets 0x... --sol-wallets GKvq... --output collectibles.csv
        """,
    )

    parser.add_argument(
        "--eth-wallets",
        nargs="+",
        default=[],
        help="Ethereum wallet addresses to query",
    )
    parser.add_argument(
        "--sol-wallets",
        nargs="+",
        default=[],
        help="Solana wallet addresses to query",
    )
    parser.add_argument(
        "--opensea-api-key",
        default=os.environ.get("OPENSEA_API_KEY", ""),
        help="OpenSea API key (default: $OPENSEA_API_KEY)",
    )
    parser.add_argument(
        "--alchemy-api-key",
        default=os.environ.get("ALCHEMY_API_KEY", ""),
        help="Alchemy API key, required for solana (default: $ALCHEMY_API_KEY)",
    )
    parser.add_argument(
        "--asset-limit",
        type=int,
        default=DEFAULT_ASSET_LIMIT,
        help=f"Owned assets fetched per wallet (default: {DEFAULT_ASSET_LIMIT})",
    )
    parser.add_argument(
        "--event-limit",
        type=int,
        default=DEFAULT_EVENT_LIMIT,
        help=f"Events fetched per wallet and event type (default: {DEFAULT_EVENT_LIMIT})",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Overall timeout in seconds for all chains",
    )
    parser.add_argument(
        "--output",
        help="Output file path (timestamp auto-appended). If not specified, outputs to stdout.",
    )

    parsed_args = parser.parse_args(args)

    try:
        eth_wallets = validate_wallets(parsed_args.eth_wallets)
        sol_wallets = validate_wallets(parsed_args.sol_wallets)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if not eth_wallets and not sol_wallets:
        print("Error: at least one of --eth-wallets or --sol-wallets is required", file=sys.stderr)
        return 1

    if sol_wallets and not parsed_args.alchemy_api_key:
        print("Error: --alchemy-api-key is required for solana wallets", file=sys.stderr)
        return 1

    client = CollectiblesClient.from_api_keys(
        opensea_api_key=parsed_args.opensea_api_key,
        alchemy_api_key=parsed_args.alchemy_api_key,
        asset_limit=parsed_args.asset_limit,
        event_limit=parsed_args.event_limit,
    )

    for chain, wallets in (("eth", eth_wallets), ("sol", sol_wallets)):
        if wallets:
            log(chain, f"Fetching collectibles for {len(wallets)} wallet(s)...")

    try:
        result = asyncio.run(
            fetch_collectibles(client, eth_wallets, sol_wallets, parsed_args.timeout)
        )
    except asyncio.TimeoutError:
        print(f"Error: timed out after {parsed_args.timeout} seconds", file=sys.stderr)
        return 1

    for chain, state in (("eth", result.eth_collectibles), ("sol", result.sol_collectibles)):
        if chain in result.errors:
            log(chain, f"ERROR: {result.errors[chain]}. Skipping {CHAIN_LABELS[chain]}.")
        else:
            summarize_state(chain, state)

    report = CollectibleReport.from_result(result)
    written = write_report(report, parsed_args.output)

    for section, path in written.items():
        print(f"{section.capitalize()} collectibles written to: {path}", file=sys.stderr)

    return 0 if result.is_complete else 1


if __name__ == "__main__":
    sys.exit(main())
