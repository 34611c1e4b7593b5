"""
Per-wallet fan-out for upstream retrievals.

One retrieval is issued per wallet and all of them are awaited together.
A failed retrieval only loses that wallet's records for that source: failed
outcomes are reported on stderr and dropped when the outcomes are
flattened, and the reconciliation simply sees fewer records.
"""

import asyncio
import sys
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Optional, Sequence

from .models import WalletAsset, WalletEvent


@dataclass(frozen=True)
class WalletFetchOutcome:
    """Result of one wallet's retrieval: either its records or the error."""

    wallet: str
    records: Optional[List[Any]] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def fetch_for_wallets(
    wallets: Sequence[str],
    fetch_one: Callable[[str], Awaitable[List[Any]]],
) -> List[WalletFetchOutcome]:
    """
    Run a per-wallet retrieval for every wallet concurrently.

    Outcomes are correlated with wallets by position, so their order never
    depends on which retrieval finishes first.

    Args:
        wallets: Wallet addresses to query
        fetch_one: Coroutine function returning the raw records for one wallet

    Returns:
        One WalletFetchOutcome per wallet, in the same order as ``wallets``
    """
    results = await asyncio.gather(
        *(fetch_one(wallet) for wallet in wallets),
        return_exceptions=True,
    )

    outcomes: List[WalletFetchOutcome] = []
    for wallet, result in zip(wallets, results):
        if isinstance(result, Exception):
            outcomes.append(WalletFetchOutcome(wallet=wallet, error=result))
        elif isinstance(result, BaseException):
            # Cancellation and interpreter exits are not per-wallet failures
            raise result
        else:
            outcomes.append(WalletFetchOutcome(wallet=wallet, records=list(result or [])))
    return outcomes


def _successful(outcomes: Sequence[WalletFetchOutcome], chain: str, source: str):
    for outcome in outcomes:
        if not outcome.ok:
            print(
                f"[{chain}] Dropped {source} for {outcome.wallet}: {outcome.error}",
                file=sys.stderr,
            )
            continue
        yield outcome


def flatten_assets(
    outcomes: Sequence[WalletFetchOutcome],
    chain: str = "",
    source: str = "assets",
) -> List[WalletAsset]:
    """Flatten successful outcomes into asset records stamped with their query wallet."""
    return [
        WalletAsset(asset=record, wallet=outcome.wallet)
        for outcome in _successful(outcomes, chain, source)
        for record in outcome.records
    ]


def flatten_events(
    outcomes: Sequence[WalletFetchOutcome],
    chain: str = "",
    source: str = "events",
) -> List[WalletEvent]:
    """Flatten successful outcomes into event records stamped with their query wallet."""
    return [
        WalletEvent(event=record, wallet=outcome.wallet)
        for outcome in _successful(outcomes, chain, source)
        for record in outcome.records
    ]
