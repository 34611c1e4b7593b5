"""
Reconciliation of owned assets, creation events and transfer events.

The three sources are folded into one working map from identity to
Collectible, in four ordered stages:

A. owned assets seed the map;
B. transfers from the null address (mints) date existing entries or add
   not-owned ones;
C. creation events add identities nothing else has claimed;
D. ordinary transfers date existing entries, or add an owned entry when the
   asset was transferred to one of the queried wallets.

The map is then regrouped by wallet. Dict insertion order is the order of
first resolution, and it is the order of each wallet's list in the result.
"""

from typing import Dict, Iterable, List, Sequence, Set

from .materializers import ETHEREUM_MAPPING, RecordMapping
from .models import Collectible, CollectibleState, WalletAsset, WalletEvent


def latest_events_by_identity(
    events: Iterable[WalletEvent],
    mapping: RecordMapping,
) -> Dict[str, WalletEvent]:
    """
    Keep the newest event per identity.

    An event replaces the one already kept only if its timestamp is strictly
    newer, so exact ties keep the first event seen.
    """
    latest: Dict[str, WalletEvent] = {}
    for event in events:
        identity = mapping.identity_of(event.asset)
        kept = latest.get(identity)
        if kept is None or event.created_date > kept.created_date:
            latest[identity] = event
    return latest


class Reconciliation:
    """
    Working state for one reconciliation run.

    ``collectibles`` is the single source of truth while the stages run;
    ``known`` holds every identity some stage has resolved. Both are private
    to the run and discarded once the result is built.
    """

    def __init__(self, wallets: Sequence[str], mapping: RecordMapping = ETHEREUM_MAPPING):
        self.wallets = {mapping.normalize_address(wallet) for wallet in wallets}
        self.mapping = mapping
        self.collectibles: Dict[str, Collectible] = {}
        self.known: Set[str] = set()

    def _insert(self, identity: str, collectible: Collectible) -> None:
        self.collectibles[identity] = collectible
        self.known.add(identity)

    def _mark_transferred(self, identity: str, date: str) -> None:
        self.collectibles[identity].date_last_transferred = date or None

    def _valid_events(self, events: Iterable[WalletEvent]) -> List[WalletEvent]:
        return [event for event in events if self.mapping.is_valid(event.asset)]

    def seed_owned_assets(self, assets: Iterable[WalletAsset]) -> None:
        """Stage A: every valid owned asset becomes a known collectible."""
        for record in assets:
            if not self.mapping.is_valid(record.asset):
                continue
            identity = self.mapping.identity_of(record.asset)
            self._insert(identity, self.mapping.asset_to_collectible(record))

    def apply_mint_transfers(self, transfers: Iterable[WalletEvent]) -> None:
        """Stage B: transfers out of the null address, treated as creation."""
        mints = [e for e in self._valid_events(transfers) if self.mapping.is_from_null_address(e)]
        for identity, event in latest_events_by_identity(mints, self.mapping).items():
            if identity in self.known:
                self._mark_transferred(identity, event.created_date)
            else:
                self._insert(
                    identity,
                    self.mapping.transfer_event_to_collectible(event, False),
                )

    def apply_creation_events(self, creations: Iterable[WalletEvent]) -> None:
        """Stage C: creation events never override an identity already known."""
        for event in self._valid_events(creations):
            identity = self.mapping.identity_of(event.asset)
            if identity not in self.known:
                self._insert(identity, self.mapping.creation_event_to_collectible(event))

    def apply_transfers(self, transfers: Iterable[WalletEvent]) -> None:
        """Stage D: ordinary transfers; third-party transfers of unknown assets are dropped."""
        moves = [
            e for e in self._valid_events(transfers) if not self.mapping.is_from_null_address(e)
        ]
        for identity, event in latest_events_by_identity(moves, self.mapping).items():
            if identity in self.known:
                self._mark_transferred(identity, event.created_date)
            elif self.mapping.normalize_address(event.to_address) in self.wallets:
                self._insert(
                    identity,
                    self.mapping.transfer_event_to_collectible(event, True),
                )

    def by_wallet(self) -> CollectibleState:
        """Regroup the working map by wallet, preserving resolution order."""
        state: CollectibleState = {}
        for collectible in self.collectibles.values():
            # Only reachable through direct use with unstamped records
            if not collectible.wallet:
                continue
            state.setdefault(collectible.wallet, []).append(collectible)
        return state


def reconcile(
    owned_assets: Sequence[WalletAsset],
    creation_events: Sequence[WalletEvent],
    transfer_events: Sequence[WalletEvent],
    wallets: Sequence[str],
    mapping: RecordMapping = ETHEREUM_MAPPING,
) -> CollectibleState:
    """
    Merge the three sources into one deduplicated per-wallet state.

    Args:
        owned_assets: Owned-asset records from all queried wallets
        creation_events: Creation events from all queried wallets
        transfer_events: Transfer events from all queried wallets
        wallets: The wallets originally queried
        mapping: Chain-specific validity, identity and materializers

    Returns:
        Mapping of wallet to its collectibles in order of resolution

    Raises:
        ValueError: If events are given for a chain without event support
        MaterializationError: If a valid record cannot be materialized
    """
    if (creation_events or transfer_events) and not mapping.supports_events:
        raise ValueError(f"Events are not supported for chain: {mapping.chain}")

    run = Reconciliation(wallets, mapping)
    run.seed_owned_assets(owned_assets)
    run.apply_mint_transfers(transfer_events)
    run.apply_creation_events(creation_events)
    run.apply_transfers(transfer_events)
    return run.by_wallet()
