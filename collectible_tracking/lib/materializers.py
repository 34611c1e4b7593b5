"""
Mapping of raw upstream records onto Collectible values.

Each chain gets a RecordMapping bundling the predicates and converters the
reconciliation engine needs, so the engine itself stays chain-agnostic.
"""

from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Optional

from .identity import (
    identity_of_asset,
    identity_of_solana_asset,
    keep_address,
    normalize_eth_address,
    solana_collection_address,
)
from .media import MediaSources, classify_media, eth_media_sources, solana_media_sources
from .models import Collectible, WalletAsset, WalletEvent
from .validity import is_asset_valid, is_from_null_address, is_solana_asset_valid


class MaterializationError(Exception):
    """Raised when a record cannot be turned into a Collectible."""

    def __init__(self, message: str, identity: Optional[str] = None):
        super().__init__(message)
        self.identity = identity


def _media_fields(identity: str, sources: MediaSources) -> Dict[str, Any]:
    media = classify_media(*sources)
    if media is None:
        raise MaterializationError(
            f"Unable to determine media type for {identity}", identity=identity
        )
    return media


def asset_to_collectible(record: WalletAsset) -> Collectible:
    """
    Convert an owned OpenSea asset into a Collectible.

    Args:
        record: Valid asset record stamped with its query wallet

    Returns:
        Collectible marked as owned, without creation or transfer dates

    Raises:
        MaterializationError: If the asset's media cannot be classified
    """
    asset = record.asset
    identity = identity_of_asset(asset)
    contract = asset.get("asset_contract") or {}
    collection = asset.get("collection") or {}

    media = _media_fields(identity, eth_media_sources(asset))

    return Collectible(
        id=identity,
        token_id=str(asset.get("token_id")),
        wallet=record.wallet,
        chain="eth",
        name=asset.get("name"),
        description=asset.get("description"),
        is_owned=True,
        external_link=asset.get("external_link"),
        permalink=asset.get("permalink"),
        asset_contract_address=contract.get("address"),
        standard=contract.get("schema_name"),
        collection_slug=collection.get("slug"),
        collection_name=collection.get("name"),
        **media,
    )


def creation_event_to_collectible(event: WalletEvent) -> Collectible:
    """Convert a creation event into a Collectible dated by the event, not owned."""
    collectible = asset_to_collectible(WalletAsset(asset=event.asset, wallet=event.wallet))
    return replace(collectible, date_created=event.created_date or None, is_owned=False)


def transfer_event_to_collectible(event: WalletEvent, is_owned: bool = True) -> Collectible:
    """Convert a transfer event into a Collectible dated by the transfer."""
    collectible = asset_to_collectible(WalletAsset(asset=event.asset, wallet=event.wallet))
    return replace(
        collectible,
        date_last_transferred=event.created_date or None,
        is_owned=is_owned,
    )


def _solana_collection_name(item: dict) -> Optional[str]:
    for group in item.get("grouping") or []:
        if isinstance(group, dict) and group.get("group_key") == "collection":
            metadata = group.get("collection_metadata") or {}
            return metadata.get("name") or None
    return None


def solana_asset_to_collectible(record: WalletAsset) -> Collectible:
    """Convert an owned DAS asset item into a Collectible."""
    item = record.asset
    identity = identity_of_solana_asset(item)
    content = item.get("content") or {}
    metadata = content.get("metadata") or {}
    links = content.get("links") or {}
    media = _media_fields(identity, solana_media_sources(item))

    return Collectible(
        id=identity,
        token_id=str(item.get("id")),
        wallet=record.wallet,
        chain="sol",
        name=metadata.get("name"),
        description=metadata.get("description"),
        is_owned=True,
        external_link=links.get("external_url"),
        asset_contract_address=solana_collection_address(item) or None,
        standard=item.get("interface"),
        collection_name=_solana_collection_name(item),
        **media,
    )


@dataclass(frozen=True)
class RecordMapping:
    """
    Chain-specific collaborators consumed by the reconciliation engine.

    Chains without event sources leave the event converters unset.
    ``normalize_address`` puts wallet addresses in the form used to compare
    queried wallets with transfer recipients.
    """

    chain: str
    is_valid: Callable[[Any], bool]
    identity_of: Callable[[dict], str]
    asset_to_collectible: Callable[[WalletAsset], Collectible]
    creation_event_to_collectible: Optional[Callable[[WalletEvent], Collectible]] = None
    transfer_event_to_collectible: Optional[Callable[[WalletEvent, bool], Collectible]] = None
    is_from_null_address: Callable[[WalletEvent], bool] = is_from_null_address
    normalize_address: Callable[[Any], str] = keep_address

    @property
    def supports_events(self) -> bool:
        return (
            self.creation_event_to_collectible is not None
            and self.transfer_event_to_collectible is not None
        )


ETHEREUM_MAPPING = RecordMapping(
    chain="eth",
    is_valid=is_asset_valid,
    identity_of=identity_of_asset,
    asset_to_collectible=asset_to_collectible,
    creation_event_to_collectible=creation_event_to_collectible,
    transfer_event_to_collectible=transfer_event_to_collectible,
    normalize_address=normalize_eth_address,
)

SOLANA_MAPPING = RecordMapping(
    chain="sol",
    is_valid=is_solana_asset_valid,
    identity_of=identity_of_solana_asset,
    asset_to_collectible=solana_asset_to_collectible,
)
