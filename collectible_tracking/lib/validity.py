"""
Validity predicates for raw upstream records.

Malformed or unsupported records are dropped here before reconciliation.
Every predicate is total: unexpected shapes are invalid, never an error.
"""

from typing import Any, Optional

from .media import classify_media, eth_media_sources, solana_media_sources
from .models import WalletEvent


NULL_ADDRESS = "0x0000000000000000000000000000000000000000"

SUPPORTED_ETH_STANDARDS = ("ERC721", "ERC1155")

SOLANA_NFT_INTERFACES = (
    "V1_NFT",
    "V2_NFT",
    "LEGACY_NFT",
    "ProgrammableNFT",
    "MplCoreAsset",
)


def _non_empty(value: Any) -> bool:
    if isinstance(value, str):
        return bool(value.strip())
    return isinstance(value, int) and not isinstance(value, bool)


def is_asset_valid(asset: Any) -> bool:
    """
    Check whether an OpenSea asset record can be reconciled.

    Requires a token id, a supported contract standard (when the contract
    is known) and media that classifies as image, GIF, video or 3D. An
    asset whose only media is an unrecognized animation (an HTML page, say)
    is invalid.
    """
    if not isinstance(asset, dict):
        return False

    if not _non_empty(asset.get("token_id")):
        return False

    contract = asset.get("asset_contract")
    if contract is not None:
        if not isinstance(contract, dict):
            return False
        address = contract.get("address")
        if address is not None and not isinstance(address, str):
            return False
        schema = contract.get("schema_name")
        if schema is not None and schema not in SUPPORTED_ETH_STANDARDS:
            return False

    return classify_media(*eth_media_sources(asset)) is not None


def is_solana_asset_valid(item: Any) -> bool:
    """Check whether a DAS asset item is a displayable, live NFT."""
    if not isinstance(item, dict):
        return False

    if not _non_empty(item.get("id")):
        return False

    if item.get("interface") not in SOLANA_NFT_INTERFACES:
        return False

    if item.get("burnt"):
        return False

    return classify_media(*solana_media_sources(item)) is not None


def is_null_address(address: Optional[str]) -> bool:
    """Check whether an address is the canonical zero (mint/burn) address."""
    return isinstance(address, str) and address.lower() == NULL_ADDRESS


def is_from_null_address(event: WalletEvent) -> bool:
    """Check whether a transfer event originates at the zero address, i.e. a mint."""
    return is_null_address(event.from_address)
