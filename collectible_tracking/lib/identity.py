"""
Identity keys used to correlate records across sources.

A collectible is identified by its token id plus the contract that minted
it. The separator cannot appear in decimal token ids, hex contract addresses
or base58 mint addresses.
"""

from typing import Any

IDENTITY_SEPARATOR = ":::"


def key_of(token_id: Any, contract_address: Any = "") -> str:
    """
    Build the identity key for a collectible.

    Args:
        token_id: Token id (or mint address on solana)
        contract_address: Contract/collection address, empty when unknown

    Returns:
        Key string such as "1:::0xabc"

    Examples:
        key_of("1", "0xA") -> "1:::0xA"
        key_of("7", None) -> "7:::"
    """
    return f"{token_id}{IDENTITY_SEPARATOR}{contract_address or ''}"


def identity_of_asset(asset: dict) -> str:
    """Identity of an OpenSea asset record."""
    contract = asset.get("asset_contract") or {}
    return key_of(asset.get("token_id"), contract.get("address"))


def solana_collection_address(item: dict) -> str:
    """Collection address from a DAS item's grouping, or "" if ungrouped."""
    for group in item.get("grouping") or []:
        if isinstance(group, dict) and group.get("group_key") == "collection":
            return group.get("group_value") or ""
    return ""


def identity_of_solana_asset(item: dict) -> str:
    """Identity of a DAS asset item: mint id plus collection address."""
    return key_of(item.get("id"), solana_collection_address(item))


def normalize_eth_address(address: Any) -> str:
    """Ethereum addresses compare case-insensitively (EIP-55 checksums are mixed case)."""
    return address.lower() if isinstance(address, str) else ""


def keep_address(address: Any) -> str:
    """Addresses on chains where case is significant, such as base58 keys."""
    return address if isinstance(address, str) else ""
