"""
Data models for collectible tracking.

This module defines the Collectible value produced by reconciliation, the
wallet-stamped wrappers around raw upstream records, and the result types
handed back to callers.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


# CSV column order for output
CSV_COLUMNS = [
    "wallet",
    "chain",
    "collectible_id",
    "token_id",
    "contract_address",
    "name",
    "standard",
    "collection_name",
    "media_type",
    "is_owned",
    "date_created",
    "date_last_transferred",
    "permalink",
]


class MediaType(str, Enum):
    """How a collectible's media should be rendered."""

    IMAGE = "IMAGE"
    GIF = "GIF"
    VIDEO = "VIDEO"
    THREE_D = "THREE_D"


@dataclass
class Collectible:
    """
    A digital collectible as seen from one of the queried wallets.

    Instances are created by the materializers and then owned by a single
    reconciliation run, which may update ``date_last_transferred`` in place.
    """

    id: str  # Identity: "<token_id>:::<contract_address>"
    token_id: str
    wallet: str  # Wallet whose query produced the record
    chain: str  # "eth" or "sol"
    media_type: MediaType
    name: Optional[str] = None
    description: Optional[str] = None
    frame_url: Optional[str] = None
    image_url: Optional[str] = None
    gif_url: Optional[str] = None
    video_url: Optional[str] = None
    three_d_url: Optional[str] = None
    is_owned: bool = True
    date_created: Optional[str] = None
    date_last_transferred: Optional[str] = None
    external_link: Optional[str] = None
    permalink: Optional[str] = None
    asset_contract_address: Optional[str] = None
    standard: Optional[str] = None
    collection_slug: Optional[str] = None
    collection_name: Optional[str] = None

    def to_csv_row(self) -> List[str]:
        """Convert collectible to a CSV row (list of strings)."""
        return [
            self.wallet,
            self.chain,
            self.id,
            self.token_id,
            self.asset_contract_address or "",
            self.name or "",
            self.standard or "",
            self.collection_name or "",
            self.media_type.value,
            "true" if self.is_owned else "false",
            self.date_created or "",
            self.date_last_transferred or "",
            self.permalink or "",
        ]


# Wallet address -> collectibles, in order of resolution
CollectibleState = Dict[str, List[Collectible]]


@dataclass(frozen=True)
class WalletAsset:
    """An owned-asset record tagged with the wallet whose query returned it."""

    asset: Any
    wallet: str


@dataclass(frozen=True)
class WalletEvent:
    """
    A creation or transfer event tagged with the wallet whose query returned it.

    The query wallet is distinct from the ``from``/``to`` accounts embedded in
    the event itself. Accessors never raise on malformed records.
    """

    event: Any
    wallet: str

    def _get(self, key: str) -> Any:
        return self.event.get(key) if isinstance(self.event, dict) else None

    @property
    def asset(self) -> Any:
        return self._get("asset")

    @property
    def created_date(self) -> str:
        value = self._get("created_date")
        return value if isinstance(value, str) else ""

    def _account_address(self, key: str) -> Optional[str]:
        account = self._get(key)
        if isinstance(account, dict):
            address = account.get("address")
            return address if isinstance(address, str) else None
        return None

    @property
    def from_address(self) -> Optional[str]:
        return self._account_address("from_account")

    @property
    def to_address(self) -> Optional[str]:
        return self._account_address("to_account")


@dataclass
class CollectionInfo:
    """Collection-level details for an ethereum asset."""

    name: str
    slug: str
    image_url: str
    contract_address: str  # Comma-joined primary asset contracts
    safelist_request_status: Optional[str] = None
    open_listing_count: int = 0
    close_listing_count: int = 0
    open_loan_count: int = 0
    close_loan_count: int = 0


@dataclass
class CollectiblesResult:
    """
    Result of aggregating collectibles across chains.

    A chain whose pipeline failed has an empty state here and an entry in
    ``errors``; callers distinguish partial from total success through
    ``is_complete``.
    """

    eth_collectibles: CollectibleState = field(default_factory=dict)
    sol_collectibles: CollectibleState = field(default_factory=dict)
    errors: Dict[str, str] = field(default_factory=dict)  # chain -> error message

    @property
    def is_complete(self) -> bool:
        return not self.errors

    def raise_for_errors(self) -> None:
        """Raise PartialCollectiblesError if any chain failed."""
        if self.errors:
            raise PartialCollectiblesError(self)


class PartialCollectiblesError(Exception):
    """Raised when at least one chain's pipeline failed."""

    def __init__(self, result: CollectiblesResult):
        failed = ", ".join(f"{chain}: {message}" for chain, message in result.errors.items())
        super().__init__(f"Failed to fetch collectibles for {failed}")
        self.result = result
