"""
OpenSea API client for ethereum collectibles.

Wraps the three per-wallet retrievals the reconciliation needs (owned assets,
creation events, transfer events) plus the single-asset lookup used for
collection info and ownership queries.
"""

from typing import Any, Dict, List, Optional

from .http_client import RetryingHTTPClient, UpstreamAPIError
from .models import CollectionInfo


OPENSEA_API_URL = "https://api.opensea.io/api/v1"

DEFAULT_ASSET_LIMIT = 50
DEFAULT_EVENT_LIMIT = 300

EVENT_TYPE_CREATED = "created"
EVENT_TYPE_TRANSFER = "transfer"
EVENT_TYPES = (EVENT_TYPE_CREATED, EVENT_TYPE_TRANSFER)


class OpenSeaClient(RetryingHTTPClient):
    """
    OpenSea REST client.

    Responses are returned as raw JSON records; mapping them onto
    Collectible values is left to the materializers.
    """

    provider_name = "opensea"

    def __init__(
        self,
        api_key: str = "",
        api_endpoint: str = OPENSEA_API_URL,
        asset_limit: int = DEFAULT_ASSET_LIMIT,
        event_limit: int = DEFAULT_EVENT_LIMIT,
        **retry_options: Any,
    ):
        """
        Initialize the OpenSea client.

        Args:
            api_key: OpenSea API key, sent as X-API-KEY
            api_endpoint: Base URL of the v1 API
            asset_limit: Page size for owned-asset queries
            event_limit: Page size for event queries
            **retry_options: Passed through to RetryingHTTPClient
        """
        super().__init__(api_key, **retry_options)
        self.url = api_endpoint.rstrip("/")
        self.asset_limit = asset_limit
        self.event_limit = event_limit

    def _headers(self) -> Dict[str, str]:
        return {"Content-Type": "application/json", "X-API-KEY": self.api_key}

    async def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return await self._get_json(f"{self.url}/{path}", params=params, headers=self._headers())

    async def get_assets_for_wallet(self, wallet: str, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Get the assets currently owned by a wallet.

        Args:
            wallet: Ethereum wallet address
            limit: Maximum number of assets (defaults to asset_limit)

        Returns:
            List of raw OpenSea asset records
        """
        data = await self._get(
            "assets",
            params={"owner": wallet, "limit": limit or self.asset_limit},
        )
        if not isinstance(data, dict):
            raise UpstreamAPIError("opensea: unexpected assets payload")
        return data.get("assets") or []

    async def get_events_for_wallet(
        self,
        wallet: str,
        event_type: str,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        Get asset events of one type involving a wallet.

        Args:
            wallet: Ethereum wallet address
            event_type: "created" or "transfer"
            limit: Maximum number of events (defaults to event_limit)

        Returns:
            List of raw OpenSea event records
        """
        if event_type not in EVENT_TYPES:
            raise ValueError(f"Unsupported event type: {event_type}")

        data = await self._get(
            "events",
            params={
                "account_address": wallet,
                "limit": limit or self.event_limit,
                "event_type": event_type,
                "only_opensea": "false",
            },
        )
        if not isinstance(data, dict):
            raise UpstreamAPIError("opensea: unexpected events payload")
        return data.get("asset_events") or []

    async def get_created_events_for_wallet(self, wallet: str) -> List[Dict[str, Any]]:
        return await self.get_events_for_wallet(wallet, EVENT_TYPE_CREATED)

    async def get_transfer_events_for_wallet(self, wallet: str) -> List[Dict[str, Any]]:
        return await self.get_events_for_wallet(wallet, EVENT_TYPE_TRANSFER)

    async def get_asset(self, contract_address: str, token_id: str) -> Dict[str, Any]:
        """Get the full record of a single asset."""
        data = await self._get(f"asset/{contract_address}/{token_id}")
        return data if isinstance(data, dict) else {}

    async def get_collection(self, contract_address: str, token_id: str) -> CollectionInfo:
        """
        Get collection details for the collection an asset belongs to.

        Args:
            contract_address: Asset contract address
            token_id: Token id within the contract

        Returns:
            CollectionInfo, with empty strings for anything OpenSea omits
        """
        asset = await self.get_asset(contract_address, token_id)
        collection = asset.get("collection") or {}
        contracts = collection.get("primary_asset_contracts") or []
        addresses = [c.get("address") for c in contracts if isinstance(c, dict) and c.get("address")]

        return CollectionInfo(
            name=collection.get("name") or "",
            slug=collection.get("slug") or "",
            image_url=collection.get("image_url") or "",
            contract_address=",".join(addresses),
            safelist_request_status=collection.get("safelist_request_status"),
        )

    async def get_asset_owner(self, contract_address: str, token_id: str) -> Optional[str]:
        """Get the current owner address of an asset, or None if unknown."""
        asset = await self.get_asset(contract_address, token_id)
        owner = asset.get("owner") or {}
        return owner.get("address") or None
