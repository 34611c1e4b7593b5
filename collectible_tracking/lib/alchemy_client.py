"""
Alchemy API client for solana collectibles.

Uses the Digital Asset Standard (DAS) JSON-RPC API to list the assets a
wallet owns, handling pagination and the shared retry policy.
"""

from typing import Any, Dict, List

from .http_client import RetryingHTTPClient, UpstreamAPIError


SOLANA_ENDPOINT = "solana-mainnet.g.alchemy.com"

DAS_PAGE_LIMIT = 1000


class AlchemyClient(RetryingHTTPClient):
    """
    Alchemy JSON-RPC client for the solana DAS API.

    The API key is part of the URL, so it is redacted from every error
    message raised by this client.
    """

    provider_name = "alchemy"

    def __init__(self, api_key: str, page_limit: int = DAS_PAGE_LIMIT, **retry_options: Any):
        """
        Initialize the Alchemy client.

        Args:
            api_key: Alchemy API key
            page_limit: Page size for getAssetsByOwner
            **retry_options: Passed through to RetryingHTTPClient
        """
        super().__init__(api_key, **retry_options)
        self.page_limit = page_limit

    def _get_base_url(self) -> str:
        """Get the JSON-RPC URL for solana mainnet."""
        return f"https://{SOLANA_ENDPOINT}/v2/{self.api_key}"

    async def _request(
        self,
        method: str,
        params: Any,
        request_id: int = 1,
    ) -> Dict[str, Any]:
        """
        Make a JSON-RPC request with automatic 429 retry and exponential backoff.

        Args:
            method: JSON-RPC method name
            params: Method parameters
            request_id: JSON-RPC request ID

        Returns:
            The 'result' field from the JSON-RPC response

        Raises:
            UpstreamAPIError: For API errors
            UpstreamRateLimitError: When rate limit retries are exhausted
        """
        url = self._get_base_url()
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": request_id,
        }

        data = await self._post_json(url, payload)
        if not isinstance(data, dict):
            raise UpstreamAPIError("alchemy: unexpected JSON-RPC payload")

        if "error" in data:
            error = data["error"]
            raise UpstreamAPIError(
                f"alchemy: API error: {error.get('message', str(error))}",
                status_code=error.get("code"),
            )

        return data.get("result", {})

    async def get_solana_nfts(self, wallet: str) -> List[Dict[str, Any]]:
        """
        Get all non-fungible assets for a solana wallet via DAS.

        Automatically paginates through all results. Fungible tokens are
        excluded upstream; anything else is returned as raw DAS items.

        Args:
            wallet: Solana wallet public key (base58)

        Returns:
            List of raw DAS asset items
        """
        all_items: List[Dict[str, Any]] = []
        page = 1

        while True:
            params = {
                "ownerAddress": wallet,
                "page": page,
                "limit": self.page_limit,
                "displayOptions": {
                    "showFungible": False,
                    "showCollectionMetadata": True,
                },
            }

            result = await self._request("getAssetsByOwner", params)
            items = result.get("items", [])
            all_items.extend(items)

            # Check if we've fetched all items
            if len(items) < self.page_limit:
                break

            page += 1

        return all_items
