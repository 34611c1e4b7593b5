"""
Top-level client combining every chain's collectibles.

Chains are reconciled concurrently. A chain that fails is reported in the
result's ``errors`` rather than being mixed into the successful chains.
"""

import asyncio
from typing import List, Optional

from .alchemy_client import AlchemyClient
from .collectible_sources import (
    BaseCollectiblesSource,
    EthereumCollectiblesSource,
    SolanaCollectiblesSource,
)
from .models import CollectiblesResult, CollectibleState, CollectionInfo
from .opensea_client import OpenSeaClient


class CollectiblesClient:
    """
    Entry point for fetching collectibles across ethereum and solana.

    Sources are injected so callers (and tests) can supply their own
    clients; ``from_api_keys`` builds the default OpenSea/Alchemy setup.
    """

    def __init__(
        self,
        eth_source: Optional[BaseCollectiblesSource] = None,
        sol_source: Optional[BaseCollectiblesSource] = None,
        opensea_client: Optional[OpenSeaClient] = None,
    ):
        self.eth_source = eth_source
        self.sol_source = sol_source
        self.opensea_client = opensea_client

    @classmethod
    def from_api_keys(
        cls,
        opensea_api_key: str = "",
        alchemy_api_key: str = "",
        **opensea_options,
    ) -> "CollectiblesClient":
        """
        Build a client with the default upstream APIs.

        Args:
            opensea_api_key: OpenSea API key
            alchemy_api_key: Alchemy API key; solana is unavailable without it
            **opensea_options: Extra OpenSeaClient options (limits, endpoint)
        """
        opensea = OpenSeaClient(opensea_api_key, **opensea_options)
        sol_source = (
            SolanaCollectiblesSource(AlchemyClient(alchemy_api_key)) if alchemy_api_key else None
        )
        return cls(
            eth_source=EthereumCollectiblesSource(opensea),
            sol_source=sol_source,
            opensea_client=opensea,
        )

    async def _collect(
        self,
        source: Optional[BaseCollectiblesSource],
        chain: str,
        wallets: List[str],
    ) -> CollectibleState:
        if not wallets:
            return {}
        if source is None:
            raise ValueError(f"No collectibles source configured for chain: {chain}")
        return await source.get_all_collectibles(wallets)

    async def get_ethereum_collectibles(self, wallets: List[str]) -> CollectibleState:
        return await self._collect(self.eth_source, "eth", wallets)

    async def get_solana_collectibles(self, wallets: List[str]) -> CollectibleState:
        return await self._collect(self.sol_source, "sol", wallets)

    async def get_collectibles(
        self,
        eth_wallets: Optional[List[str]] = None,
        sol_wallets: Optional[List[str]] = None,
    ) -> CollectiblesResult:
        """
        Fetch collectibles for both chains concurrently.

        Args:
            eth_wallets: Ethereum wallet addresses
            sol_wallets: Solana wallet addresses

        Returns:
            CollectiblesResult; check ``is_complete`` or call
            ``raise_for_errors()`` to detect a failed chain
        """
        eth_result, sol_result = await asyncio.gather(
            self.get_ethereum_collectibles(eth_wallets or []),
            self.get_solana_collectibles(sol_wallets or []),
            return_exceptions=True,
        )

        result = CollectiblesResult()
        for chain, outcome in (("eth", eth_result), ("sol", sol_result)):
            if isinstance(outcome, Exception):
                result.errors[chain] = str(outcome) or type(outcome).__name__
            elif isinstance(outcome, BaseException):
                raise outcome
            elif chain == "eth":
                result.eth_collectibles = outcome
            else:
                result.sol_collectibles = outcome
        return result

    def _require_opensea(self) -> OpenSeaClient:
        if self.opensea_client is None:
            raise ValueError("No OpenSea client configured")
        return self.opensea_client

    async def get_ethereum_collection(self, contract_address: str, token_id: str) -> CollectionInfo:
        """Get collection details for an ethereum asset."""
        client = self._require_opensea()
        return await client.get_collection(contract_address, token_id)

    async def get_ethereum_asset_owner(self, contract_address: str, token_id: str) -> Optional[str]:
        """Get the current owner of an ethereum asset."""
        client = self._require_opensea()
        return await client.get_asset_owner(contract_address, token_id)

    async def aclose(self) -> None:
        """Close the HTTP clients held by the configured sources."""
        for source in (self.eth_source, self.sol_source):
            if source is not None:
                await source.aclose()
        if self.opensea_client is not None:
            await self.opensea_client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
