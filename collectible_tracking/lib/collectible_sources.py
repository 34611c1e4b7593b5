"""
Chain sources that fetch and reconcile collectibles for a set of wallets.

Each source fans its retrievals out across wallets, tolerating per-wallet
failures, and hands the flattened records to the reconciliation engine.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import List

from .alchemy_client import AlchemyClient
from .fetchers import fetch_for_wallets, flatten_assets, flatten_events
from .materializers import ETHEREUM_MAPPING, SOLANA_MAPPING
from .models import CollectibleState
from .opensea_client import OpenSeaClient
from .reconciliation import reconcile


class BaseCollectiblesSource(ABC):
    """
    Abstract base class for per-chain collectible sources.

    Defines the interface that the aggregator drives for every chain.
    """

    chain = ""

    @abstractmethod
    async def get_all_collectibles(self, wallets: List[str]) -> CollectibleState:
        """
        Fetch and reconcile every collectible held by or tied to the wallets.

        Args:
            wallets: Wallet addresses to query

        Returns:
            Mapping of wallet to collectibles
        """
        pass

    async def aclose(self) -> None:
        """Release the source's HTTP client, if it holds one."""
        client = getattr(self, "client", None)
        if client is not None:
            await client.aclose()


class EthereumCollectiblesSource(BaseCollectiblesSource):
    """
    Ethereum collectibles from OpenSea.

    Owned assets, creation events and transfer events are fetched
    concurrently for all wallets, then reconciled.
    """

    chain = "eth"

    def __init__(self, client: OpenSeaClient):
        self.client = client

    async def get_all_collectibles(self, wallets: List[str]) -> CollectibleState:
        assets, created, transfers = await asyncio.gather(
            fetch_for_wallets(wallets, self.client.get_assets_for_wallet),
            fetch_for_wallets(wallets, self.client.get_created_events_for_wallet),
            fetch_for_wallets(wallets, self.client.get_transfer_events_for_wallet),
        )

        return reconcile(
            owned_assets=flatten_assets(assets, self.chain, "assets"),
            creation_events=flatten_events(created, self.chain, "creation events"),
            transfer_events=flatten_events(transfers, self.chain, "transfer events"),
            wallets=wallets,
            mapping=ETHEREUM_MAPPING,
        )


class SolanaCollectiblesSource(BaseCollectiblesSource):
    """
    Solana collectibles from the Alchemy DAS API.

    Only owned assets are available; reconciliation still deduplicates them
    and groups them by wallet.
    """

    chain = "sol"

    def __init__(self, client: AlchemyClient):
        self.client = client

    async def get_all_collectibles(self, wallets: List[str]) -> CollectibleState:
        assets = await fetch_for_wallets(wallets, self.client.get_solana_nfts)

        return reconcile(
            owned_assets=flatten_assets(assets, self.chain, "assets"),
            creation_events=[],
            transfer_events=[],
            wallets=wallets,
            mapping=SOLANA_MAPPING,
        )
