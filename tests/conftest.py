"""
Pytest configuration and shared fixtures for collectible-tracking tests.
"""

import httpx
import pytest


@pytest.fixture
def sample_wallet_address():
    """Sample Ethereum wallet address for testing."""
    return "0xd8dA6BF26964aF9D7eEd9e03E53415D37aA96045"  # vitalik.eth


@pytest.fixture
def sample_solana_address():
    """Sample Solana wallet address for testing."""
    return "GKvqsuNcnwWqPzzuhLmGi4rzzh55FhJtGizkhHaEJqiV"


@pytest.fixture
def mock_alchemy_api_key():
    """Mock Alchemy API key for testing."""
    return "test-api-key-12345"


@pytest.fixture
def mock_opensea_api_key():
    """Mock OpenSea API key for testing."""
    return "test-opensea-key-67890"


@pytest.fixture
def make_asset():
    """Factory for raw OpenSea asset records."""

    def _make_asset(token_id="1", contract="0xA", name=None, **overrides):
        asset = {
            "token_id": token_id,
            "name": name or f"Token #{token_id}",
            "description": "A collectible",
            "image_url": f"https://img.example/{token_id}.png",
            "animation_url": None,
            "external_link": None,
            "permalink": f"https://opensea.io/assets/{contract}/{token_id}",
            "asset_contract": {"address": contract, "schema_name": "ERC721"},
            "collection": {"slug": "example", "name": "Example Collection"},
        }
        asset.update(overrides)
        return asset

    return _make_asset


@pytest.fixture
def make_event(make_asset):
    """Factory for raw OpenSea events (creation or transfer)."""

    def _make_event(
        token_id="1",
        contract="0xA",
        date="2021-01-01T00:00:00",
        from_address=None,
        to_address=None,
        event_type="transfer",
        asset=None,
    ):
        return {
            "event_type": event_type,
            "created_date": date,
            "asset": asset if asset is not None else make_asset(token_id, contract),
            "from_account": {"address": from_address} if from_address else None,
            "to_account": {"address": to_address} if to_address else None,
        }

    return _make_event


@pytest.fixture
def make_solana_item():
    """Factory for raw DAS asset items."""

    def _make_solana_item(mint="Mint111", collection="Coll111", **overrides):
        item = {
            "id": mint,
            "interface": "V1_NFT",
            "burnt": False,
            "content": {
                "metadata": {"name": f"Sol {mint}", "description": "Solana collectible"},
                "links": {"image": f"https://img.example/{mint}.png"},
                "files": [{"uri": f"https://img.example/{mint}.png", "mime": "image/png"}],
            },
            "grouping": [
                {
                    "group_key": "collection",
                    "group_value": collection,
                    "collection_metadata": {"name": "Sol Collection"},
                }
            ],
        }
        item.update(overrides)
        return item

    return _make_solana_item


class QueuedTransport:
    """
    Queue of canned upstream replies served through httpx.MockTransport.

    Replies are served in the order they were added; the last one repeats.
    Every request is recorded in ``calls``.
    """

    def __init__(self):
        self.replies = []
        self.calls = []

    def add(self, status=200, json=None, content=None, error=None):
        self.replies.append((status, json, content, error))

    def _handle(self, request):
        self.calls.append(request)
        status, json, content, error = self.replies[0] if len(self.replies) == 1 else self.replies.pop(0)
        if error is not None:
            raise error(f"cannot reach {request.url}", request=request)
        if json is not None:
            return httpx.Response(status, json=json)
        return httpx.Response(status, content=content or b"")

    @property
    def transport(self):
        return httpx.MockTransport(self._handle)


@pytest.fixture
def upstream():
    """Canned upstream API replies for the HTTP clients."""
    return QueuedTransport()
