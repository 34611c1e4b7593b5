"""
Unit tests for the OpenSea API client and the shared retry layer.

Tests follow the Given/When/Then pattern for clarity.
"""

import asyncio
import time

import httpx
import pytest

from collectible_tracking.lib.http_client import UpstreamAPIError, UpstreamRateLimitError
from collectible_tracking.lib.opensea_client import (
    DEFAULT_ASSET_LIMIT,
    DEFAULT_EVENT_LIMIT,
    OPENSEA_API_URL,
    OpenSeaClient,
)


ASSETS_URL = f"{OPENSEA_API_URL}/assets"
EVENTS_URL = f"{OPENSEA_API_URL}/events"


def endpoint_of(request):
    return f"{request.url.scheme}://{request.url.host}{request.url.path}"


class TestOpenSeaClientConfiguration:
    """Tests for client configuration."""

    def test_defaults(self, mock_opensea_api_key):
        """
        Given an OpenSeaClient without options
        When inspecting its configuration
        Then the default endpoint and limits are used
        """
        # Given / When
        client = OpenSeaClient(mock_opensea_api_key)

        # Then
        assert client.url == OPENSEA_API_URL
        assert client.asset_limit == DEFAULT_ASSET_LIMIT == 50
        assert client.event_limit == DEFAULT_EVENT_LIMIT == 300
        assert isinstance(client.client, httpx.AsyncClient)

    def test_custom_endpoint_strips_trailing_slash(self):
        client = OpenSeaClient(api_endpoint="https://testnets-api.opensea.io/api/v1/")

        assert client.url == "https://testnets-api.opensea.io/api/v1"

    def test_async_context_manager_closes_client(self, upstream):
        async def use_and_close():
            async with OpenSeaClient(transport=upstream.transport) as client:
                pass
            return client

        client = asyncio.run(use_and_close())

        assert client.client.is_closed


class TestGetAssetsForWallet:
    """Tests for owned-asset retrieval."""

    def test_returns_raw_assets(self, upstream, mock_opensea_api_key, sample_wallet_address):
        """
        Given a wallet with assets on OpenSea
        When fetching its assets
        Then the raw asset list is returned and the API key header is sent
        """
        # Given
        client = OpenSeaClient(mock_opensea_api_key, transport=upstream.transport)
        upstream.add(json={"assets": [{"token_id": "1"}, {"token_id": "2"}]})

        # When
        assets = asyncio.run(client.get_assets_for_wallet(sample_wallet_address))

        # Then
        assert [a["token_id"] for a in assets] == ["1", "2"]
        [request] = upstream.calls
        assert endpoint_of(request) == ASSETS_URL
        assert dict(request.url.params) == {"owner": sample_wallet_address, "limit": "50"}
        assert request.headers["X-API-KEY"] == mock_opensea_api_key

    def test_missing_assets_key_returns_empty(self, upstream, sample_wallet_address):
        client = OpenSeaClient(transport=upstream.transport)
        upstream.add(json={"detail": "nothing"})

        assert asyncio.run(client.get_assets_for_wallet(sample_wallet_address)) == []

    def test_non_object_payload_raises(self, upstream, sample_wallet_address):
        client = OpenSeaClient(transport=upstream.transport)
        upstream.add(json=[1, 2])

        with pytest.raises(UpstreamAPIError, match="unexpected assets payload"):
            asyncio.run(client.get_assets_for_wallet(sample_wallet_address))


class TestGetEventsForWallet:
    """Tests for event retrieval."""

    def test_queries_transfer_events(self, upstream, sample_wallet_address):
        """
        Given a wallet with transfer events
        When fetching transfer events
        Then the event type, limit and only_opensea flag are sent
        """
        # Given
        client = OpenSeaClient(event_limit=20, transport=upstream.transport)
        upstream.add(json={"asset_events": [{"created_date": "2021-01-01"}]})

        # When
        events = asyncio.run(client.get_transfer_events_for_wallet(sample_wallet_address))

        # Then
        assert events == [{"created_date": "2021-01-01"}]
        [request] = upstream.calls
        assert endpoint_of(request) == EVENTS_URL
        assert dict(request.url.params) == {
            "account_address": sample_wallet_address,
            "limit": "20",
            "event_type": "transfer",
            "only_opensea": "false",
        }

    def test_queries_created_events(self, upstream, sample_wallet_address):
        client = OpenSeaClient(transport=upstream.transport)
        upstream.add(json={"asset_events": None})

        assert asyncio.run(client.get_created_events_for_wallet(sample_wallet_address)) == []
        assert upstream.calls[0].url.params["event_type"] == "created"
        assert upstream.calls[0].url.params["limit"] == "300"

    def test_rejects_unknown_event_type(self, upstream, sample_wallet_address):
        client = OpenSeaClient(transport=upstream.transport)

        with pytest.raises(ValueError, match="Unsupported event type"):
            asyncio.run(client.get_events_for_wallet(sample_wallet_address, "sale"))

        assert upstream.calls == []


class TestCollectionAndOwner:
    """Tests for single-asset lookups."""

    def test_get_collection_maps_fields(self, upstream):
        """
        Given an asset whose collection has two primary contracts
        When fetching collection info
        Then fields are mapped and contracts comma-joined
        """
        # Given
        client = OpenSeaClient(transport=upstream.transport)
        upstream.add(
            json={
                "collection": {
                    "name": "Example",
                    "slug": "example",
                    "image_url": "https://img.example/c.png",
                    "safelist_request_status": "verified",
                    "primary_asset_contracts": [{"address": "0xA"}, {"address": "0xB"}],
                }
            }
        )

        # When
        info = asyncio.run(client.get_collection("0xA", "1"))

        # Then
        assert str(upstream.calls[0].url) == f"{OPENSEA_API_URL}/asset/0xA/1"
        assert info.name == "Example"
        assert info.slug == "example"
        assert info.image_url == "https://img.example/c.png"
        assert info.contract_address == "0xA,0xB"
        assert info.safelist_request_status == "verified"
        assert info.open_listing_count == 0

    def test_get_collection_handles_missing_collection(self, upstream):
        client = OpenSeaClient(transport=upstream.transport)
        upstream.add(json={})

        info = asyncio.run(client.get_collection("0xA", "1"))

        assert (info.name, info.slug, info.image_url, info.contract_address) == ("", "", "", "")

    def test_get_asset_owner_none_when_unknown(self, upstream):
        client = OpenSeaClient(transport=upstream.transport)
        upstream.add(json={"owner": None})

        assert asyncio.run(client.get_asset_owner("0xA", "1")) is None


class TestRetryHandling:
    """Tests for 429/5xx retry behavior."""

    def test_retries_on_429_with_exponential_backoff(self, upstream, sample_wallet_address):
        """
        Given a client configured with retry settings
        When a 429 response is received
        Then the client should retry until success
        """
        # Given
        client = OpenSeaClient(initial_delay=0.01, max_retries=3, jitter=0, transport=upstream.transport)
        upstream.add(status=429)
        upstream.add(status=429)
        upstream.add(json={"assets": [{"token_id": "1"}]})

        # When
        assets = asyncio.run(client.get_assets_for_wallet(sample_wallet_address))

        # Then
        assert assets == [{"token_id": "1"}]
        assert len(upstream.calls) == 3

    def test_raises_rate_limit_error_after_max_retries(self, upstream, sample_wallet_address):
        """
        Given a client with limited retries
        When 429 responses persist beyond max retries
        Then UpstreamRateLimitError should be raised
        """
        # Given
        client = OpenSeaClient(initial_delay=0.001, max_retries=2, jitter=0, transport=upstream.transport)
        upstream.add(status=429)

        # When / Then
        with pytest.raises(UpstreamRateLimitError) as exc_info:
            asyncio.run(client.get_assets_for_wallet(sample_wallet_address))

        assert exc_info.value.status_code == 429
        assert len(upstream.calls) == 3  # Initial + 2 retries

    def test_retries_on_server_error(self, upstream, sample_wallet_address):
        client = OpenSeaClient(initial_delay=0.001, max_retries=2, jitter=0, transport=upstream.transport)
        upstream.add(status=503)
        upstream.add(json={"assets": []})

        assert asyncio.run(client.get_assets_for_wallet(sample_wallet_address)) == []
        assert len(upstream.calls) == 2

    def test_invalid_api_key_is_not_retried(self, upstream, mock_opensea_api_key, sample_wallet_address):
        """
        Given a client with an invalid API key
        When the API answers 401
        Then UpstreamAPIError is raised without retrying
        """
        # Given
        client = OpenSeaClient(
            mock_opensea_api_key, initial_delay=0.001, jitter=0, transport=upstream.transport
        )
        upstream.add(status=401)

        # When / Then
        with pytest.raises(UpstreamAPIError) as exc_info:
            asyncio.run(client.get_assets_for_wallet(sample_wallet_address))

        assert exc_info.value.status_code == 401
        assert len(upstream.calls) == 1

    def test_client_error_is_not_retried(self, upstream, sample_wallet_address):
        client = OpenSeaClient(initial_delay=0.001, jitter=0, transport=upstream.transport)
        upstream.add(status=400)

        with pytest.raises(UpstreamAPIError) as exc_info:
            asyncio.run(client.get_assets_for_wallet(sample_wallet_address))

        assert exc_info.value.status_code == 400
        assert len(upstream.calls) == 1

    def test_connection_errors_are_retried_then_raised(self, upstream, sample_wallet_address):
        client = OpenSeaClient(initial_delay=0.001, max_retries=1, jitter=0, transport=upstream.transport)
        upstream.add(error=httpx.ConnectError)

        with pytest.raises(UpstreamAPIError, match="request failed"):
            asyncio.run(client.get_assets_for_wallet(sample_wallet_address))

        assert len(upstream.calls) == 2

    def test_invalid_json_raises(self, upstream, sample_wallet_address):
        client = OpenSeaClient(transport=upstream.transport)
        upstream.add(content=b"<html>")

        with pytest.raises(UpstreamAPIError, match="invalid JSON"):
            asyncio.run(client.get_assets_for_wallet(sample_wallet_address))

    def test_backoff_is_cancelled_by_caller_timeout(self, upstream, sample_wallet_address):
        """
        Given a client that would back off for seconds on a persistent 429
        When the caller bounds the retrieval with a short timeout
        Then the retrieval is cancelled promptly instead of sleeping on
        """
        # Given
        client = OpenSeaClient(initial_delay=5.0, max_retries=3, jitter=0, transport=upstream.transport)
        upstream.add(status=429)

        # When
        start = time.monotonic()
        with pytest.raises(asyncio.TimeoutError):
            asyncio.run(asyncio.wait_for(client.get_assets_for_wallet(sample_wallet_address), 0.2))
        elapsed = time.monotonic() - start

        # Then
        assert elapsed < 1.0
        assert len(upstream.calls) == 1

    def test_jitter_applies_randomization_to_delay(self):
        """
        Given a client with jitter enabled
        When calculating delay with jitter
        Then the delay should be within the expected range
        """
        # Given
        client = OpenSeaClient(jitter=0.1)

        # When
        jittered_delays = [client._apply_jitter(1.0) for _ in range(100)]

        # Then
        for delay in jittered_delays:
            assert 0.9 <= delay <= 1.1  # ±10%
