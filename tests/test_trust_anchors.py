"""Tests for root key retrieval and caching."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock

import httpx
import pytest

from ecv2_verifier.core.protocol import PROTOCOL_VERSION
from ecv2_verifier.models import EMPTY_TRUST_ANCHORS, KeyFetchError, TrustAnchorSet
from ecv2_verifier.schemas.payload import PublicKeysResponse
from ecv2_verifier.services.trust_anchors import (
    CachedTrustAnchorSource,
    GooglePublicKeyClient,
    KeyClientConfig,
    StaticTrustAnchorSource,
    trust_anchors_from_response,
)

KEY_URL = "https://keys.example.test/gp/m/issuer/keys"
CONFIG = KeyClientConfig(public_key_url=KEY_URL, timeout_seconds=1.0)


def _client_for(handler: Callable[[httpx.Request], httpx.Response]) -> GooglePublicKeyClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GooglePublicKeyClient(CONFIG, http_client=http_client)


class SlowKeyClient:
    """Key client whose fetch yields to the event loop before answering."""

    def __init__(self) -> None:
        self.fetches = 0

    async def fetch_trust_anchors(self) -> TrustAnchorSet:
        self.fetches += 1
        await asyncio.sleep(0.01)
        return TrustAnchorSet.of(f"key-{self.fetches}")


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_trust_anchors_keep_signing_only_keys() -> None:
    response = PublicKeysResponse.model_validate(
        {
            "keys": [
                {"keyValue": "a", "protocolVersion": "ECv1"},
                {"keyValue": "b", "protocolVersion": PROTOCOL_VERSION},
                {"keyValue": "c"},
                {"keyValue": "", "protocolVersion": PROTOCOL_VERSION},
                {"keyValue": "d", "protocolVersion": PROTOCOL_VERSION},
            ]
        }
    )
    anchors = trust_anchors_from_response(response)
    assert [anchor.public_key_base64 for anchor in anchors] == ["b", "d"]


@pytest.mark.asyncio
async def test_fetch_trust_anchors(keys_response: dict[str, Any]) -> None:
    requested: list[str] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requested.append(str(request.url))
        return httpx.Response(200, json=keys_response)

    client = _client_for(handler)
    anchors = await client.fetch_trust_anchors()

    assert requested == [KEY_URL]
    assert len(anchors) == 1
    assert anchors.keys[0].protocol_version == PROTOCOL_VERSION


@pytest.mark.asyncio
async def test_fetch_rejects_error_status() -> None:
    client = _client_for(lambda request: httpx.Response(503))
    with pytest.raises(KeyFetchError):
        await client.fetch_keys()


@pytest.mark.asyncio
async def test_fetch_rejects_malformed_body() -> None:
    client = _client_for(lambda request: httpx.Response(200, content=b"<html>"))
    with pytest.raises(KeyFetchError):
        await client.fetch_keys()


@pytest.mark.asyncio
async def test_fetch_wraps_transport_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    client = _client_for(handler)
    with pytest.raises(KeyFetchError):
        await client.fetch_keys()


@pytest.mark.asyncio
async def test_close_leaves_injected_client_open() -> None:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
    client = GooglePublicKeyClient(CONFIG, http_client=http_client)
    await client.close()
    assert http_client.is_closed is False
    await http_client.aclose()


@pytest.mark.asyncio
async def test_static_source_ignores_refresh() -> None:
    anchors = TrustAnchorSet.of("a")
    source = StaticTrustAnchorSource(anchors)
    assert await source.get_trust_anchors() is anchors
    assert await source.get_trust_anchors(force_refresh=True) is anchors


@pytest.mark.asyncio
async def test_cached_source_reuses_snapshot_until_ttl() -> None:
    first, second = TrustAnchorSet.of("a"), TrustAnchorSet.of("b")
    client = AsyncMock(spec=GooglePublicKeyClient)
    client.fetch_trust_anchors.side_effect = [first, second]
    clock = FakeClock()
    source = CachedTrustAnchorSource(client, ttl_seconds=60, clock=clock)

    assert await source.get_trust_anchors() is first
    clock.now = 59
    assert await source.get_trust_anchors() is first
    assert client.fetch_trust_anchors.await_count == 1

    clock.now = 60
    assert await source.get_trust_anchors() is second
    assert source.snapshot is second
    assert client.fetch_trust_anchors.await_count == 2


@pytest.mark.asyncio
async def test_cached_source_force_refresh() -> None:
    first, second = TrustAnchorSet.of("a"), TrustAnchorSet.of("b")
    client = AsyncMock(spec=GooglePublicKeyClient)
    client.fetch_trust_anchors.side_effect = [first, second]
    source = CachedTrustAnchorSource(client, ttl_seconds=3600, clock=FakeClock())

    assert await source.get_trust_anchors() is first
    assert await source.get_trust_anchors(force_refresh=True) is second


@pytest.mark.asyncio
async def test_concurrent_forced_refreshes_share_one_fetch() -> None:
    client = SlowKeyClient()
    source = CachedTrustAnchorSource(
        client, ttl_seconds=3600, clock=FakeClock()  # type: ignore[arg-type]
    )

    results = await asyncio.gather(
        *(source.get_trust_anchors(force_refresh=True) for _ in range(5))
    )

    assert client.fetches == 1
    assert all(result is results[0] for result in results)
    assert source.snapshot is results[0]
    assert source.generation == 1


@pytest.mark.asyncio
async def test_cached_source_turns_fetch_failure_into_empty_set() -> None:
    anchors = TrustAnchorSet.of("a")
    client = AsyncMock(spec=GooglePublicKeyClient)
    client.fetch_trust_anchors.side_effect = [anchors, KeyFetchError("down"), anchors]
    clock = FakeClock()
    source = CachedTrustAnchorSource(client, ttl_seconds=10, clock=clock)

    assert await source.get_trust_anchors() is anchors
    clock.now = 20
    assert await source.get_trust_anchors() is EMPTY_TRUST_ANCHORS
    # The failed refresh neither replaces the snapshot nor marks it fresh.
    assert source.snapshot is anchors
    assert await source.get_trust_anchors() is anchors
    assert client.fetch_trust_anchors.await_count == 3


@pytest.mark.asyncio
async def test_cached_source_over_http(keys_response: dict[str, Any]) -> None:
    calls = 0

    def handler(request: httpx.Request) -> httpx.Response:
        nonlocal calls
        calls += 1
        return httpx.Response(200, content=json.dumps(keys_response).encode())

    source = CachedTrustAnchorSource(_client_for(handler), ttl_seconds=3600, clock=FakeClock())
    first = await source.get_trust_anchors()
    second = await source.get_trust_anchors()

    assert first is second
    assert len(first) == 1
    assert calls == 1
