"""Retrieval and caching of the published root keys.

This module keeps all network I/O out of the verification pipeline:

- `GooglePublicKeyClient` fetches the key list over HTTP
- `CachedTrustAnchorSource` holds an immutable snapshot with TTL refresh
- `StaticTrustAnchorSource` serves a fixed snapshot

Fetch failures never reach the pipeline as exceptions; the cached source turns
them into an empty `TrustAnchorSet`, which the pipeline rejects as untrusted.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

import httpx
from pydantic import ValidationError

from ecv2_verifier.core.protocol import PROTOCOL_VERSION
from ecv2_verifier.core.settings import settings
from ecv2_verifier.models.verification import (
    EMPTY_TRUST_ANCHORS,
    KeyFetchError,
    TrustAnchor,
    TrustAnchorSet,
)
from ecv2_verifier.schemas.payload import PublicKeysResponse

# Configure logger for this module
logger = logging.getLogger(__name__)

HTTP_OK = 200


class TrustAnchorSource(Protocol):
    """Capability supplying the current root key snapshot."""

    @property
    def generation(self) -> int:
        """Counter bumped every time a new snapshot is loaded."""
        ...

    async def get_trust_anchors(self, *, force_refresh: bool = False) -> TrustAnchorSet: ...


def trust_anchors_from_response(response: PublicKeysResponse) -> TrustAnchorSet:
    """Keep the keys published for the signing-only protocol."""
    return TrustAnchorSet(
        tuple(
            TrustAnchor(public_key_base64=key.key_value, protocol_version=key.protocol_version)
            for key in response.keys
            if key.protocol_version == PROTOCOL_VERSION and key.key_value
        )
    )


@dataclass(frozen=True)
class KeyClientConfig:
    """Immutable configuration for root key retrieval."""

    public_key_url: str
    timeout_seconds: float


def load_key_client_config() -> KeyClientConfig:
    """Build configuration object from global settings."""

    return KeyClientConfig(
        public_key_url=settings.public_key_url,
        timeout_seconds=float(settings.key_fetch_timeout_seconds),
    )


class GooglePublicKeyClient:
    """HTTP client for the published root key endpoint."""

    def __init__(
        self,
        config: KeyClientConfig | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config or load_key_client_config()
        self._client = http_client
        self._owns_client = http_client is None
        self._client_lock = asyncio.Lock()

    async def _ensure_client(self) -> httpx.AsyncClient:
        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    timeout=httpx.Timeout(self.config.timeout_seconds),
                )
        return self._client

    async def fetch_keys(self) -> PublicKeysResponse:
        """Fetch and parse the root key list.

        Raises:
            KeyFetchError: On transport errors, a non-200 status or an
                unparseable body.
        """
        client = await self._ensure_client()
        try:
            response = await client.get(self.config.public_key_url)
        except httpx.HTTPError as exc:
            raise KeyFetchError(f"Root key request failed: {exc}") from exc

        if response.status_code != HTTP_OK:
            raise KeyFetchError(
                f"Unexpected response ({response.status_code}) from {self.config.public_key_url}"
            )

        try:
            return PublicKeysResponse.model_validate_json(response.content)
        except ValidationError as exc:
            raise KeyFetchError(
                f"Root key response is malformed: {exc.error_count()} error(s)"
            ) from exc

    async def fetch_trust_anchors(self) -> TrustAnchorSet:
        """Fetch the root keys usable for ECv2SigningOnly."""
        return trust_anchors_from_response(await self.fetch_keys())

    async def close(self) -> None:
        """Clean up underlying HTTP client resources."""

        async with self._client_lock:
            if self._client is not None and self._owns_client:
                await self._client.aclose()
                self._client = None


class StaticTrustAnchorSource:
    """Serve a fixed snapshot, e.g. pinned keys or a key file."""

    def __init__(self, trust_anchors: TrustAnchorSet) -> None:
        self._trust_anchors = trust_anchors

    @property
    def generation(self) -> int:
        return 0

    async def get_trust_anchors(self, *, force_refresh: bool = False) -> TrustAnchorSet:
        return self._trust_anchors


class CachedTrustAnchorSource:
    """Root key snapshot refreshed on a TTL or on demand.

    The snapshot is replaced by reference, never mutated, so a verification in
    flight keeps the snapshot it started with. Refreshes are serialised.
    """

    def __init__(
        self,
        client: GooglePublicKeyClient,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        if ttl_seconds is None:
            ttl_seconds = settings.key_cache_ttl_seconds
        self.ttl_seconds = float(ttl_seconds)
        self._clock = clock
        self._snapshot: TrustAnchorSet | None = None
        self._fetched_at = 0.0
        self._generation = 0
        self._refresh_lock = asyncio.Lock()

    @property
    def snapshot(self) -> TrustAnchorSet | None:
        """Return the cached snapshot, if any."""
        return self._snapshot

    @property
    def generation(self) -> int:
        """Number of successful refreshes so far."""
        return self._generation

    def _is_fresh(self) -> bool:
        return self._snapshot is not None and self._clock() - self._fetched_at < self.ttl_seconds

    async def get_trust_anchors(self, *, force_refresh: bool = False) -> TrustAnchorSet:
        """Return the cached snapshot, refreshing it when stale or forced."""
        if not force_refresh and self._is_fresh():
            return self._snapshot  # type: ignore[return-value]

        generation = self._generation
        async with self._refresh_lock:
            # Another caller refreshed while we waited for the lock.
            if self._generation != generation and self._snapshot is not None:
                return self._snapshot
            if not force_refresh and self._is_fresh():
                return self._snapshot  # type: ignore[return-value]
            return await self._refresh()

    async def _refresh(self) -> TrustAnchorSet:
        try:
            snapshot = await self.client.fetch_trust_anchors()
        except KeyFetchError as exc:
            logger.warning("Root key refresh failed: %s", exc)
            return EMPTY_TRUST_ANCHORS

        self._snapshot = snapshot
        self._fetched_at = self._clock()
        self._generation += 1
        logger.info("Loaded %d root key(s) for %s", len(snapshot), PROTOCOL_VERSION)
        return snapshot


class _TrustAnchorSourceSingleton:
    """Singleton wrapper for the process-wide cached key source."""

    _instance: CachedTrustAnchorSource | None = None

    @classmethod
    def get_instance(cls) -> CachedTrustAnchorSource:
        """Get or create the singleton CachedTrustAnchorSource instance."""
        if cls._instance is None:
            cls._instance = CachedTrustAnchorSource(GooglePublicKeyClient())
        return cls._instance


def get_trust_anchor_source() -> CachedTrustAnchorSource:
    """Return a singleton cached trust-anchor source."""
    return _TrustAnchorSourceSingleton.get_instance()
