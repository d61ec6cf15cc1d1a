# tests/conftest.py
from __future__ import annotations

from collections.abc import Callable, Iterator
from typing import Any

import pytest
from cryptography.hazmat.primitives.asymmetric import ec
from fastapi import FastAPI
from fastapi.testclient import TestClient

from ecv2_verifier.core.protocol import PROTOCOL_VERSION
from ecv2_verifier.main import app as fastapi_app
from ecv2_verifier.models import TrustAnchorSet
from tests.factories import build_callback, public_key_b64


@pytest.fixture(scope="session")
def root_key() -> ec.EllipticCurvePrivateKey:
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture(scope="session")
def other_root_key() -> ec.EllipticCurvePrivateKey:
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture(scope="session")
def intermediate_key() -> ec.EllipticCurvePrivateKey:
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture()
def trust_anchors(root_key: ec.EllipticCurvePrivateKey) -> TrustAnchorSet:
    return TrustAnchorSet.of(public_key_b64(root_key))


@pytest.fixture()
def callback_factory(
    root_key: ec.EllipticCurvePrivateKey,
    intermediate_key: ec.EllipticCurvePrivateKey,
) -> Callable[..., dict[str, Any]]:
    """Return a builder for signed callback bodies with overridable fields."""

    def _factory(**overrides: Any) -> dict[str, Any]:
        overrides.setdefault("root_keys", [root_key])
        overrides.setdefault("intermediate_key", intermediate_key)
        return build_callback(**overrides)

    return _factory


@pytest.fixture()
def callback_body(callback_factory: Callable[..., dict[str, Any]]) -> dict[str, Any]:
    return callback_factory()


@pytest.fixture()
def keys_response(root_key: ec.EllipticCurvePrivateKey) -> dict[str, Any]:
    """Published key list holding the root key for every protocol version."""
    key_value = public_key_b64(root_key)
    return {
        "keys": [
            {"keyValue": key_value, "protocolVersion": "ECv1"},
            {"keyValue": key_value, "protocolVersion": "ECv2"},
            {"keyValue": key_value, "protocolVersion": PROTOCOL_VERSION},
        ]
    }


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
