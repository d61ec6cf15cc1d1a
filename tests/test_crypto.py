"""Tests for ECDSA P-256 signature verification."""

from __future__ import annotations

import base64

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519

from ecv2_verifier.services.crypto import SignatureVerifier
from tests.factories import public_key_b64, sign

MESSAGE = b"\x0f\x00\x00\x00GooglePayPasses"


def test_verify_accepts_valid_signature(root_key: ec.EllipticCurvePrivateKey) -> None:
    signature = sign(root_key, MESSAGE)
    assert SignatureVerifier.verify(public_key_b64(root_key), MESSAGE, signature) is True


def test_verify_rejects_other_key(
    root_key: ec.EllipticCurvePrivateKey, other_root_key: ec.EllipticCurvePrivateKey
) -> None:
    signature = sign(root_key, MESSAGE)
    assert SignatureVerifier.verify(public_key_b64(other_root_key), MESSAGE, signature) is False


def test_verify_rejects_altered_message(root_key: ec.EllipticCurvePrivateKey) -> None:
    signature = sign(root_key, MESSAGE)
    assert SignatureVerifier.verify(public_key_b64(root_key), MESSAGE + b"x", signature) is False


@pytest.mark.parametrize("signature", [b"", b"\x30\x02\x01", b"not a der signature"])
def test_verify_rejects_malformed_signature(
    root_key: ec.EllipticCurvePrivateKey, signature: bytes
) -> None:
    assert SignatureVerifier.verify(public_key_b64(root_key), MESSAGE, signature) is False


@pytest.mark.parametrize("key", ["", "not base64!", base64.b64encode(b"garbage").decode()])
def test_verify_rejects_malformed_key(root_key: ec.EllipticCurvePrivateKey, key: str) -> None:
    signature = sign(root_key, MESSAGE)
    assert SignatureVerifier.verify(key, MESSAGE, signature) is False


def test_verify_rejects_key_on_other_curve() -> None:
    p384_key = ec.generate_private_key(ec.SECP384R1())
    signature = sign(p384_key, MESSAGE)
    assert SignatureVerifier.verify(public_key_b64(p384_key), MESSAGE, signature) is False
    with pytest.raises(ValueError):
        SignatureVerifier.load_public_key(public_key_b64(p384_key))


def test_verify_rejects_non_ec_key() -> None:
    ed_key = ed25519.Ed25519PrivateKey.generate()
    der = ed_key.public_key().public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    key_b64 = base64.b64encode(der).decode()
    assert SignatureVerifier.verify(key_b64, MESSAGE, ed_key.sign(MESSAGE)) is False
    with pytest.raises(ValueError):
        SignatureVerifier.load_public_key(key_b64)
