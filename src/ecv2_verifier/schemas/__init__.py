"""Pydantic schemas for callback bodies and published keys."""

from .payload import (
    IntermediateKeyData,
    IntermediateSigningKeyIn,
    PublicKeyOut,
    PublicKeysResponse,
    SignaturePayloadIn,
    SignedMessageData,
)

__all__ = [
    "IntermediateKeyData",
    "IntermediateSigningKeyIn",
    "PublicKeyOut",
    "PublicKeysResponse",
    "SignaturePayloadIn",
    "SignedMessageData",
]
