"""Domain types for ECv2SigningOnly callback verification.

Every value here is built fresh for a single verification call and never
mutated afterwards.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum


class Ecv2Error(RuntimeError):
    """Base exception raised for verifier failures outside the pure core."""


class MalformedEnvelopeError(Ecv2Error):
    """Raised when a callback body cannot be decoded into a signed envelope."""


class CanonicalEncodingError(Ecv2Error, ValueError):
    """Raised when a value cannot be length-prefixed with 32 bits."""


class KeyFetchError(Ecv2Error):
    """Raised when the published root keys cannot be retrieved."""


class ConfigurationError(Ecv2Error):
    """Raised when a validator is built from unusable configuration."""


class FailureKind(str, Enum):
    """Machine-readable reason attached to a rejected verification."""

    MALFORMED_ENVELOPE = "MalformedEnvelope"
    UNSUPPORTED_PROTOCOL = "UnsupportedProtocol"
    RECIPIENT_MISMATCH = "RecipientMismatch"
    MESSAGE_EXPIRED = "MessageExpired"
    MALFORMED_INTERMEDIATE_KEY = "MalformedIntermediateKey"
    INTERMEDIATE_KEY_EXPIRED = "IntermediateKeyExpired"
    UNTRUSTED_INTERMEDIATE_KEY = "UntrustedIntermediateKey"
    INVALID_MESSAGE_SIGNATURE = "InvalidMessageSignature"


@dataclass(frozen=True)
class IntermediateKeyEnvelope:
    """Intermediate signing key as published, plus its root-key signatures.

    More than one signature may be present while root keys rotate; any one
    verifying under any trust anchor is sufficient.
    """

    signed_key_bytes: bytes
    signatures: tuple[bytes, ...]


@dataclass(frozen=True)
class SignedEnvelope:
    """Decoded callback payload.

    `signed_message_bytes` and `intermediate.signed_key_bytes` hold the exact
    text the sender signed. They are fed to the canonical encoder verbatim.
    """

    signature: bytes
    intermediate: IntermediateKeyEnvelope
    protocol_version: str
    signed_message_bytes: bytes


@dataclass(frozen=True)
class IntermediateKeyMaterial:
    """Public key and expiry parsed from `signedKey`."""

    public_key_base64: str
    expiration_epoch_millis: int


@dataclass(frozen=True)
class SignedMessageFields:
    """Fields parsed from `signedMessage`."""

    expiration_epoch_millis: int
    class_id: str | None = None
    object_id: str | None = None
    event_type: str | None = None
    count: int | None = None
    nonce: str | None = None


@dataclass(frozen=True)
class TrustAnchor:
    """One published root public key."""

    public_key_base64: str
    protocol_version: str | None = None


@dataclass(frozen=True)
class TrustAnchorSet:
    """Immutable snapshot of the currently published root keys."""

    keys: tuple[TrustAnchor, ...] = ()

    def __len__(self) -> int:
        return len(self.keys)

    def __iter__(self) -> Iterator[TrustAnchor]:
        return iter(self.keys)

    @classmethod
    def of(cls, *public_keys_base64: str) -> TrustAnchorSet:
        """Build a snapshot from bare base64 key strings."""
        return cls(tuple(TrustAnchor(public_key_base64=key) for key in public_keys_base64))


EMPTY_TRUST_ANCHORS = TrustAnchorSet()


@dataclass(frozen=True)
class VerificationOutcome:
    """Terminal result of one verification call."""

    accepted: bool
    reason: FailureKind | None = None
    message: SignedMessageFields | None = field(default=None, compare=False)

    @classmethod
    def accept(cls, message: SignedMessageFields) -> VerificationOutcome:
        return cls(accepted=True, message=message)

    @classmethod
    def reject(cls, reason: FailureKind) -> VerificationOutcome:
        return cls(accepted=False, reason=reason)

    def __bool__(self) -> bool:
        return self.accepted
