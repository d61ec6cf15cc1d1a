# src/ecv2_verifier/models/__init__.py
"""Domain types shared across the verifier."""

from .verification import (
    EMPTY_TRUST_ANCHORS,
    CanonicalEncodingError,
    ConfigurationError,
    Ecv2Error,
    FailureKind,
    IntermediateKeyEnvelope,
    IntermediateKeyMaterial,
    KeyFetchError,
    MalformedEnvelopeError,
    SignedEnvelope,
    SignedMessageFields,
    TrustAnchor,
    TrustAnchorSet,
    VerificationOutcome,
)

__all__ = [
    "EMPTY_TRUST_ANCHORS",
    "CanonicalEncodingError",
    "ConfigurationError",
    "Ecv2Error",
    "FailureKind",
    "IntermediateKeyEnvelope",
    "IntermediateKeyMaterial",
    "KeyFetchError",
    "MalformedEnvelopeError",
    "SignedEnvelope",
    "SignedMessageFields",
    "TrustAnchor",
    "TrustAnchorSet",
    "VerificationOutcome",
]
