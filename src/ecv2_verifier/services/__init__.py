# src/ecv2_verifier/services/__init__.py
"""Verification services for ECv2SigningOnly callbacks."""

from .checks import is_future, recipient_bound
from .crypto import SignatureVerifier
from .decoder import JsonPayloadDecoder, PayloadDecoder
from .pipeline import ValidationPipeline, verify
from .trust_anchors import (
    CachedTrustAnchorSource,
    GooglePublicKeyClient,
    StaticTrustAnchorSource,
    TrustAnchorSource,
)
from .validator import CallbackValidator, ValidatorConfig

__all__ = [
    "CachedTrustAnchorSource",
    "CallbackValidator",
    "GooglePublicKeyClient",
    "JsonPayloadDecoder",
    "PayloadDecoder",
    "SignatureVerifier",
    "StaticTrustAnchorSource",
    "TrustAnchorSource",
    "ValidationPipeline",
    "ValidatorConfig",
    "is_future",
    "recipient_bound",
    "verify",
]
