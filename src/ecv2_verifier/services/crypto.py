# src/ecv2_verifier/services/crypto.py
"""ECDSA P-256 signature verification for ECv2 signing strings."""

from __future__ import annotations

import logging

from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec

from ecv2_verifier.utils.encoding import decode_base64

logger = logging.getLogger(__name__)

CURVE = ec.SECP256R1


class SignatureVerifier:
    """Boolean oracle over ECDSA-with-SHA256 signatures on the P-256 curve."""

    @staticmethod
    def load_public_key(public_key_base64: str) -> ec.EllipticCurvePublicKey:
        """Decode a base64 X.509 SubjectPublicKeyInfo into a P-256 public key.

        Raises:
            ValueError: If the encoding is invalid or the key is not on P-256.
        """
        key_bytes = decode_base64(public_key_base64)
        try:
            public_key = serialization.load_der_public_key(key_bytes)
        except UnsupportedAlgorithm as err:
            raise ValueError(f"Unsupported public key algorithm: {err}") from err
        if not isinstance(public_key, ec.EllipticCurvePublicKey):
            raise ValueError("Public key is not an elliptic-curve key")
        if not isinstance(public_key.curve, CURVE):
            raise ValueError(f"Public key uses curve {public_key.curve.name}, expected P-256")
        return public_key

    @staticmethod
    def verify(public_key_base64: str, message: bytes, signature: bytes) -> bool:
        """Verify a DER-encoded ECDSA signature over `message`.

        Args:
            public_key_base64: Base64 DER public key of the claimed signer.
            message: Exact bytes that were signed.
            signature: DER-encoded ECDSA signature.

        Returns:
            True if the signature is valid for `message` under the key; False for
            a malformed key, a malformed signature or a mismatch alike.
        """
        try:
            public_key = SignatureVerifier.load_public_key(public_key_base64)
            public_key.verify(signature, message, ec.ECDSA(hashes.SHA256()))
            return True
        except (InvalidSignature, ValueError, TypeError) as err:
            logger.debug("Signature rejected: %s", type(err).__name__)
            return False
