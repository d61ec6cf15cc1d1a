"""Trust-chain verification of ECv2SigningOnly envelopes.

The pipeline evaluates, in order:

1. protocol version
2. recipient binding of the signed message
3. expiry of the signed message
4. expiry of the intermediate signing key
5. signature of the intermediate key under a published root key
6. signature of the message under the intermediate key

The first failing step decides the outcome. Steps 1-4 are cheap and run
before any signature is checked, and the intermediate key is never used to
check the message unless it is unexpired and chained to a root key.

`verify` never raises: every failure is returned as a `VerificationOutcome`.
"""

from __future__ import annotations

import logging

from ecv2_verifier.core.protocol import PROTOCOL_VERSION, SENDER_ID
from ecv2_verifier.models.verification import (
    CanonicalEncodingError,
    FailureKind,
    IntermediateKeyMaterial,
    SignedEnvelope,
    SignedMessageFields,
    TrustAnchorSet,
    VerificationOutcome,
)
from ecv2_verifier.schemas.payload import IntermediateKeyData, SignedMessageData
from ecv2_verifier.services.checks import is_future, recipient_bound
from ecv2_verifier.services.crypto import SignatureVerifier
from ecv2_verifier.utils.encoding import encode_for_signing

logger = logging.getLogger(__name__)


def parse_signed_message(signed_message_bytes: bytes) -> SignedMessageFields:
    """Parse the JSON text of `signedMessage`.

    Raises:
        ValueError: If the text is not a JSON object with integer `expTimeMillis`.
    """
    data = SignedMessageData.model_validate_json(signed_message_bytes)
    return SignedMessageFields(
        expiration_epoch_millis=data.exp_time_millis,
        class_id=data.class_id,
        object_id=data.object_id,
        event_type=data.event_type,
        count=data.count,
        nonce=data.nonce,
    )


def parse_intermediate_key(signed_key_bytes: bytes) -> IntermediateKeyMaterial:
    """Parse the JSON text of `signedKey`.

    Raises:
        ValueError: If `keyValue` or an integral `keyExpiration` is missing.
    """
    data = IntermediateKeyData.model_validate_json(signed_key_bytes)
    return IntermediateKeyMaterial(
        public_key_base64=data.key_value,
        expiration_epoch_millis=data.key_expiration,
    )


def intermediate_signing_string(protocol_version: str, signed_key_bytes: bytes) -> bytes:
    """Bytes a root key signs to certify an intermediate key."""
    return encode_for_signing(SENDER_ID, protocol_version, signed_key_bytes)


def message_signing_string(
    recipient_id: str, protocol_version: str, signed_message_bytes: bytes
) -> bytes:
    """Bytes an intermediate key signs for one recipient's message."""
    return encode_for_signing(SENDER_ID, recipient_id, protocol_version, signed_message_bytes)


class ValidationPipeline:
    """Stateless accept/reject decision over one envelope.

    A single instance can be shared between threads; `verify` only reads its
    arguments.
    """

    def __init__(self, verifier: SignatureVerifier | None = None) -> None:
        self._verifier = verifier or SignatureVerifier()

    def verify(
        self,
        envelope: SignedEnvelope,
        trust_anchors: TrustAnchorSet,
        expected_recipient_id: str,
        now: int,
    ) -> VerificationOutcome:
        """Decide whether `envelope` is authentic, unexpired and addressed to us.

        Args:
            envelope: Decoded callback envelope.
            trust_anchors: Snapshot of published root keys.
            expected_recipient_id: Issuer id of this deployment.
            now: Verification time in epoch milliseconds.

        Returns:
            An accepting outcome carrying the decoded message, or a rejecting
            outcome carrying the first failing reason.
        """
        try:
            return self._run(envelope, trust_anchors, expected_recipient_id, now)
        except CanonicalEncodingError as err:
            logger.debug("Signing string could not be built: %s", err)
            return VerificationOutcome.reject(FailureKind.MALFORMED_ENVELOPE)

    def _run(
        self,
        envelope: SignedEnvelope,
        trust_anchors: TrustAnchorSet,
        expected_recipient_id: str,
        now: int,
    ) -> VerificationOutcome:
        if envelope.protocol_version != PROTOCOL_VERSION:
            logger.debug("Unsupported protocol version %r", envelope.protocol_version)
            return VerificationOutcome.reject(FailureKind.UNSUPPORTED_PROTOCOL)

        try:
            message = parse_signed_message(envelope.signed_message_bytes)
        except ValueError as err:
            logger.debug("Signed message is malformed: %s", err)
            return VerificationOutcome.reject(FailureKind.MALFORMED_ENVELOPE)

        if not recipient_bound(expected_recipient_id, message.class_id, message.object_id):
            logger.debug(
                "Recipient mismatch: expected=%s class_id=%s object_id=%s",
                expected_recipient_id,
                message.class_id,
                message.object_id,
            )
            return VerificationOutcome.reject(FailureKind.RECIPIENT_MISMATCH)

        if not is_future(message.expiration_epoch_millis, now):
            logger.debug("Signed message expired at %d", message.expiration_epoch_millis)
            return VerificationOutcome.reject(FailureKind.MESSAGE_EXPIRED)

        try:
            material = parse_intermediate_key(envelope.intermediate.signed_key_bytes)
        except ValueError as err:
            logger.debug("Intermediate key is malformed: %s", err)
            return VerificationOutcome.reject(FailureKind.MALFORMED_INTERMEDIATE_KEY)

        if not is_future(material.expiration_epoch_millis, now):
            logger.debug("Intermediate key expired at %d", material.expiration_epoch_millis)
            return VerificationOutcome.reject(FailureKind.INTERMEDIATE_KEY_EXPIRED)

        if not self._intermediate_key_trusted(envelope, trust_anchors):
            logger.debug(
                "No signature among %d chains to %d root key(s)",
                len(envelope.intermediate.signatures),
                len(trust_anchors),
            )
            return VerificationOutcome.reject(FailureKind.UNTRUSTED_INTERMEDIATE_KEY)

        signed_string = message_signing_string(
            expected_recipient_id,
            envelope.protocol_version,
            envelope.signed_message_bytes,
        )
        if not self._verifier.verify(material.public_key_base64, signed_string, envelope.signature):
            logger.debug("Message signature does not verify under the intermediate key")
            return VerificationOutcome.reject(FailureKind.INVALID_MESSAGE_SIGNATURE)

        return VerificationOutcome.accept(message)

    def _intermediate_key_trusted(
        self, envelope: SignedEnvelope, trust_anchors: TrustAnchorSet
    ) -> bool:
        signed_string = intermediate_signing_string(
            envelope.protocol_version, envelope.intermediate.signed_key_bytes
        )
        # Every pair is checked so the decision does not depend on where a match sits.
        results = [
            self._verifier.verify(anchor.public_key_base64, signed_string, signature)
            for anchor in trust_anchors
            for signature in envelope.intermediate.signatures
        ]
        return any(results)


_default_pipeline = ValidationPipeline()


def verify(
    envelope: SignedEnvelope,
    trust_anchors: TrustAnchorSet,
    expected_recipient_id: str,
    now: int,
) -> VerificationOutcome:
    """Verify `envelope` with the shared default pipeline."""
    return _default_pipeline.verify(envelope, trust_anchors, expected_recipient_id, now)
