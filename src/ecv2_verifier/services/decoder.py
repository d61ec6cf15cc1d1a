"""Decoding of raw callback bodies into signed envelopes."""

from __future__ import annotations

from typing import Protocol

from pydantic import ValidationError

from ecv2_verifier.models.verification import (
    IntermediateKeyEnvelope,
    MalformedEnvelopeError,
    SignedEnvelope,
)
from ecv2_verifier.schemas.payload import SignaturePayloadIn
from ecv2_verifier.utils.encoding import decode_base64


class PayloadDecoder(Protocol):
    """Capability turning a raw callback body into a `SignedEnvelope`."""

    def decode(self, raw: str | bytes) -> SignedEnvelope: ...


class JsonPayloadDecoder:
    """Decode the JSON callback body with pydantic.

    `signedKey` and `signedMessage` are JSON strings; their decoded values are
    the signed text and are kept as UTF-8 bytes without any re-serialization.
    """

    def decode(self, raw: str | bytes) -> SignedEnvelope:
        """Decode `raw` into an envelope.

        Raises:
            MalformedEnvelopeError: On invalid JSON, a missing or mistyped field,
                or a signature that is not base64.
        """
        if not raw or not raw.strip():
            raise MalformedEnvelopeError("Callback body is empty")

        try:
            payload = SignaturePayloadIn.model_validate_json(raw)
        except ValidationError as err:
            raise MalformedEnvelopeError(
                f"Callback body does not match the ECv2 envelope: {err.error_count()} error(s)"
            ) from err

        return self.from_schema(payload)

    @staticmethod
    def from_schema(payload: SignaturePayloadIn) -> SignedEnvelope:
        """Convert a validated wire model into the domain envelope."""
        try:
            signature = decode_base64(payload.signature)
            intermediate_signatures = tuple(
                decode_base64(value) for value in payload.intermediate_signing_key.signatures
            )
            # Lone surrogates in the JSON text fail here (UnicodeEncodeError).
            signed_key_bytes = payload.intermediate_signing_key.signed_key.encode("utf-8")
            signed_message_bytes = payload.signed_message.encode("utf-8")
        except ValueError as err:
            raise MalformedEnvelopeError(str(err)) from err

        return SignedEnvelope(
            signature=signature,
            intermediate=IntermediateKeyEnvelope(
                signed_key_bytes=signed_key_bytes,
                signatures=intermediate_signatures,
            ),
            protocol_version=payload.protocol_version,
            signed_message_bytes=signed_message_bytes,
        )
