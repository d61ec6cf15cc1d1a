"""Callback validation workflow used by the API layer and the CLI.

`CallbackValidator` wires the pure pipeline to its collaborators: a payload
decoder, a trust-anchor source and a clock. It is the only layer that logs
verification decisions.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass

from ecv2_verifier.core.settings import settings
from ecv2_verifier.models.verification import (
    ConfigurationError,
    FailureKind,
    MalformedEnvelopeError,
    SignedEnvelope,
    VerificationOutcome,
)
from ecv2_verifier.services.decoder import JsonPayloadDecoder, PayloadDecoder
from ecv2_verifier.services.pipeline import ValidationPipeline
from ecv2_verifier.services.trust_anchors import TrustAnchorSource, get_trust_anchor_source

# Configure logger for this module
logger = logging.getLogger(__name__)


def current_epoch_millis() -> int:
    """Return the wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


@dataclass(frozen=True)
class ValidatorConfig:
    """Immutable per-deployment validation settings."""

    recipient_id: str
    refresh_keys_on_untrusted: bool = True

    def __post_init__(self) -> None:
        if not self.recipient_id or not self.recipient_id.strip():
            raise ConfigurationError("Recipient (issuer) id cannot be empty")


def load_validator_config() -> ValidatorConfig:
    """Build configuration object from global settings."""

    return ValidatorConfig(
        recipient_id=settings.issuer_id,
        refresh_keys_on_untrusted=settings.refresh_keys_on_untrusted,
    )


class CallbackValidator:
    """Validate raw callback bodies against the published root keys."""

    def __init__(
        self,
        config: ValidatorConfig,
        key_source: TrustAnchorSource,
        decoder: PayloadDecoder | None = None,
        pipeline: ValidationPipeline | None = None,
        clock: Callable[[], int] = current_epoch_millis,
    ) -> None:
        self.config = config
        self.key_source = key_source
        self.decoder = decoder or JsonPayloadDecoder()
        self.pipeline = pipeline or ValidationPipeline()
        self._clock = clock

    async def validate(self, raw: str | bytes) -> VerificationOutcome:
        """Decode and verify a raw callback body.

        Args:
            raw: Callback body exactly as received.

        Returns:
            The verification outcome; decode failures are reported as
            `MalformedEnvelope` rather than raised.
        """
        try:
            envelope = self.decoder.decode(raw)
        except MalformedEnvelopeError as err:
            logger.warning("Rejected callback: %s (%s)", FailureKind.MALFORMED_ENVELOPE.value, err)
            return VerificationOutcome.reject(FailureKind.MALFORMED_ENVELOPE)

        return await self.validate_envelope(envelope)

    async def validate_envelope(self, envelope: SignedEnvelope) -> VerificationOutcome:
        """Verify an already decoded envelope."""
        now = self._clock()
        generation = self.key_source.generation
        trust_anchors = await self.key_source.get_trust_anchors()
        outcome = self.pipeline.verify(envelope, trust_anchors, self.config.recipient_id, now)

        if (
            outcome.reason is FailureKind.UNTRUSTED_INTERMEDIATE_KEY
            and self.config.refresh_keys_on_untrusted
        ):
            # Keys loaded during this call are already current; only re-read them.
            force_refresh = self.key_source.generation == generation
            refreshed = await self.key_source.get_trust_anchors(force_refresh=force_refresh)
            if refreshed is not trust_anchors:
                logger.info("Intermediate key untrusted; retrying once with refreshed root keys")
                outcome = self.pipeline.verify(
                    envelope, refreshed, self.config.recipient_id, now
                )

        self._log_outcome(outcome)
        return outcome

    @staticmethod
    def _log_outcome(outcome: VerificationOutcome) -> None:
        if outcome.accepted:
            message = outcome.message
            logger.info(
                "Accepted callback: event_type=%s class_id=%s object_id=%s",
                message.event_type if message else None,
                message.class_id if message else None,
                message.object_id if message else None,
            )
        else:
            reason = outcome.reason.value if outcome.reason else "unknown"
            logger.warning("Rejected callback: %s", reason)


class _CallbackValidatorSingleton:
    """Singleton wrapper for CallbackValidator."""

    _instance: CallbackValidator | None = None

    @classmethod
    def get_instance(cls) -> CallbackValidator:
        """Get or create the singleton CallbackValidator instance.

        Raises:
            ConfigurationError: If no issuer id is configured.
        """
        if cls._instance is None:
            cls._instance = CallbackValidator(load_validator_config(), get_trust_anchor_source())
        return cls._instance


def get_callback_validator() -> CallbackValidator:
    """Return a singleton callback validator built from settings."""
    return _CallbackValidatorSingleton.get_instance()
