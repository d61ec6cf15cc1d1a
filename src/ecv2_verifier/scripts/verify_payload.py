# src/ecv2_verifier/scripts/verify_payload.py
"""
Verify a saved ECv2SigningOnly callback body from the command line.

Usage:
    ecv2-verify callback.json --recipient-id 3388000000012345678
    ecv2-verify callback.json --recipient-id 3388000000012345678 --keys-file keys.json

Exit status is 0 when the callback is accepted, 1 when it is rejected and 2
on usage or configuration errors.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from ecv2_verifier.core.settings import settings
from ecv2_verifier.models.verification import ConfigurationError, VerificationOutcome
from ecv2_verifier.schemas.payload import PublicKeysResponse
from ecv2_verifier.services.trust_anchors import (
    CachedTrustAnchorSource,
    GooglePublicKeyClient,
    StaticTrustAnchorSource,
    TrustAnchorSource,
    trust_anchors_from_response,
)
from ecv2_verifier.services.validator import (
    CallbackValidator,
    ValidatorConfig,
    current_epoch_millis,
)

EXIT_ACCEPTED = 0
EXIT_REJECTED = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ecv2-verify",
        description="Verify an ECv2SigningOnly callback body.",
    )
    parser.add_argument("payload", type=Path, help="File holding the raw callback body")
    parser.add_argument(
        "--recipient-id",
        default=settings.issuer_id,
        help="Issuer id the callback must be addressed to (default: ECV2_ISSUER_ID)",
    )
    parser.add_argument(
        "--keys-file",
        type=Path,
        default=None,
        help="Root key list as published; fetched from ECV2_PUBLIC_KEY_URL when omitted",
    )
    parser.add_argument(
        "--now",
        type=int,
        default=None,
        help="Verification time in epoch milliseconds (default: current time)",
    )
    return parser


def load_key_source(
    keys_file: Path | None,
) -> tuple[TrustAnchorSource, GooglePublicKeyClient | None]:
    """Return a key source for the given key file, or an HTTP-backed one."""
    if keys_file is None:
        client = GooglePublicKeyClient()
        return CachedTrustAnchorSource(client), client

    response = PublicKeysResponse.model_validate_json(keys_file.read_bytes())
    return StaticTrustAnchorSource(trust_anchors_from_response(response)), None


async def run(args: argparse.Namespace) -> VerificationOutcome:
    config = ValidatorConfig(recipient_id=args.recipient_id)
    key_source, client = load_key_source(args.keys_file)
    clock = current_epoch_millis if args.now is None else (lambda: args.now)
    validator = CallbackValidator(config, key_source, clock=clock)
    try:
        return await validator.validate(args.payload.read_bytes())
    finally:
        if client is not None:
            await client.close()


def main(argv: list[str] | None = None) -> int:
    """Run the verifier and return the process exit status."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    args = build_parser().parse_args(argv)

    try:
        outcome = asyncio.run(run(args))
    except ConfigurationError as exc:
        print(f"Configuration error: {exc}", file=sys.stderr)
        return EXIT_USAGE
    except OSError as exc:
        print(f"Cannot read input: {exc}", file=sys.stderr)
        return EXIT_USAGE
    except ValidationError as exc:
        print(f"Key file is malformed: {exc.error_count()} error(s)", file=sys.stderr)
        return EXIT_USAGE

    if outcome.accepted:
        print("accepted")
        return EXIT_ACCEPTED
    print(f"rejected: {outcome.reason.value if outcome.reason else 'unknown'}")
    return EXIT_REJECTED


if __name__ == "__main__":
    sys.exit(main())
