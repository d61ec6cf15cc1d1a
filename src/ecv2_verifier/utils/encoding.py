# src/ecv2_verifier/utils/encoding.py
"""Byte-level helpers for building and reading ECv2 signing strings."""

from __future__ import annotations

import base64
import binascii
import re
import struct
from collections.abc import Iterator

from ecv2_verifier.models.verification import CanonicalEncodingError

# Length prefixes are unsigned 32-bit little-endian on every host.
_LENGTH_PREFIX = struct.Struct("<I")
LENGTH_PREFIX_BYTES = _LENGTH_PREFIX.size
MAX_VALUE_BYTES = 0xFFFFFFFF

_BASE64_WHITESPACE = re.compile(r"[ \t\r\n]+")


def _as_bytes(value: str | bytes) -> bytes:
    if isinstance(value, bytes):
        return value
    return value.encode("utf-8")


def encode_for_signing(*values: str | bytes) -> bytes:
    """Concatenate `len32(v) || v` for every value, in order.

    Strings are UTF-8 encoded; bytes are taken verbatim so that text received
    on the wire is never re-encoded before it reaches the signing string.

    Raises:
        CanonicalEncodingError: If a value does not fit a 32-bit length.
    """
    parts: list[bytes] = []
    for value in values:
        raw = _as_bytes(value)
        if len(raw) > MAX_VALUE_BYTES:
            raise CanonicalEncodingError(
                f"Value of {len(raw)} bytes exceeds the 32-bit length prefix"
            )
        parts.append(_LENGTH_PREFIX.pack(len(raw)))
        parts.append(raw)
    return b"".join(parts)


def iter_signing_values(data: bytes) -> Iterator[bytes]:
    """Split a signing string back into its length-prefixed values.

    Raises:
        CanonicalEncodingError: If a prefix is truncated or overruns the input.
    """
    offset = 0
    while offset < len(data):
        if offset + LENGTH_PREFIX_BYTES > len(data):
            raise CanonicalEncodingError("Truncated length prefix")
        (length,) = _LENGTH_PREFIX.unpack_from(data, offset)
        offset += LENGTH_PREFIX_BYTES
        end = offset + length
        if end > len(data):
            raise CanonicalEncodingError("Length prefix overruns signing string")
        yield data[offset:end]
        offset = end


def decode_base64(data: str) -> bytes:
    """Decode a standard base64 string, accepting omitted padding.

    Spaces, tabs and line breaks anywhere in the text are ignored, so wrapped
    base64 decodes the same as a single line.

    Raises:
        ValueError: If the input is not valid base64.
    """
    cleaned = _BASE64_WHITESPACE.sub("", data)
    padding = "=" * (-len(cleaned) % 4)
    try:
        return base64.b64decode(cleaned + padding, validate=True)
    except (binascii.Error, ValueError) as err:
        raise ValueError(f"Invalid base64 encoding: {err}") from err
