"""Wire schemas for ECv2SigningOnly callbacks and the published key set."""
from __future__ import annotations

import re
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, StrictInt, field_validator

INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1

_DECIMAL_INTEGER = re.compile(r"-?[0-9]+")

EpochMillis = Annotated[StrictInt, Field(ge=INT64_MIN, le=INT64_MAX)]


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class IntermediateSigningKeyIn(_WireModel):
    """`intermediateSigningKey` object of a callback body."""

    signed_key: str = Field(..., alias="signedKey")
    signatures: list[str]


class SignaturePayloadIn(_WireModel):
    """Top-level callback body."""

    signature: str
    intermediate_signing_key: IntermediateSigningKeyIn = Field(..., alias="intermediateSigningKey")
    protocol_version: str = Field(..., alias="protocolVersion")
    signed_message: str = Field(..., alias="signedMessage")


class IntermediateKeyData(_WireModel):
    """JSON text embedded in `signedKey`.

    `keyExpiration` is published as a decimal string; JSON integers are
    accepted as well. Booleans, floats and other numeric spellings are not.
    """

    key_value: str = Field(..., alias="keyValue", min_length=1)
    key_expiration: EpochMillis = Field(..., alias="keyExpiration")

    @field_validator("key_value")
    @classmethod
    def _require_key_text(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("keyValue is blank")
        return value

    @field_validator("key_expiration", mode="before")
    @classmethod
    def _parse_decimal_string(cls, value: Any) -> Any:
        if isinstance(value, str):
            if not _DECIMAL_INTEGER.fullmatch(value):
                raise ValueError("keyExpiration is not a decimal integer")
            return int(value)
        return value


class SignedMessageData(_WireModel):
    """JSON text embedded in `signedMessage`."""

    class_id: str | None = Field(default=None, alias="classId")
    object_id: str | None = Field(default=None, alias="objectId")
    event_type: str | None = Field(default=None, alias="eventType")
    exp_time_millis: EpochMillis = Field(..., alias="expTimeMillis")
    count: int | None = None
    nonce: str | None = None


class PublicKeyOut(_WireModel):
    """One entry of the published root key list."""

    key_value: str = Field(..., alias="keyValue")
    protocol_version: str = Field(default="", alias="protocolVersion")


class PublicKeysResponse(_WireModel):
    """Response body of the root key endpoint."""

    keys: list[PublicKeyOut] = Field(default_factory=list)
