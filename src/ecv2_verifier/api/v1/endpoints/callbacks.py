"""Callback receiver endpoint for ECv2SigningOnly payloads."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request, status

from ecv2_verifier.api.v1.dependencies import CallbackValidatorDep

router = APIRouter(prefix="/callbacks", tags=["callbacks"])


@router.post("", status_code=status.HTTP_200_OK)
async def receive_callback(request: Request, validator: CallbackValidatorDep) -> dict[str, object]:
    """Verify a signed callback and acknowledge it.

    The raw request body is verified as received; it is never parsed and
    re-serialized before verification.

    Args:
        request: Incoming request carrying the signed envelope as its body
        validator: Callback validator for this deployment

    Returns:
        Acknowledgement with the decoded event fields

    Raises:
        HTTPException: 401 with the rejection reason if verification fails
    """
    body = await request.body()
    outcome = await validator.validate(body)
    if not outcome.accepted or outcome.message is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={
                "status": "rejected",
                "reason": outcome.reason.value if outcome.reason else None,
            },
        )

    message = outcome.message
    return {
        "status": "accepted",
        "event_type": message.event_type,
        "class_id": message.class_id,
        "object_id": message.object_id,
        "nonce": message.nonce,
    }
