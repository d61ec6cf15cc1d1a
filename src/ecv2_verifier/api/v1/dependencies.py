"""Shared API dependencies."""

from typing import Annotated

from fastapi import Depends, HTTPException, status

from ecv2_verifier.models.verification import ConfigurationError
from ecv2_verifier.services.validator import CallbackValidator, get_callback_validator


def get_callback_validator_dep() -> CallbackValidator:
    """Get the CallbackValidator dependency for dependency injection.

    Raises:
        HTTPException: If the service has no issuer id configured.
    """
    try:
        return get_callback_validator()
    except ConfigurationError as err:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Callback verification is not configured",
        ) from err


CallbackValidatorDep = Annotated[CallbackValidator, Depends(get_callback_validator_dep)]
