"""Structural checks run before any cryptographic work."""

from __future__ import annotations

RECIPIENT_SEPARATOR = "."


def is_future(epoch_millis: int, now: int) -> bool:
    """Return True only when `epoch_millis` is strictly after `now`.

    A timestamp equal to `now` counts as expired.
    """
    return epoch_millis > now


def _issuer_prefix(identifier: str) -> str:
    return identifier.split(RECIPIENT_SEPARATOR, 1)[0]


def recipient_bound(
    expected_recipient_id: str,
    class_id: str | None,
    object_id: str | None,
) -> bool:
    """Check that a class or object id is issued under the expected recipient.

    Ids have the form ``"<issuerId>.<suffix>"``. The segment before the first
    separator must equal `expected_recipient_id` exactly (case-sensitive).

    Args:
        expected_recipient_id: Recipient (issuer) id of this deployment.
        class_id: Optional class id from the signed message.
        object_id: Optional object id from the signed message.

    Returns:
        True if either id carries the expected prefix; False otherwise.
    """
    if not expected_recipient_id:
        return False
    for identifier in (class_id, object_id):
        if identifier and _issuer_prefix(identifier) == expected_recipient_id:
            return True
    return False
