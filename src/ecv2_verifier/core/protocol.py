"""Fixed constants of the ECv2SigningOnly trust domain.

These values are part of every canonical signing string. They are not
configuration and no constructor in this package accepts them as arguments.
"""

from __future__ import annotations

from typing import Final

SENDER_ID: Final[str] = "GooglePayPasses"
PROTOCOL_VERSION: Final[str] = "ECv2SigningOnly"
DEFAULT_PUBLIC_KEY_URL: Final[str] = "https://pay.google.com/gp/m/issuer/keys"
