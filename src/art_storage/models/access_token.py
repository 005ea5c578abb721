"""
Access token value object produced by the credential signer.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from art_storage.core.constants import SAS_RESOURCE_BLOB, SAS_RESOURCE_CONTAINER


class TokenScope(str, Enum):
    """Resource a signature covers, valued as the signed-resource field."""

    CONTAINER = SAS_RESOURCE_CONTAINER
    BLOB = SAS_RESOURCE_BLOB


@dataclass(frozen=True, slots=True)
class AccessToken:
    """A freshly minted signed query string and the instant it stops working.

    Attributes:
        token: URL-encoded query string (without the leading ``?``).
        expires_on: Absolute UTC expiry fixed at issuance.
        scope: Container-level or object-level signature.
        permissions: Permission letters granted by the token.
        resource_path: Canonicalized resource the signature authorizes.
    """

    token: str
    expires_on: datetime
    scope: TokenScope
    permissions: str
    resource_path: str

    def is_expired(self, now: datetime) -> bool:
        """Return True once ``now`` has reached the expiry instant."""
        return now >= self.expires_on
