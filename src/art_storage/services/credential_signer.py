"""
Shared access signature signing for blob storage.

Wraps the storage SDK's service SAS generators with the project's clock,
validity-window check and credential error mapping. The SDK builds the
string-to-sign for its pinned service version and signs it with
HMAC-SHA256 under the account's shared key.

SECURITY: The account key never leaves this module; only the signature
output is embedded in tokens. Never log the key or the full query string.
"""

from __future__ import annotations

import base64
import binascii

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from azure.storage.blob import generate_blob_sas, generate_container_sas

from art_storage.core.constants import SAS_PERMISSION_ORDER, SAS_SERVICE_BLOB, SAS_TIME_FORMAT
from art_storage.core.exceptions import CredentialError
from art_storage.models.access_token import AccessToken, TokenScope
from art_storage.models.error_models import ErrorCode


def utc_now() -> datetime:
    """Current UTC time truncated to whole seconds."""
    return datetime.now(UTC).replace(microsecond=0)


@dataclass(frozen=True, slots=True)
class StorageAccountCredentials:
    """Read-only account name and base64 shared key."""

    account_name: str | None
    account_key: str | None = field(default=None, repr=False)


def normalize_permissions(permissions: str) -> str:
    """Return permission letters deduplicated and in the service's canonical order.

    Raises:
        ValueError: If a letter is not a known permission.
    """
    unknown = set(permissions) - set(SAS_PERMISSION_ORDER)
    if unknown:
        raise ValueError(f"Unknown SAS permissions: {''.join(sorted(unknown))}")
    return "".join(p for p in SAS_PERMISSION_ORDER if p in permissions)


def format_sas_time(value: datetime) -> str:
    """Format an instant as the UTC second-precision timestamp SAS fields use."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).strftime(SAS_TIME_FORMAT)


class CredentialSigner:
    """Mints signed query strings for containers and objects.

    Pure computation: no network or disk I/O. Given the same credentials,
    clock reading and arguments the output is identical.

    Args:
        credentials: Account name and shared key.
        clock: Returns the issuance instant; defaults to the current UTC time.
    """

    def __init__(
        self,
        credentials: StorageAccountCredentials,
        clock: Callable[[], datetime] = utc_now,
    ):
        self._credentials = credentials
        self._clock = clock

    @property
    def account_name(self) -> str | None:
        return self._credentials.account_name

    def verify_credentials(self) -> str:
        """Return the account key once the name and key are present and the key decodes.

        Raises:
            CredentialError: ``CRED_1001`` when either is missing, ``CRED_1002``
                when the key is not valid base64.
        """
        account_key = self._credentials.account_key
        if not self._credentials.account_name or not account_key:
            raise CredentialError(
                "Storage account name and key must both be configured",
                code=ErrorCode.CREDENTIAL_MISSING,
            )
        try:
            base64.b64decode(account_key, validate=True)
        except (binascii.Error, ValueError) as e:
            raise CredentialError(
                "Storage account key is not valid base64",
                code=ErrorCode.CREDENTIAL_MALFORMED,
                cause=e,
            ) from e
        return account_key

    def canonical_resource(self, container_name: str, blob_name: str | None = None) -> str:
        """Canonicalized resource path ``/blob/{account}/{container}[/{blob}]``."""
        resource = f"/{SAS_SERVICE_BLOB}/{self.account_name}/{container_name}"
        if blob_name:
            resource = f"{resource}/{blob_name}"
        return resource

    def sign(
        self,
        container_name: str,
        resource_scope: TokenScope | str,
        permissions: str,
        expires_on: datetime,
        stored_policy_id: str | None = None,
        blob_name: str | None = None,
        starts_on: datetime | None = None,
    ) -> str:
        """Produce a signed, URL-encoded query string.

        Args:
            container_name: Container the token is bound to.
            resource_scope: ``c`` for the whole container, ``b`` for one object.
            permissions: Permission letters, e.g. ``r`` or the full set.
            expires_on: Absolute expiry; must be later than the issuance instant.
            stored_policy_id: Server-side stored access policy. When given, start,
                expiry and permissions are left to the policy and only ``si`` is embedded.
            blob_name: Object the signature is bound to; required for ``b``.
            starts_on: Issuance instant; read from the clock when omitted.

        Returns:
            Query string without the leading ``?``.

        Raises:
            CredentialError: If key material is missing or malformed, or the
                expiry is not after the issuance instant.
            ValueError: If ``b`` is requested without a blob name.
        """
        scope = TokenScope(resource_scope)
        if scope is TokenScope.BLOB and not blob_name:
            raise ValueError("Object-scoped signatures need a blob name")
        account_key = self.verify_credentials()

        if starts_on is None:
            starts_on = self._clock()
        if starts_on.tzinfo is None:
            starts_on = starts_on.replace(tzinfo=UTC)
        if expires_on.tzinfo is None:
            expires_on = expires_on.replace(tzinfo=UTC)
        if expires_on <= starts_on:
            raise CredentialError(
                f"Token expiry {format_sas_time(expires_on)} is not after issuance {format_sas_time(starts_on)}",
                code=ErrorCode.CREDENTIAL_INVALID_WINDOW,
            )

        # The SDK formats datetimes without converting them, so pass UTC strings
        window: dict[str, str] = {}
        if stored_policy_id is None:
            window = {
                "permission": normalize_permissions(permissions),
                "start": format_sas_time(starts_on),
                "expiry": format_sas_time(expires_on),
            }

        if scope is TokenScope.CONTAINER:
            return generate_container_sas(
                self.account_name,
                container_name,
                account_key=account_key,
                policy_id=stored_policy_id,
                **window,
            )
        return generate_blob_sas(
            self.account_name,
            container_name,
            blob_name,
            account_key=account_key,
            policy_id=stored_policy_id,
            **window,
        )

    def issue(
        self,
        container_name: str,
        scope: TokenScope,
        permissions: str,
        lifetime: timedelta,
        stored_policy_id: str | None = None,
        blob_name: str | None = None,
    ) -> AccessToken:
        """Mint a new AccessToken expiring ``lifetime`` after now.

        Every call signs afresh; tokens are never cached or extended.
        """
        issued_on = self._clock()
        if issued_on.tzinfo is None:
            issued_on = issued_on.replace(tzinfo=UTC)
        expires_on = issued_on + lifetime
        token = self.sign(
            container_name,
            scope,
            permissions,
            expires_on,
            stored_policy_id=stored_policy_id,
            blob_name=blob_name,
            starts_on=issued_on,
        )
        return AccessToken(
            token=token,
            expires_on=expires_on,
            scope=scope,
            permissions=normalize_permissions(permissions),
            resource_path=self.canonical_resource(container_name, blob_name),
        )
