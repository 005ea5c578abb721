"""
Container provisioning with container-scoped upload tokens.
"""

from __future__ import annotations

import asyncio
import re

from art_storage.core.constants import (
    CONTAINER_NAME_MAX_LENGTH,
    CONTAINER_NAME_MIN_LENGTH,
    CONTAINER_NAME_PATTERN,
    CONTAINER_TOKEN_LIFETIME,
    SAS_PERMISSIONS_ALL,
)
from art_storage.core.exceptions import ProvisioningError
from art_storage.integrations.blob_backend import BackendError, BlobBackend
from art_storage.models.access_token import TokenScope
from art_storage.models.error_models import ErrorCode
from art_storage.models.schemas.storage import StorageContainer
from art_storage.services.credential_signer import CredentialSigner
from art_storage.utils.logger import logger

_CONTAINER_NAME_RE = re.compile(CONTAINER_NAME_PATTERN)


def validate_container_name(container_name: str) -> None:
    """Raise ProvisioningError unless ``container_name`` is a valid container identifier."""
    if not (CONTAINER_NAME_MIN_LENGTH <= len(container_name) <= CONTAINER_NAME_MAX_LENGTH):
        raise ProvisioningError(
            container_name,
            f"name must be {CONTAINER_NAME_MIN_LENGTH}-{CONTAINER_NAME_MAX_LENGTH} characters",
            code=ErrorCode.PROVISIONING_INVALID_NAME,
        )
    if not _CONTAINER_NAME_RE.match(container_name):
        raise ProvisioningError(
            container_name,
            "name may only contain lowercase letters, digits and single hyphens, "
            "and must start and end with a letter or digit",
            code=ErrorCode.PROVISIONING_INVALID_NAME,
        )


def account_endpoint_for(container_url: str, container_name: str) -> str:
    """Strip the trailing container segment from a container URL."""
    suffix = f"/{container_name}"
    if container_url.endswith(suffix):
        return container_url[: -len(suffix)]
    return container_url


class ContainerProvisioner:
    """Creates containers on demand and hands back an upload URL.

    Creation is idempotent and safe to race: a container that already exists
    counts as provisioned. Tokens are never cached; each call signs a new one.
    """

    def __init__(self, backend: BlobBackend, signer: CredentialSigner, timeout: float | None = None):
        self._backend = backend
        self._signer = signer
        self._timeout = timeout

    async def _ensure_container(self, container_name: str) -> str:
        """Create-if-absent and return the container base URI."""
        async with self._backend.open_container(container_name) as container:
            created = await container.create_if_not_exists()
            if created:
                logger.info(f"Created container {container_name}", container=container_name)
            return container.url

    async def provision(self, container_name: str, timeout: float | None = None) -> StorageContainer:
        """Ensure ``container_name`` exists and return a signed container URL.

        Args:
            container_name: Caller-supplied container identifier.
            timeout: Deadline in seconds for the backend call; falls back to the
                provisioner default.

        Returns:
            StorageContainer whose URL and connection descriptor share one
            all-permissions token valid for one day.

        Raises:
            ProvisioningError: Invalid name, backend failure or deadline expiry.
            CredentialError: Account key missing or malformed.
        """
        validate_container_name(container_name)
        deadline = timeout if timeout is not None else self._timeout

        # Key material is checked before the backend is touched
        access_token = self._signer.issue(
            container_name,
            TokenScope.CONTAINER,
            SAS_PERMISSIONS_ALL,
            CONTAINER_TOKEN_LIFETIME,
        )

        try:
            container_url = await asyncio.wait_for(self._ensure_container(container_name), deadline)
        except TimeoutError as e:
            logger.error(f"Provisioning {container_name} timed out after {deadline}s", container=container_name)
            raise ProvisioningError(
                container_name,
                f"backend did not respond within {deadline}s",
                code=ErrorCode.PROVISIONING_TIMEOUT,
                cause=e,
            ) from e
        except BackendError as e:
            logger.error(f"Provisioning {container_name} failed: {e}", container=container_name)
            raise ProvisioningError(container_name, str(e), cause=e) from e

        account_endpoint = account_endpoint_for(container_url, container_name)
        return StorageContainer(
            name=container_name,
            url=f"{container_url}/?{access_token.token}",
            connection_descriptor=(
                f"BlobEndpoint={account_endpoint}/;SharedAccessSignature={access_token.token}"
            ),
            expires_on=access_token.expires_on,
        )
