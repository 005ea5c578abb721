"""
Blob storage service: the entry point a request-handling layer calls.

Wires settings, the Azure transport, the credential signer, the container
provisioner and the object lister together.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime

from art_storage.core.constants import Settings, get_settings
from art_storage.core.exceptions import ConfigurationError
from art_storage.integrations.blob_backend import (
    AzureBlobBackend,
    BlobBackend,
    shared_key_from_connection_string,
)
from art_storage.models.schemas.storage import ArtImageSet, StorageContainer
from art_storage.services.container_provisioner import ContainerProvisioner
from art_storage.services.credential_signer import (
    CredentialSigner,
    StorageAccountCredentials,
    utc_now,
)
from art_storage.services.object_lister import ObjectLister
from art_storage.utils.logger import logger


def resolve_credentials(settings: Settings) -> StorageAccountCredentials:
    """Explicit account settings win; otherwise fall back to the connection string.

    Raises:
        ConfigurationError: If the connection string has to be consulted and cannot be parsed.
    """
    account_name = settings.blob_storage_account_name
    account_key = settings.blob_storage_account_key
    if not (account_name and account_key):
        try:
            parsed_name, parsed_key = shared_key_from_connection_string(settings.blob_storage_connection_string)
        except ValueError as e:
            raise ConfigurationError("BLOB_STORAGE_CONNECTION_STRING could not be parsed", cause=e) from e
        account_name = account_name or parsed_name
        account_key = account_key or parsed_key
    return StorageAccountCredentials(account_name=account_name, account_key=account_key)


class BlobStorageService:
    """Provision artist containers and list artist images.

    Args:
        settings: Validated application settings.
        backend: Transport to use; defaults to Azure Blob Storage via the
            configured connection string.
        clock: Issuance clock passed to the signer.
    """

    def __init__(
        self,
        settings: Settings,
        backend: BlobBackend | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.settings = settings
        self.backend = backend or AzureBlobBackend(settings.blob_storage_connection_string)
        self.signer = CredentialSigner(resolve_credentials(settings), clock=clock)
        self.provisioner = ContainerProvisioner(self.backend, self.signer, settings.storage_request_timeout)
        self.lister = ObjectLister(self.backend, self.signer, settings.storage_request_timeout)

    async def create_container(self, container_name: str, timeout: float | None = None) -> StorageContainer:
        """Create ``container_name`` if needed and return a one-day upload URL."""
        logger.info(f"Provisioning container {container_name}", container=container_name)
        return await self.provisioner.provision(container_name, timeout=timeout)

    async def get_art_images(
        self,
        container_name: str,
        unique_storage_name: str,
        artist_id: str,
        timeout: float | None = None,
    ) -> ArtImageSet:
        """Return two-hour read URLs for every image of one artist asset."""
        return await self.lister.list_images(container_name, unique_storage_name, artist_id, timeout=timeout)


def get_storage_service(settings: Settings | None = None) -> BlobStorageService:
    """Provide a BlobStorageService built from application settings.

    The service holds no per-request state; each caller gets its own instance.
    """
    return BlobStorageService(settings or get_settings())
