"""
Artwork Storage - Signed, time-bounded access to artist images
==============================================================

Provisions blob containers and mints short-lived shared access signatures so
clients upload and fetch artwork directly from storage.

Modules:
    core: Settings, token lifetimes, signing constants, exception hierarchy
    models: Access token value object, response schemas, error codes
    integrations: Azure Blob transport and connection-string parsing
    services: Credential signer, container provisioner, object lister, facade
    utils: Logging with signature redaction
"""

from art_storage.core.exceptions import (
    AppException,
    ConfigurationError,
    CredentialError,
    ListingError,
    ProvisioningError,
)
from art_storage.models.access_token import AccessToken, TokenScope
from art_storage.models.schemas.storage import ArtImageSet, StorageContainer
from art_storage.services.blob_storage_service import BlobStorageService, get_storage_service

__all__ = [
    "AccessToken",
    "AppException",
    "ArtImageSet",
    "BlobStorageService",
    "ConfigurationError",
    "CredentialError",
    "ListingError",
    "ProvisioningError",
    "StorageContainer",
    "TokenScope",
    "get_storage_service",
]
