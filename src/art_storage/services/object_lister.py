"""
Listing of an artist asset's images as directly fetchable signed URLs.
"""

from __future__ import annotations

import asyncio

from urllib.parse import quote

from art_storage.core.constants import IMAGE_TOKEN_LIFETIME, SAS_PERMISSIONS_READ
from art_storage.core.exceptions import ListingError
from art_storage.integrations.blob_backend import BackendError, BlobBackend, ContainerNotFoundError
from art_storage.models.access_token import AccessToken, TokenScope
from art_storage.models.error_models import ErrorCode
from art_storage.models.schemas.storage import ArtImageSet
from art_storage.services.credential_signer import CredentialSigner
from art_storage.utils.logger import logger


def asset_prefix(artist_id: str, unique_asset_name: str) -> str:
    """Enumeration prefix for one artist asset: ``{artistId}/{uniqueAssetName}``."""
    return f"{artist_id}/{unique_asset_name}"


def is_asset_image(object_name: str, prefix: str) -> bool:
    """True for objects strictly under ``prefix/``.

    The bare marker object named exactly ``prefix`` (or ``prefix/``) and
    siblings that merely share the prefix text (``prefix-old/...``) are excluded.
    """
    directory = f"{prefix}/"
    return object_name.startswith(directory) and len(object_name) > len(directory)


class ObjectLister:
    """Enumerates an asset's objects under one shared read token.

    One read-only, container-scoped token is signed per listing no matter how
    many objects match. It authorizes a GET on every object URL in the
    container, and every URL in the result expires at the same instant.
    """

    def __init__(self, backend: BlobBackend, signer: CredentialSigner, timeout: float | None = None):
        self._backend = backend
        self._signer = signer
        self._timeout = timeout

    async def _collect(self, container_name: str, prefix: str) -> tuple[AccessToken, list[str]]:
        async with self._backend.open_container(container_name) as container:
            access_token = self._signer.issue(
                container_name,
                TokenScope.CONTAINER,
                SAS_PERMISSIONS_READ,
                IMAGE_TOKEN_LIFETIME,
            )
            urls = [
                f"{container.url}/{quote(name, safe='/')}?{access_token.token}"
                async for name in container.list_blob_names(prefix)
                if is_asset_image(name, prefix)
            ]
            return access_token, urls

    async def list_images(
        self,
        container_name: str,
        unique_asset_name: str,
        artist_id: str,
        timeout: float | None = None,
    ) -> ArtImageSet:
        """Return signed URLs for every image stored under an artist asset.

        Args:
            container_name: Container holding the artist's assets.
            unique_asset_name: Logical asset name (second path segment).
            artist_id: Artist identifier (first path segment).
            timeout: Deadline in seconds for the enumeration; falls back to the
                lister default.

        Returns:
            ArtImageSet in backend enumeration order. An asset with no images
            yields an empty list with a valid expiry.

        Raises:
            ListingError: Container missing, enumeration failure or deadline expiry.
                URLs gathered before the failure are discarded.
            CredentialError: Account key missing or malformed.
        """
        prefix = asset_prefix(artist_id, unique_asset_name)
        deadline = timeout if timeout is not None else self._timeout

        try:
            access_token, urls = await asyncio.wait_for(self._collect(container_name, prefix), deadline)
        except TimeoutError as e:
            logger.error(f"Listing {container_name}/{prefix} timed out after {deadline}s", container=container_name)
            raise ListingError(
                container_name,
                prefix,
                f"backend did not respond within {deadline}s",
                code=ErrorCode.LISTING_TIMEOUT,
                cause=e,
            ) from e
        except ContainerNotFoundError as e:
            logger.warning(f"Listing {container_name}/{prefix}: container not found", container=container_name)
            raise ListingError(
                container_name,
                prefix,
                "container not found",
                code=ErrorCode.LISTING_CONTAINER_NOT_FOUND,
                cause=e,
            ) from e
        except BackendError as e:
            logger.error(f"Listing {container_name}/{prefix} failed: {e}", container=container_name)
            raise ListingError(container_name, prefix, str(e), cause=e) from e

        logger.debug(f"Listed {len(urls)} images under {container_name}/{prefix}", container=container_name)
        return ArtImageSet(image_urls=urls, expires_on=access_token.expires_on)
