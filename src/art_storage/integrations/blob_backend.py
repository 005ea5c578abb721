"""
Object-storage transport for Artwork Storage.

Container handles are opened per call and closed when the call completes;
nothing here holds long-lived connection state. SDK exceptions are translated
into BackendError / ContainerNotFoundError.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import Protocol

from azure.core.exceptions import (
    AzureError,
    ResourceExistsError,
    ResourceNotFoundError,
)
from azure.storage.blob import BlobServiceClient
from azure.storage.blob.aio import ContainerClient

from art_storage.utils.logger import logger


class BackendError(Exception):
    """The storage backend was unreachable or rejected a request."""


class ContainerNotFoundError(BackendError):
    """The addressed container does not exist."""


class ContainerHandle(Protocol):
    """Transport handle for a single container."""

    @property
    def name(self) -> str: ...

    @property
    def url(self) -> str:
        """Container base URI without any query string."""
        ...

    async def create_if_not_exists(self) -> bool:
        """Create the container; return False if it already existed."""
        ...

    def list_blob_names(self, prefix: str) -> AsyncIterator[str]:
        """Yield object names starting with ``prefix`` in backend order."""
        ...


class BlobBackend(Protocol):
    """Factory for per-call container handles."""

    def open_container(self, container_name: str) -> AbstractAsyncContextManager[ContainerHandle]: ...


class AzureContainerHandle:
    """ContainerHandle backed by the asyncio ContainerClient."""

    def __init__(self, client: ContainerClient):
        self._client = client

    @property
    def name(self) -> str:
        return str(self._client.container_name)

    @property
    def url(self) -> str:
        return str(self._client.url).split("?", 1)[0].rstrip("/")

    async def create_if_not_exists(self) -> bool:
        try:
            await self._client.create_container()
        except ResourceExistsError:
            logger.debug(f"Container {self.name} already exists", container=self.name)
            return False
        except AzureError as e:
            raise BackendError(f"Create container failed: {e}") from e
        return True

    async def list_blob_names(self, prefix: str) -> AsyncIterator[str]:
        try:
            async for blob in self._client.list_blobs(name_starts_with=prefix):
                yield blob.name
        except ResourceNotFoundError as e:
            raise ContainerNotFoundError(f"Container {self.name} not found") from e
        except AzureError as e:
            raise BackendError(f"List blobs failed: {e}") from e


class AzureBlobBackend:
    """BlobBackend over Azure Blob Storage (or the Azurite emulator).

    Args:
        connection_string: Account connection string; parsed by the SDK on each open.
    """

    def __init__(self, connection_string: str):
        self._connection_string = connection_string

    @asynccontextmanager
    async def open_container(self, container_name: str) -> AsyncIterator[ContainerHandle]:
        try:
            client = ContainerClient.from_connection_string(
                self._connection_string,
                container_name=container_name,
            )
        except (ValueError, AzureError) as e:
            raise BackendError(f"Cannot resolve container client: {e}") from e

        async with client:
            yield AzureContainerHandle(client)


def shared_key_from_connection_string(connection_string: str) -> tuple[str | None, str | None]:
    """Account name and shared key carried by a connection string.

    Either part is None when the connection string does not carry it, for
    example a ``BlobEndpoint=...;SharedAccessSignature=...`` string.
    ``UseDevelopmentStorage=true`` resolves to the emulator account.

    Raises:
        ValueError: If the SDK cannot parse the connection string.
    """
    with BlobServiceClient.from_connection_string(connection_string) as client:
        return client.account_name, getattr(client.credential, "account_key", None)
