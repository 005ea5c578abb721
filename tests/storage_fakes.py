"""In-memory stand-ins and constants shared by the Artwork Storage tests."""

from __future__ import annotations

import asyncio
import base64
import hashlib
import hmac

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta

from art_storage.integrations.blob_backend import BackendError, ContainerNotFoundError

ACCOUNT_NAME = "artaccount"
# base64("test-key")
ACCOUNT_KEY = "dGVzdC1rZXk="
ACCOUNT_ENDPOINT = f"https://{ACCOUNT_NAME}.blob.core.windows.net"
CONNECTION_STRING = (
    f"DefaultEndpointsProtocol=https;AccountName={ACCOUNT_NAME};"
    f"AccountKey={ACCOUNT_KEY};EndpointSuffix=core.windows.net"
)
ISSUED_AT = datetime(2025, 1, 15, 10, 30, tzinfo=UTC)


def service_sas_signature(
    resource: str,
    signed_resource: str,
    version: str,
    permissions: str = "",
    start: str = "",
    expiry: str = "",
    identifier: str = "",
) -> str:
    """Shared-key service SAS signature computed from the documented field layout.

    ``resource`` is ``{container}`` or ``{container}/{blob}`` under the test account.
    """
    string_to_sign = "\n".join(
        [
            permissions,
            start,
            expiry,
            f"/blob/{ACCOUNT_NAME}/{resource}",
            identifier,
            "",  # signed IP
            "",  # signed protocol
            version,
            signed_resource,
            "",  # snapshot time
            "",  # encryption scope
            "",  # rscc
            "",  # rscd
            "",  # rsce
            "",  # rscl
            "",  # rsct
        ]
    )
    digest = hmac.new(base64.b64decode(ACCOUNT_KEY), string_to_sign.encode("utf-8"), hashlib.sha256).digest()
    return base64.b64encode(digest).decode("utf-8")


class FakeClock:
    """Callable clock that only moves when told to (or on every read when ticking)."""

    def __init__(self, start: datetime = ISSUED_AT, tick: timedelta | None = None):
        self.now = start
        self.tick = tick

    def __call__(self) -> datetime:
        current = self.now
        if self.tick:
            self.now = self.now + self.tick
        return current

    def advance(self, delta: timedelta) -> None:
        self.now = self.now + delta


class FakeContainer:
    """ContainerHandle over FakeBlobBackend state."""

    def __init__(self, backend: FakeBlobBackend, name: str):
        self._backend = backend
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    @property
    def url(self) -> str:
        return f"{self._backend.endpoint}/{self._name}"

    async def create_if_not_exists(self) -> bool:
        self._backend.create_calls += 1
        if self._backend.create_error is not None:
            raise self._backend.create_error
        # Yield so concurrent callers interleave like real network calls
        await asyncio.sleep(0)
        if self._name in self._backend.containers:
            return False
        self._backend.containers[self._name] = []
        return True

    async def list_blob_names(self, prefix: str) -> AsyncIterator[str]:
        if self._name not in self._backend.containers:
            raise ContainerNotFoundError(f"Container {self._name} not found")
        for index, blob_name in enumerate(self._backend.containers[self._name]):
            if self._backend.fail_listing_after is not None and index >= self._backend.fail_listing_after:
                raise BackendError("connection reset during enumeration")
            await asyncio.sleep(0)
            if blob_name.startswith(prefix):
                yield blob_name


class FakeBlobBackend:
    """BlobBackend keeping containers and object names in memory."""

    def __init__(self, endpoint: str = ACCOUNT_ENDPOINT):
        self.endpoint = endpoint
        self.containers: dict[str, list[str]] = {}
        self.opened: list[str] = []
        self.create_calls = 0
        self.create_error: Exception | None = None
        self.fail_listing_after: int | None = None
        self.open_delay = 0.0

    def add_blobs(self, container_name: str, *blob_names: str) -> None:
        self.containers.setdefault(container_name, []).extend(blob_names)

    @asynccontextmanager
    async def open_container(self, container_name: str) -> AsyncIterator[FakeContainer]:
        self.opened.append(container_name)
        if self.open_delay:
            await asyncio.sleep(self.open_delay)
        yield FakeContainer(self, container_name)
