"""Tests for ObjectLister."""

from __future__ import annotations

from datetime import timedelta
from urllib.parse import parse_qs

import pytest

from art_storage.core.exceptions import ListingError
from art_storage.models.error_models import ErrorCode
from art_storage.services.credential_signer import CredentialSigner
from art_storage.services.object_lister import ObjectLister, asset_prefix, is_asset_image
from storage_fakes import ACCOUNT_ENDPOINT, ISSUED_AT, FakeBlobBackend, service_sas_signature

CONTAINER = "gallery-x"


@pytest.fixture
def lister(backend: FakeBlobBackend, signer: CredentialSigner) -> ObjectLister:
    return ObjectLister(backend, signer)


class TestPrefixFiltering:
    """Tests for prefix construction and sub-path filtering."""

    def test_asset_prefix(self) -> None:
        assert asset_prefix("a1", "sunset") == "a1/sunset"

    @pytest.mark.parametrize("name", ["a1/sunset/photo1.jpg", "a1/sunset/raw/large.png"])
    def test_objects_under_prefix_included(self, name: str) -> None:
        assert is_asset_image(name, "a1/sunset")

    @pytest.mark.parametrize("name", ["a1/sunset", "a1/sunset/", "a1/sunset-old/1.jpg", "a1/sunsets/1.jpg"])
    def test_marker_and_sibling_objects_excluded(self, name: str) -> None:
        assert not is_asset_image(name, "a1/sunset")


class TestListImages:
    """Tests for ObjectLister.list_images."""

    @pytest.mark.asyncio
    async def test_returns_only_asset_images(self, lister: ObjectLister, backend: FakeBlobBackend) -> None:
        backend.add_blobs(CONTAINER, "a1/sunset/1.jpg", "a1/sunset/2.jpg", "a1/other/3.jpg")

        result = await lister.list_images(CONTAINER, "sunset", "a1")

        assert len(result.image_urls) == 2
        assert result.image_urls[0].startswith(f"{ACCOUNT_ENDPOINT}/{CONTAINER}/a1/sunset/1.jpg?")
        assert result.image_urls[1].startswith(f"{ACCOUNT_ENDPOINT}/{CONTAINER}/a1/sunset/2.jpg?")
        assert not any("3.jpg" in url for url in result.image_urls)

    @pytest.mark.asyncio
    async def test_preserves_backend_order(self, lister: ObjectLister, backend: FakeBlobBackend) -> None:
        backend.add_blobs(CONTAINER, "a1/sunset/c.jpg", "a1/sunset/a.jpg", "a1/sunset/b.jpg")

        result = await lister.list_images(CONTAINER, "sunset", "a1")

        names = [url.split("?", 1)[0].rsplit("/", 1)[1] for url in result.image_urls]
        assert names == ["c.jpg", "a.jpg", "b.jpg"]

    @pytest.mark.asyncio
    async def test_bare_marker_object_excluded(self, lister: ObjectLister, backend: FakeBlobBackend) -> None:
        backend.add_blobs(CONTAINER, "a1/sunset", "a1/sunset/photo1.jpg")

        result = await lister.list_images(CONTAINER, "sunset", "a1")

        assert len(result.image_urls) == 1
        assert "/a1/sunset/photo1.jpg?" in result.image_urls[0]

    @pytest.mark.asyncio
    async def test_all_urls_share_one_token(self, lister: ObjectLister, backend: FakeBlobBackend) -> None:
        backend.add_blobs(CONTAINER, *(f"a1/sunset/{i}.jpg" for i in range(10)))

        result = await lister.list_images(CONTAINER, "sunset", "a1")

        tokens = {url.split("?", 1)[1] for url in result.image_urls}
        assert len(tokens) == 1
        query = parse_qs(tokens.pop())
        assert query["sp"] == ["r"]
        assert query["sr"] == ["c"]

    @pytest.mark.asyncio
    async def test_shared_token_verifies_against_container(
        self, lister: ObjectLister, backend: FakeBlobBackend
    ) -> None:
        """Test that the storage service would accept the token on any object in the container."""
        backend.add_blobs(CONTAINER, "a1/sunset/1.jpg", "a1/sunset/2.jpg")

        result = await lister.list_images(CONTAINER, "sunset", "a1")

        query = {key: values[0] for key, values in parse_qs(result.image_urls[0].split("?", 1)[1]).items()}
        expected = service_sas_signature(
            CONTAINER,
            "c",
            query["sv"],
            permissions="r",
            start="2025-01-15T10:30:00Z",
            expiry="2025-01-15T12:30:00Z",
        )
        assert query["sig"] == expected

    @pytest.mark.asyncio
    async def test_expiry_two_hours_after_issuance(self, lister: ObjectLister, backend: FakeBlobBackend) -> None:
        backend.add_blobs(CONTAINER, "a1/sunset/1.jpg")

        result = await lister.list_images(CONTAINER, "sunset", "a1")

        assert result.expires_on == ISSUED_AT + timedelta(hours=2)
        token = result.image_urls[0].split("?", 1)[1]
        assert parse_qs(token)["se"] == ["2025-01-15T12:30:00Z"]

    @pytest.mark.asyncio
    async def test_signs_once_per_listing(
        self, backend: FakeBlobBackend, signer: CredentialSigner, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        backend.add_blobs(CONTAINER, *(f"a1/sunset/{i}.jpg" for i in range(25)))
        calls: list[str] = []
        real_sign = signer.sign

        def counting_sign(*args, **kwargs):  # type: ignore[no-untyped-def]
            calls.append(args[0])
            return real_sign(*args, **kwargs)

        monkeypatch.setattr(signer, "sign", counting_sign)
        result = await ObjectLister(backend, signer).list_images(CONTAINER, "sunset", "a1")

        assert len(result.image_urls) == 25
        assert calls == [CONTAINER]

    @pytest.mark.asyncio
    async def test_no_matching_objects_returns_empty_set(
        self, lister: ObjectLister, backend: FakeBlobBackend
    ) -> None:
        backend.add_blobs(CONTAINER, "a2/sunset/1.jpg")

        result = await lister.list_images(CONTAINER, "sunset", "a1")

        assert result.image_urls == []
        assert result.expires_on == ISSUED_AT + timedelta(hours=2)

    @pytest.mark.asyncio
    async def test_empty_container_returns_empty_set(self, lister: ObjectLister, backend: FakeBlobBackend) -> None:
        backend.containers[CONTAINER] = []

        result = await lister.list_images(CONTAINER, "sunset", "a1")

        assert result.image_urls == []
        assert result.expires_on is not None

    @pytest.mark.asyncio
    async def test_object_names_are_url_quoted(self, lister: ObjectLister, backend: FakeBlobBackend) -> None:
        backend.add_blobs(CONTAINER, "a1/sunset/my photo#1.jpg")

        result = await lister.list_images(CONTAINER, "sunset", "a1")

        assert "/a1/sunset/my%20photo%231.jpg?" in result.image_urls[0]

    @pytest.mark.asyncio
    async def test_missing_container_raises_listing_error(self, lister: ObjectLister) -> None:
        with pytest.raises(ListingError) as exc_info:
            await lister.list_images("no-such-container", "sunset", "a1")

        assert exc_info.value.code == ErrorCode.LISTING_CONTAINER_NOT_FOUND
        assert exc_info.value.details == {"container": "no-such-container", "prefix": "a1/sunset"}

    @pytest.mark.asyncio
    async def test_mid_enumeration_failure_discards_partial_results(
        self, lister: ObjectLister, backend: FakeBlobBackend
    ) -> None:
        backend.add_blobs(CONTAINER, "a1/sunset/1.jpg", "a1/sunset/2.jpg", "a1/sunset/3.jpg")
        backend.fail_listing_after = 2

        with pytest.raises(ListingError) as exc_info:
            await lister.list_images(CONTAINER, "sunset", "a1")

        assert exc_info.value.code == ErrorCode.LISTING_FAILED
        assert exc_info.value.cause is not None

    @pytest.mark.asyncio
    async def test_deadline_expiry_raises_listing_error(
        self, lister: ObjectLister, backend: FakeBlobBackend
    ) -> None:
        backend.add_blobs(CONTAINER, "a1/sunset/1.jpg")
        backend.open_delay = 1.0

        with pytest.raises(ListingError) as exc_info:
            await lister.list_images(CONTAINER, "sunset", "a1", timeout=0.01)

        assert exc_info.value.code == ErrorCode.LISTING_TIMEOUT
