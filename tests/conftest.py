"""Shared test fixtures for Artwork Storage test suite.

Provides a fixed clock, test credentials and an in-memory blob backend
standing in for the storage service.
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from art_storage.services.credential_signer import CredentialSigner, StorageAccountCredentials
from storage_fakes import ACCOUNT_KEY, ACCOUNT_NAME, FakeBlobBackend, FakeClock


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def ticking_clock() -> FakeClock:
    return FakeClock(tick=timedelta(seconds=1))


@pytest.fixture
def credentials() -> StorageAccountCredentials:
    return StorageAccountCredentials(account_name=ACCOUNT_NAME, account_key=ACCOUNT_KEY)


@pytest.fixture
def signer(credentials: StorageAccountCredentials, clock: FakeClock) -> CredentialSigner:
    return CredentialSigner(credentials, clock=clock)


@pytest.fixture
def backend() -> FakeBlobBackend:
    return FakeBlobBackend()
