"""Shared fixtures for the storage gateway tests."""

import pytest

from src.infrastructure.storage import MockObjectStore, StorageGateway
from tests.doubles import FIXED_NOW, FailingObjectStore


@pytest.fixture
def store() -> MockObjectStore:
    return MockObjectStore(bucket_name="test-bucket")


@pytest.fixture
def gateway(store) -> StorageGateway:
    return StorageGateway(store, clock=lambda: FIXED_NOW)


@pytest.fixture
def failing_gateway() -> StorageGateway:
    return StorageGateway(FailingObjectStore(), clock=lambda: FIXED_NOW)


@pytest.fixture
def clip(tmp_path):
    """A small local 'video' file as a download job would leave it."""
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"\x00\x00\x00\x18ftypmp42 fake video bytes")
    return path
