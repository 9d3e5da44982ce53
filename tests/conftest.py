from __future__ import annotations

import pytest

from build_registry.bucket import Bucket
from build_registry.service import InMemoryRegistryService

SLUG = "TestBucket"
FINGERPRINT = "no-fingerprint-here"


@pytest.fixture
def service() -> InMemoryRegistryService:
    return InMemoryRegistryService()


@pytest.fixture
def bucket(service: InMemoryRegistryService) -> Bucket:
    return Bucket(SLUG, FINGERPRINT, service)


@pytest.fixture
def existing_iteration(service: InMemoryRegistryService) -> str:
    """Remote iteration left behind by an earlier run with the same fingerprint."""
    return service.seed_iteration(SLUG, FINGERPRINT)
