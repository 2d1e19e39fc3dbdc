"""
Pytest configuration and fixtures for the test suite.

This module provides shared fixtures for unit and integration tests.
"""

import os
from typing import AsyncGenerator, Callable, Dict, Optional

import pytest
import pytest_asyncio
from faker import Faker
from httpx import AsyncClient, ASGITransport

# Set test environment before importing app modules
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("STORAGE_BACKEND", "memory")
os.environ.setdefault("CORS_EXACT_ORIGIN", "http://localhost:5173")
os.environ.setdefault("CREATE_CONTAINER_IF_MISSING", "false")

from doc_manager.core.blob_store import BlobStoreError, InMemoryBlobStore  # noqa: E402

fake = Faker()


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (API)")
    config.addinivalue_line("markers", "api: API endpoint tests")
    config.addinivalue_line("markers", "slow: Slow running tests")


# =============================================================================
# Blob Store Doubles
# =============================================================================

class FailingBlobStore(InMemoryBlobStore):
    """In-memory store whose operations can be made to fail per key.

    ``fail("put", lambda key: "_" in key)`` makes every attachment write
    raise BlobStoreError while primary writes still succeed.
    """

    def __init__(self, initial: Optional[Dict[str, bytes]] = None):
        super().__init__(initial)
        self.failures: Dict[str, Callable[[str], bool]] = {}

    def fail(self, operation: str, when: Callable[[str], bool] = lambda key: True) -> None:
        self.failures[operation] = when

    def recover(self, operation: Optional[str] = None) -> None:
        if operation is None:
            self.failures.clear()
        else:
            self.failures.pop(operation, None)

    def _check(self, operation: str, key: str) -> None:
        when = self.failures.get(operation)
        if when is not None and when(key):
            raise BlobStoreError(f"Simulated {operation} failure for '{key}'")

    async def put(self, key: str, data: bytes) -> None:
        self._check("put", key)
        await super().put(key, data)

    async def get(self, key: str) -> bytes:
        self._check("get", key)
        return await super().get(key)

    async def delete(self, key: str) -> None:
        self._check("delete", key)
        await super().delete(key)

    async def list(self, prefix: Optional[str] = None):
        self._check("list", prefix or "")
        return await super().list(prefix)

    async def health_check(self) -> bool:
        return "health" not in self.failures


# =============================================================================
# Test Data Generators
# =============================================================================

@pytest.fixture
def text_content() -> str:
    """Random document text."""
    return fake.paragraph(nb_sentences=3)


@pytest.fixture
def attachment_name() -> str:
    """Random attachment filename without the key separator."""
    return fake.file_name(extension="png").replace("_", "-")


@pytest.fixture
def binary_payload() -> bytes:
    """Bytes that are not valid UTF-8."""
    return b"\x89PNG\r\n\x1a\n\xff\xfe\x00\x01" + os.urandom(16)


# =============================================================================
# Storage Fixtures
# =============================================================================

@pytest.fixture
def memory_store() -> InMemoryBlobStore:
    """Empty in-memory blob store."""
    return InMemoryBlobStore()


@pytest.fixture
def failing_store() -> FailingBlobStore:
    """In-memory blob store with injectable failures."""
    return FailingBlobStore()


@pytest.fixture
def repository(memory_store):
    """Document repository over the in-memory store."""
    from doc_manager.services.document import DocumentRepository

    return DocumentRepository(memory_store)


@pytest.fixture
def failing_repository(failing_store):
    """Document repository over the failure-injecting store."""
    from doc_manager.services.document import DocumentRepository

    return DocumentRepository(failing_store)


# =============================================================================
# Application Fixtures
# =============================================================================

@pytest.fixture
def blob_store(memory_store) -> InMemoryBlobStore:
    """Store backing the application under test; override to swap it."""
    return memory_store


@pytest.fixture
def app(blob_store):
    """Create a test FastAPI application instance."""
    # Import here to ensure test environment is set
    from doc_manager.main import create_app

    return create_app(blob_store=blob_store)


@pytest_asyncio.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create an async HTTP client for API testing."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client
