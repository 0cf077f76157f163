"""Blob store port for the page-keyed result objects."""

from typing import Any, Protocol

from pdf_tutor.domain.errors import DomainError
from pdf_tutor.domain.types import Result


class BlobStorePort(Protocol):
    """Port for blob storage operations."""

    def put(self, key: str, data: bytes, meta: dict[str, Any]) -> Result[str, DomainError]:
        """Put blob data with metadata. Returns storage key."""
        ...

    def get(self, key: str) -> Result[bytes | None, DomainError]:
        """Get blob data by key; ``value`` is None when the key does not exist."""
        ...

    def delete(self, key: str) -> Result[None, DomainError]:
        """Delete blob by key (missing keys are not an error)."""
        ...
