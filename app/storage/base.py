from abc import ABC, abstractmethod

from app.processor.models import StoredContentRef


class BaseContentStore(ABC):
    """Contract for all content-addressed storage adapters."""

    @abstractmethod
    async def store(self, blob: bytes, name: str) -> StoredContentRef:
        """Upload a blob and return its content address.

        Once this returns the blob is public and immutable; there is no undo.

        Args:
            blob: Raw file content.
            name: Human-readable name recorded with the blob.

        Returns:
            StoredContentRef with the content id and public retrieval URL.

        Raises:
            StorageUnavailable: on transport or credential failures.
            StorageRejected: when the provider refuses the blob.
        """

    async def aclose(self) -> None:
        """Release network resources held by the adapter."""
