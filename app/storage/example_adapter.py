"""In-memory content store.

Mirrors the content-addressing behaviour of a real store without network
calls. Useful for local development and tests.
"""

import hashlib

from app.processor.exceptions import StorageRejected
from app.processor.models import StoredContentRef
from app.storage.base import BaseContentStore


class ExampleContentStore(BaseContentStore):
    """Stores blobs in a dict keyed by their sha256 hex digest."""

    def __init__(self, base_url: str = "https://example.invalid/ipfs") -> None:
        self._base_url = base_url.rstrip("/")
        self.blobs: dict[str, bytes] = {}

    async def store(self, blob: bytes, name: str) -> StoredContentRef:
        if not blob:
            raise StorageRejected(f"Refusing to store empty blob '{name}'")
        content_id = hashlib.sha256(blob).hexdigest()
        self.blobs[content_id] = blob
        return StoredContentRef(
            content_id=content_id,
            retrieval_url=f"{self._base_url}/{content_id}",
        )
