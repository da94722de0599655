import json

import httpx

from app.logging.logger import Log
from app.processor.exceptions import StorageRejected, StorageUnavailable
from app.processor.models import StoredContentRef
from app.storage.base import BaseContentStore

_PIN_FILE_PATH = "/pinning/pinFileToIPFS"
_UNAVAILABLE_STATUSES = frozenset({401, 403, 408, 429})


class PinataContentStore(BaseContentStore):
    """Pins blobs to IPFS through the Pinata pinning API."""

    def __init__(
        self,
        *,
        jwt: str,
        api_url: str,
        gateway_url: str,
        timeout_seconds: int,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._jwt = jwt
        self._gateway_url = gateway_url.rstrip("/")
        self._client = httpx.AsyncClient(
            base_url=api_url.rstrip("/"),
            timeout=timeout_seconds,
            transport=transport,
        )

    async def store(self, blob: bytes, name: str) -> StoredContentRef:
        if not self._jwt:
            raise StorageUnavailable("Pinata JWT is not configured")
        try:
            response = await self._client.post(
                _PIN_FILE_PATH,
                headers={"Authorization": f"Bearer {self._jwt}"},
                files={"file": (name, blob)},
                data={
                    "pinataMetadata": json.dumps({"name": name}),
                    "pinataOptions": json.dumps({"cidVersion": 0}),
                },
            )
        except httpx.TransportError as exc:
            raise StorageUnavailable(f"Content store network error: {exc}") from exc

        self._raise_for_status(response)
        content_id = self._content_id(response)
        Log.info(f"Pinned '{name}' to IPFS", cid=content_id)
        return StoredContentRef(
            content_id=content_id,
            retrieval_url=f"{self._gateway_url}/ipfs/{content_id}",
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    @staticmethod
    def _raise_for_status(response: httpx.Response) -> None:
        status = response.status_code
        if status < 400:
            return
        detail = response.text[:200]
        if status >= 500 or status in _UNAVAILABLE_STATUSES:
            raise StorageUnavailable(f"Content store returned {status}: {detail}")
        raise StorageRejected(f"Content store rejected upload ({status}): {detail}")

    @staticmethod
    def _content_id(response: httpx.Response) -> str:
        try:
            payload = response.json()
        except ValueError as exc:
            raise StorageUnavailable("Content store returned a non-JSON body") from exc
        content_id = payload.get("IpfsHash") if isinstance(payload, dict) else None
        if not content_id or not isinstance(content_id, str):
            raise StorageUnavailable("Content store response has no IpfsHash")
        return content_id
