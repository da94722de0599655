from abc import ABC, abstractmethod


class BaseVisionClient(ABC):
    """Contract for provider-specific vision inference clients."""

    @abstractmethod
    async def create_image_completion(
        self,
        *,
        model: str,
        prompt: str,
        image_url: str,
        max_tokens: int,
    ) -> str | None:
        """Return the provider's text answer, or None when it produced none."""

    async def aclose(self) -> None:
        """Release network resources held by the client."""
