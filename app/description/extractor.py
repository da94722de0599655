"""Vision-model description of stored event images."""

from pathlib import Path

from app.description.base import BaseDescriptionExtractor
from app.description.client_base import BaseVisionClient
from app.description.prompt_loader import load_description_prompt
from app.logging.logger import Log

NO_DESCRIPTION_PLACEHOLDER = '{"error": "No description generated."}'


class DescriptionExtractor(BaseDescriptionExtractor):
    """Describes an image through a vision client using a fixed instruction."""

    def __init__(
        self,
        *,
        client: BaseVisionClient,
        model: str,
        max_tokens: int = 300,
        prompt_path: Path | None = None,
    ) -> None:
        self._client = client
        self._model = model
        self._max_tokens = max_tokens
        self._prompt = load_description_prompt(prompt_path)

    @property
    def prompt(self) -> str:
        return self._prompt

    async def describe(self, retrieval_url: str, instruction_prompt: str | None = None) -> str:
        content = await self._client.create_image_completion(
            model=self._model,
            prompt=instruction_prompt or self._prompt,
            image_url=retrieval_url,
            max_tokens=self._max_tokens,
        )
        if content is None or not content.strip():
            Log.warning("Vision model returned no content, using placeholder")
            return NO_DESCRIPTION_PLACEHOLDER
        Log.debug(f"Vision model raw response:\n{content}")
        return content

    async def aclose(self) -> None:
        await self._client.aclose()
