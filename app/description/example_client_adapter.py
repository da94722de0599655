"""Example vision client adapter.

Use this module as a reference when implementing new provider adapters.
Implement BaseVisionClient and register the provider in DescriptionExtractorFactory.
"""

from typing import ClassVar

from app.description.client_base import BaseVisionClient


class ExampleVisionClientAdapter(BaseVisionClient):
    """Example adapter that returns a fixed labelled description.

    No network calls. Useful for local development and tests.
    """

    DEFAULT_RESPONSE: ClassVar[str] = (
        "Event Name: Community Meetup\n"
        "Event Description: People gathered around a stage for a talk\n"
        "Occasion: Meetup"
    )

    async def create_image_completion(
        self,
        *,
        model: str,
        prompt: str,
        image_url: str,
        max_tokens: int,
    ) -> str | None:
        _ = model, prompt, image_url, max_tokens
        return self.DEFAULT_RESPONSE
