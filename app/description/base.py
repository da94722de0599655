from abc import ABC, abstractmethod


class BaseDescriptionExtractor(ABC):
    """Contract for turning stored visual content into free-form text."""

    @abstractmethod
    async def describe(self, retrieval_url: str, instruction_prompt: str | None = None) -> str:
        """Ask a vision model to describe the event shown at ``retrieval_url``.

        Args:
            retrieval_url: Public URL (or data URL) of the image.
            instruction_prompt: Overrides the bundled instruction when given.

        Returns:
            Unstructured text. A placeholder is returned when the model
            produced nothing usable; that is not a failure.

        Raises:
            InferenceUnavailable: on transport or credential failures.
            InferenceRejected: on content-policy refusals or malformed requests.
            InferenceTimeout: when the provider does not answer in time.
        """

    async def aclose(self) -> None:
        """Release network resources held by the extractor."""
