from app.config.settings import Settings
from app.description.base import BaseDescriptionExtractor
from app.description.example_client_adapter import ExampleVisionClientAdapter
from app.description.extractor import DescriptionExtractor
from app.description.openai_client_adapter import OpenAIVisionClientAdapter


class DescriptionExtractorFactory:
    """Creates the configured description extractor."""

    PROVIDERS = ("openai", "openai_compatible", "example")

    @classmethod
    def create(cls, settings: Settings) -> BaseDescriptionExtractor:
        provider = settings.description_provider.lower()
        if provider == "example":
            return DescriptionExtractor(
                client=ExampleVisionClientAdapter(),
                model="example",
                max_tokens=settings.description_max_tokens,
            )
        if provider not in cls.PROVIDERS:
            raise ValueError(
                f"Unknown description provider '{provider}'. Choose from: {list(cls.PROVIDERS)}"
            )
        client = OpenAIVisionClientAdapter(
            api_key=settings.openai_api_key,
            timeout_seconds=settings.description_timeout_seconds,
            base_url=cls._resolve_base_url(provider, settings),
        )
        return DescriptionExtractor(
            client=client,
            model=settings.openai_model_name,
            max_tokens=settings.description_max_tokens,
        )

    @staticmethod
    def _resolve_base_url(provider: str, settings: Settings) -> str | None:
        if provider == "openai":
            return None
        url = (settings.openai_base_url or "").strip()
        if not url:
            raise ValueError(
                "openai_base_url is required for description_provider=openai_compatible"
            )
        return url
