from app.config.settings import Settings
from app.storage.base import BaseContentStore
from app.storage.example_adapter import ExampleContentStore
from app.storage.pinata_adapter import PinataContentStore


class ContentStoreFactory:
    """Creates the configured content store adapter."""

    PROVIDERS = ("pinata", "example")

    @classmethod
    def create(cls, settings: Settings) -> BaseContentStore:
        provider = settings.storage_provider.lower()
        if provider == "example":
            return ExampleContentStore()
        if provider == "pinata":
            return PinataContentStore(
                jwt=settings.pinata_jwt,
                api_url=settings.pinata_api_url,
                gateway_url=settings.pinata_gateway_url,
                timeout_seconds=settings.storage_timeout_seconds,
            )
        raise ValueError(
            f"Unknown storage provider '{provider}'. Choose from: {list(cls.PROVIDERS)}"
        )
