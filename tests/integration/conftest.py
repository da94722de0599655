import os
from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from app.api.server import create_app
from app.config.settings import Settings

_LIVE_CREDENTIALS = ("PINATA_JWT", "OPENAI_API_KEY", "LEDGER_PRIVATE_KEY")


@pytest.fixture
def offline_settings(tmp_path: Path) -> Settings:
    return Settings(
        storage_provider="example",
        description_provider="example",
        ledger_provider="example",
        upload_dir=str(tmp_path / "uploads"),
    )


@pytest.fixture
def offline_client(offline_settings: Settings) -> Iterator[TestClient]:
    """App whose collaborators are built by the lifespan from settings."""
    with TestClient(create_app(offline_settings)) as client:
        yield client


@pytest.fixture(scope="session")
def live_settings() -> Settings:
    missing = [name for name in _LIVE_CREDENTIALS if not os.environ.get(name)]
    if missing:
        pytest.skip(f"Live providers not configured: set {', '.join(missing)}")
    return Settings()
