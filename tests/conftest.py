from pathlib import Path

import pytest

from app.config.settings import Settings
from app.description.example_client_adapter import ExampleVisionClientAdapter
from app.description.extractor import DescriptionExtractor
from app.ledger.example_submitter import ExampleAttestationSubmitter
from app.processor.processor import Collaborators
from app.schema.encoder import SchemaEncoder
from app.storage.example_adapter import ExampleContentStore
from tests.helpers import SCHEMA_LAYOUT, SCHEMA_UID


@pytest.fixture()
def sample_image_bytes() -> bytes:
    """A PNG signature followed by filler; enough for byte-level handling."""
    return b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture()
def upload_root(tmp_path: Path) -> Path:
    return tmp_path / "uploads"


@pytest.fixture()
def example_settings(upload_root: Path) -> Settings:
    return Settings(
        storage_provider="example",
        description_provider="example",
        ledger_provider="example",
        upload_dir=str(upload_root),
    )


@pytest.fixture()
def example_collaborators() -> Collaborators:
    return Collaborators(
        content_store=ExampleContentStore(),
        extractor=DescriptionExtractor(client=ExampleVisionClientAdapter(), model="example"),
        submitter=ExampleAttestationSubmitter(),
        encoder=SchemaEncoder(SCHEMA_LAYOUT, SCHEMA_UID),
    )
