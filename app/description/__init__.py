from app.description.base import BaseDescriptionExtractor
from app.description.extractor import DescriptionExtractor
from app.description.factory import DescriptionExtractorFactory

__all__ = ["BaseDescriptionExtractor", "DescriptionExtractor", "DescriptionExtractorFactory"]
