from app.storage.base import BaseContentStore
from app.storage.factory import ContentStoreFactory

__all__ = ["BaseContentStore", "ContentStoreFactory"]
