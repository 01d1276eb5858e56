"""
Adapters layer - External integrations (hosted REST store, local JSON file).
"""

from .json_store import JsonFileStore
from .rest_store import RestStoreClient

__all__ = ["JsonFileStore", "RestStoreClient"]
