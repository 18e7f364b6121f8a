"""Data store implementations."""

from .base import DataStore
from .memory import InMemoryDataStore
from .rest import RestDataStore

__all__ = ["DataStore", "InMemoryDataStore", "RestDataStore"]
