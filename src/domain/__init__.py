"""Ranking domain modules."""

from domain.errors import ConfigurationNotFoundError, ListSignalError, ValidationError
from domain.media import Domain, ItemType, MediaType

__all__ = [
    "ConfigurationNotFoundError",
    "Domain",
    "ItemType",
    "ListSignalError",
    "MediaType",
    "ValidationError",
]
