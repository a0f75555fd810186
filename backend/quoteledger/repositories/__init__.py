"""Data access repositories."""

from .base import BaseRepository
from .quote_repository import QuoteRepository
from .version_repository import VersionRepository

__all__ = [
    "BaseRepository",
    "QuoteRepository",
    "VersionRepository",
]
