"""Business logic services."""

from .quote_service import QuoteService
from .version_service import VersionService
from .snapshot_writer import SnapshotWriter

__all__ = ["QuoteService", "VersionService", "SnapshotWriter"]
