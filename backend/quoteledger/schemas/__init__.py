"""Pydantic schemas for API validation."""

from .quote import (
    QuoteStatus,
    QuoteItemData,
    QuoteItemResponse,
    QuoteSave,
    SaveResponse,
    QuoteResponse,
    QuoteListResponse,
    QuoteStatusUpdate,
)
from .version import (
    VersionSummaryResponse,
    VersionResponse,
    HeaderDiff,
    ModifiedItem,
    ItemChanges,
    ComparisonResponse,
    RestoreResponse,
)

__all__ = [
    "QuoteStatus",
    "QuoteItemData",
    "QuoteItemResponse",
    "QuoteSave",
    "SaveResponse",
    "QuoteResponse",
    "QuoteListResponse",
    "QuoteStatusUpdate",
    "VersionSummaryResponse",
    "VersionResponse",
    "HeaderDiff",
    "ModifiedItem",
    "ItemChanges",
    "ComparisonResponse",
    "RestoreResponse",
]
