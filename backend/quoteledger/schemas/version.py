"""Version and comparison schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from .quote import QuoteItemData


class VersionSummaryResponse(BaseModel):
    """Version list entry."""
    version_num: int
    name: str
    total: Decimal
    change_summary: str
    item_count: int
    created_at: Optional[datetime] = None


class VersionResponse(BaseModel):
    """Full state of one version.

    ``is_current`` marks the live quote, which has no stored snapshot yet.
    """
    quote_id: int
    version_num: int
    name: str
    total: Decimal
    notes: Optional[str] = None
    config: Dict[str, Any] = {}
    items: List[QuoteItemData] = []
    change_summary: str = ""
    created_at: Optional[datetime] = None
    is_current: bool = False


class HeaderDiff(BaseModel):
    """Differences between the header fields of two versions (B relative to A)."""
    name_changed: bool
    name_a: str
    name_b: str
    total_a: Decimal
    total_b: Decimal
    total_delta: Decimal
    notes_changed: bool
    config_changed: bool
    item_count_a: int
    item_count_b: int
    item_count_delta: int


class ModifiedItem(BaseModel):
    old: QuoteItemData
    new: QuoteItemData


class ItemChanges(BaseModel):
    added: List[QuoteItemData] = []
    removed: List[QuoteItemData] = []
    modified: List[ModifiedItem] = []


class ComparisonResponse(BaseModel):
    """Structured diff between version A and version B of one quote."""
    quote_id: int
    version_a: int
    version_b: int
    header: HeaderDiff
    items: ItemChanges

    model_config = ConfigDict(from_attributes=True)

    @property
    def is_empty(self) -> bool:
        return not (
            self.header.name_changed
            or self.header.total_delta
            or self.header.notes_changed
            or self.header.config_changed
            or self.header.item_count_delta
            or self.items.added
            or self.items.removed
            or self.items.modified
        )


class RestoreResponse(BaseModel):
    """Result of a restore: the live quote now holds ``restored_from``'s content."""
    quote_id: int
    restored_from: int
    version_num: int
