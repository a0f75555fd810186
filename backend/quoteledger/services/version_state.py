"""Value-type view of a quote's versioned content.

A VersionState is what the summarizer and comparator work on. It can be
built from the live quote or from a stored snapshot; in both cases the
items are fresh plain dicts, so nothing in a state aliases ORM objects
or another state.
"""

import copy
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from ..models import Quote, QuoteVersion, item_to_dict


@dataclass(frozen=True)
class VersionState:
    version_num: int
    name: str
    total: Decimal
    notes: Optional[str]
    config: dict
    items: list = field(default_factory=list)
    change_summary: str = ""
    created_at: Optional[datetime] = None
    is_current: bool = False


def to_decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def state_from_quote(quote: Quote) -> VersionState:
    return VersionState(
        version_num=quote.current_version,
        name=quote.name,
        total=to_decimal(quote.total),
        notes=quote.notes,
        config=copy.deepcopy(quote.config or {}),
        items=[item_to_dict(item) for item in quote.items],
        created_at=quote.updated_at,
        is_current=True,
    )


def state_from_version(version: QuoteVersion) -> VersionState:
    return VersionState(
        version_num=version.version_num,
        name=version.name,
        total=to_decimal(version.total),
        notes=version.notes,
        config=copy.deepcopy(version.config or {}),
        items=[item_to_dict(item) for item in (version.items or [])],
        change_summary=version.change_summary or "",
        created_at=version.created_at,
    )
