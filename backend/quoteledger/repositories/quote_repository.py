"""Quote repository: the live document store."""

import copy
from decimal import Decimal
from typing import Any, List, Optional

from ..models import Quote, QuoteItem, item_to_dict
from ..exceptions import QuoteNotFoundError
from .base import BaseRepository


def items_from_dicts(quote_id: int, items: list) -> List[QuoteItem]:
    """Build new QuoteItem rows, in order, from plain item dicts."""
    return [
        QuoteItem(quote_id=quote_id, position=position, **item_to_dict(data))
        for position, data in enumerate(items)
    ]


class QuoteRepository(BaseRepository[Quote]):
    """Repository for quote CRUD. Never commits; services own transactions."""

    model_class = Quote
    not_found_error = QuoteNotFoundError

    def create(
        self,
        owner_id: str,
        name: str,
        total: Decimal,
        notes: Optional[str],
        config: dict,
        items: list,
    ) -> Quote:
        """Insert a quote at version 1 with its items."""
        quote = Quote(
            owner_id=owner_id,
            name=name,
            total=total,
            notes=notes,
            config=copy.deepcopy(config or {}),
            current_version=1,
            status="draft",
        )
        self.db.add(quote)
        self.db.flush()

        quote.items = items_from_dicts(quote.id, items)
        self.db.flush()
        self.db.refresh(quote)
        return quote

    def get_for_update(self, quote_id: int) -> Quote:
        """Load a quote with a row lock (``SELECT ... FOR UPDATE``).

        The row lock is honoured by PostgreSQL; SQLite ignores it and relies
        on the in-process quote lock alone.
        """
        quote = (
            self._base_query()
            .filter(Quote.id == quote_id)
            .with_for_update()
            .populate_existing()
            .first()
        )
        if quote is None:
            raise QuoteNotFoundError(quote_id)
        # A collection loaded earlier in this session may predate another
        # writer's commit.
        self.db.expire(quote, ["items"])
        return quote

    def replace_content(
        self,
        quote: Quote,
        name: str,
        total: Any,
        notes: Optional[str],
        config: dict,
        items: list,
    ) -> Quote:
        """Overwrite the versioned fields and the full item list of *quote*."""
        quote.name = name
        quote.total = total
        quote.notes = notes
        quote.config = copy.deepcopy(config or {})

        # Flush the orphan deletes before inserting the replacements.
        quote.items = []
        self.db.flush()
        quote.items = items_from_dicts(quote.id, items)
        self.db.flush()
        return quote

    def list_by_owner(
        self,
        owner_id: str,
        status: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[Quote]:
        """Owner's quotes, newest first."""
        query = self._base_query().filter(Quote.owner_id == owner_id)
        if status:
            query = query.filter(Quote.status == status)
        return query.order_by(Quote.created_at.desc(), Quote.id.desc()).offset(skip).limit(limit).all()

    def delete(self, quote: Quote) -> None:
        """Delete a quote; items and snapshots go with it."""
        self.db.delete(quote)
        self.db.flush()
