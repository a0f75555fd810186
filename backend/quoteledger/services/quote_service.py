"""Quote service: CRUD plus the versioned save path.

``save`` is the main entry point of the editor. Saving an existing quote
snapshots the state being replaced before anything is overwritten, all
under the quote's lock and in one transaction.
"""

import logging
from decimal import Decimal
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..models import Quote
from ..repositories import QuoteRepository
from ..schemas.quote import QuoteSave, QuoteStatus, QuoteListResponse, SaveResponse
from ..exceptions import DatabaseError, ForbiddenError, ValidationError
from .change_summary import summarize
from .locks import quote_critical_section, quote_locks
from .snapshot_writer import SnapshotWriter
from .version_state import state_from_quote

logger = logging.getLogger(__name__)


class QuoteService:
    """Owner-scoped quote operations."""

    def __init__(self, db: Session):
        self.db = db
        self.quote_repo = QuoteRepository(db)
        self.snapshot_writer = SnapshotWriter(db)

    def get(self, owner_id: str, quote_id: int) -> Quote:
        """Load a quote and check ownership.

        Raises:
            QuoteNotFoundError: no quote with this id.
            ForbiddenError: the quote belongs to someone else.
        """
        quote = self.quote_repo.get_by_id(quote_id)
        if quote.owner_id != owner_id:
            logger.warning(
                "Quote access denied",
                extra={"quote_id": quote_id, "owner_id": owner_id},
            )
            raise ForbiddenError(quote_id)
        return quote

    def list_quotes(
        self,
        owner_id: str,
        status: Optional[QuoteStatus] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[QuoteListResponse]:
        """Owner's quotes, newest first, optionally filtered by status."""
        quotes = self.quote_repo.list_by_owner(
            owner_id, status.value if status else None, skip, limit
        )
        return [QuoteListResponse.model_validate(q) for q in quotes]

    def create(self, owner_id: str, data: QuoteSave) -> Quote:
        """Create a fresh quote at version 1. No snapshot is written."""
        name = self._validated_name(data)
        try:
            quote = self.quote_repo.create(
                owner_id=owner_id,
                name=name,
                total=data.total,
                notes=data.notes,
                config=data.config,
                items=[item.model_dump() for item in data.items],
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseError("Failed to create quote", e) from e

        self.db.refresh(quote)
        logger.info("Quote created", extra={"quote_id": quote.id, "owner_id": owner_id})
        return quote

    def save(self, owner_id: str, data: QuoteSave) -> SaveResponse:
        """Create (no ``data.id``) or update a quote.

        Updating snapshots the pre-save state, replaces header and items, and
        bumps ``current_version`` by exactly one. The returned change summary
        describes the change this save applied.

        Raises:
            QuoteNotFoundError, ForbiddenError, ValidationError, BusyError,
            DatabaseError
        """
        if data.id is None:
            quote = self.create(owner_id, data)
            return SaveResponse(
                quote_id=quote.id,
                version_num=quote.current_version,
                change_summary=summarize(None, state_from_quote(quote)),
                created=True,
            )

        name = self._validated_name(data)
        quote_id = data.id
        self.get(owner_id, quote_id)

        with quote_critical_section(self.db, quote_id):
            quote = self.quote_repo.get_for_update(quote_id)
            if quote.owner_id != owner_id:
                raise ForbiddenError(quote_id)

            before = state_from_quote(quote)
            snapshot_num = self.snapshot_writer.snapshot(quote_id, quote)

            self.quote_repo.replace_content(
                quote,
                name=name,
                total=data.total,
                notes=data.notes,
                config=data.config,
                items=[item.model_dump() for item in data.items],
            )
            quote.current_version = snapshot_num + 1
            self.db.flush()
            # Summarize what the row now holds, not the request payload.
            self.db.refresh(quote)

            change_summary = summarize(before, state_from_quote(quote))
            version_num = quote.current_version

        logger.info(
            "Quote saved",
            extra={"quote_id": quote_id, "version_num": version_num, "change_summary": change_summary},
        )
        return SaveResponse(
            quote_id=quote_id,
            version_num=version_num,
            change_summary=change_summary,
        )

    def delete(self, owner_id: str, quote_id: int) -> None:
        """Delete a quote together with its items and version history."""
        self.get(owner_id, quote_id)

        with quote_critical_section(self.db, quote_id):
            quote = self.quote_repo.get_for_update(quote_id)
            self.quote_repo.delete(quote)

        quote_locks.discard(quote_id)
        logger.info("Quote deleted", extra={"quote_id": quote_id, "owner_id": owner_id})

    def update_status(
        self,
        owner_id: str,
        quote_id: int,
        status: QuoteStatus,
        daily_earnings: Optional[Decimal] = None,
    ) -> Quote:
        """Change workflow status. Not a content edit: no version is created."""
        quote = self.get(owner_id, quote_id)
        quote.status = status.value
        if daily_earnings is not None:
            quote.daily_earnings = daily_earnings
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseError("Failed to update quote status", e) from e
        self.db.refresh(quote)
        return quote

    @staticmethod
    def _validated_name(data: QuoteSave) -> str:
        name = (data.name or "").strip()
        if not name:
            raise ValidationError("Quote name must not be empty", field="name")
        return name
