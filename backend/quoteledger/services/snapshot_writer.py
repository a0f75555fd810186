"""Snapshot writer: captures the live state of a quote as a numbered version."""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from ..models import Quote
from ..repositories import QuoteRepository, VersionRepository
from .change_summary import summarize
from .version_state import state_from_quote, state_from_version

logger = logging.getLogger(__name__)


class SnapshotWriter:
    """Writes immutable QuoteVersion rows.

    Must run inside the quote's critical section (see ``locks.quote_locks``)
    and inside the caller's transaction: the writer flushes but never
    commits, so a failure later in the same operation discards the
    snapshot together with everything else.
    """

    def __init__(self, db: Session):
        self.db = db
        self.quote_repo = QuoteRepository(db)
        self.version_repo = VersionRepository(db)

    def snapshot(self, quote_id: int, quote: Optional[Quote] = None) -> int:
        """Snapshot the live state of *quote_id* and return its version number.

        The number is ``max(stored) + 1``; the change summary compares the
        live state with the latest stored snapshot. The caller is expected
        to bump ``quote.current_version`` past the returned number.

        Raises:
            QuoteNotFoundError: if the quote does not exist.
        """
        if quote is None:
            quote = self.quote_repo.get_by_id(quote_id)

        current = state_from_quote(quote)
        latest = self.version_repo.get_latest(quote_id)
        previous = state_from_version(latest) if latest is not None else None

        version_num = self.version_repo.max_version_num(quote_id) + 1
        if version_num != quote.current_version:
            logger.warning(
                "Version counter out of step with stored snapshots",
                extra={
                    "quote_id": quote_id,
                    "current_version": quote.current_version,
                    "next_snapshot": version_num,
                },
            )

        change_summary = summarize(previous, current)
        self.version_repo.create(
            quote_id=quote_id,
            version_num=version_num,
            name=current.name,
            total=current.total,
            notes=current.notes,
            config=current.config,
            items=current.items,
            change_summary=change_summary,
        )

        logger.info(
            "Snapshot written",
            extra={"quote_id": quote_id, "version_num": version_num, "change_summary": change_summary},
        )
        return version_num
