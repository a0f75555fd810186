"""Version service: history listing, comparison and restore.

Reads (list, get, compare) work on committed snapshots and take no lock.
Restore is a mutating operation and goes through the same critical
section and snapshot writer as a save, so the state it replaces is kept
as a version of its own.
"""

import logging
from typing import List

from sqlalchemy.orm import Session

from ..models import Quote
from ..repositories import QuoteRepository, VersionRepository
from ..schemas.version import ComparisonResponse, RestoreResponse, VersionResponse, VersionSummaryResponse
from ..exceptions import ForbiddenError
from .locks import quote_critical_section
from .quote_service import QuoteService
from .snapshot_writer import SnapshotWriter
from .version_comparator import compare_states
from .version_state import VersionState, state_from_quote, state_from_version

logger = logging.getLogger(__name__)


class VersionService:
    """Owner-scoped access to a quote's version history."""

    def __init__(self, db: Session):
        self.db = db
        self.quote_service = QuoteService(db)
        self.quote_repo = QuoteRepository(db)
        self.version_repo = VersionRepository(db)
        self.snapshot_writer = SnapshotWriter(db)

    def list_versions(self, owner_id: str, quote_id: int, skip: int = 0, limit: int = 50) -> List[VersionSummaryResponse]:
        """Stored snapshots of a quote, newest first."""
        self.quote_service.get(owner_id, quote_id)
        return [
            VersionSummaryResponse(
                version_num=v.version_num,
                name=v.name,
                total=v.total,
                change_summary=v.change_summary or "",
                item_count=len(v.items or []),
                created_at=v.created_at,
            )
            for v in self.version_repo.get_by_quote(quote_id, skip, limit)
        ]

    def get_version(self, owner_id: str, quote_id: int, version_num: int) -> VersionResponse:
        """Full content of one version. The current version is served from the live quote."""
        quote = self.quote_service.get(owner_id, quote_id)
        state = self._load_state(quote, version_num)
        return VersionResponse(
            quote_id=quote_id,
            version_num=state.version_num,
            name=state.name,
            total=state.total,
            notes=state.notes,
            config=state.config,
            items=state.items,
            change_summary=state.change_summary,
            created_at=state.created_at,
            is_current=state.is_current,
        )

    def compare_versions(self, owner_id: str, quote_id: int, version_a: int, version_b: int) -> ComparisonResponse:
        """Diff version B against version A of the same quote."""
        quote = self.quote_service.get(owner_id, quote_id)
        state_a = self._load_state(quote, version_a)
        state_b = self._load_state(quote, version_b)
        return compare_states(quote_id, state_a, state_b)

    def restore_version(self, owner_id: str, quote_id: int, target_version: int) -> RestoreResponse:
        """Make the content of *target_version* the live state.

        The live state is snapshotted first, so restoring always produces a
        new version, even when restoring to the same target twice.

        Raises:
            QuoteNotFoundError, VersionNotFoundError, ForbiddenError,
            BusyError, DatabaseError
        """
        self.quote_service.get(owner_id, quote_id)

        with quote_critical_section(self.db, quote_id):
            quote = self.quote_repo.get_for_update(quote_id)
            if quote.owner_id != owner_id:
                raise ForbiddenError(quote_id)

            target = state_from_version(self.version_repo.get(quote_id, target_version))
            snapshot_num = self.snapshot_writer.snapshot(quote_id, quote)

            self.quote_repo.replace_content(
                quote,
                name=target.name,
                total=target.total,
                notes=target.notes,
                config=target.config,
                items=target.items,
            )
            quote.current_version = snapshot_num + 1
            self.db.flush()
            version_num = quote.current_version

        logger.info(
            "Quote restored",
            extra={"quote_id": quote_id, "restored_from": target_version, "version_num": version_num},
        )
        return RestoreResponse(quote_id=quote_id, restored_from=target_version, version_num=version_num)

    def _load_state(self, quote: Quote, version_num: int) -> VersionState:
        if version_num == quote.current_version:
            return state_from_quote(quote)
        return state_from_version(self.version_repo.get(quote.id, version_num))
