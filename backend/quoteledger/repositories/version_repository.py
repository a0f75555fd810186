"""Version repository for snapshot storage."""

import copy
from typing import List, Optional

from sqlalchemy import func

from ..models import QuoteVersion
from ..exceptions import VersionNotFoundError
from .base import BaseRepository


class VersionRepository(BaseRepository[QuoteVersion]):
    """Snapshot storage. Insert-only: there is no update or delete here."""

    model_class = QuoteVersion

    def create(
        self,
        quote_id: int,
        version_num: int,
        name: str,
        total,
        notes: Optional[str],
        config: dict,
        items: list,
        change_summary: str,
    ) -> QuoteVersion:
        """Insert one snapshot row. Header and items are written together."""
        db_version = QuoteVersion(
            quote_id=quote_id,
            version_num=version_num,
            name=name,
            total=total,
            notes=notes,
            config=copy.deepcopy(config),
            items=copy.deepcopy(items),
            change_summary=change_summary,
        )
        self.db.add(db_version)
        self.db.flush()
        self.db.refresh(db_version)
        return db_version

    def get(self, quote_id: int, version_num: int) -> QuoteVersion:
        """Snapshot by ``(quote_id, version_num)``. Raises VersionNotFoundError."""
        version = self.get_optional(quote_id, version_num)
        if version is None:
            raise VersionNotFoundError(quote_id, version_num)
        return version

    def get_optional(self, quote_id: int, version_num: int) -> Optional[QuoteVersion]:
        return self._base_query().filter(
            QuoteVersion.quote_id == quote_id,
            QuoteVersion.version_num == version_num,
        ).first()

    def get_by_quote(self, quote_id: int, skip: int = 0, limit: int = 50) -> List[QuoteVersion]:
        """All snapshots of a quote, newest first."""
        return self._base_query().filter(
            QuoteVersion.quote_id == quote_id
        ).order_by(QuoteVersion.version_num.desc()).offset(skip).limit(limit).all()

    def get_latest(self, quote_id: int) -> Optional[QuoteVersion]:
        return self._base_query().filter(
            QuoteVersion.quote_id == quote_id
        ).order_by(QuoteVersion.version_num.desc()).first()

    def max_version_num(self, quote_id: int) -> int:
        """Highest stored version number, or 0 when the quote has no snapshots."""
        result = self.db.query(func.max(QuoteVersion.version_num)).filter(
            QuoteVersion.quote_id == quote_id
        ).scalar()
        return result or 0
