"""Unit tests for QuoteService: the save path and its versioning guarantees.

Tests the service layer directly against the test database, bypassing
the HTTP stack.
"""

from concurrent.futures import ThreadPoolExecutor
from decimal import Decimal

import pytest

from quoteledger.core.config import settings
from quoteledger.database import SessionLocal
from quoteledger.exceptions import BusyError, ForbiddenError, QuoteNotFoundError, ValidationError
from quoteledger.models import QuoteItem, QuoteVersion
from quoteledger.repositories import QuoteRepository, VersionRepository
from quoteledger.schemas.quote import QuoteStatus
from quoteledger.services import QuoteService, VersionService
from quoteledger.services.locks import quote_locks
from tests.factories import make_item, make_save

OWNER = "owner-1"


def _create(db, **kwargs) -> int:
    return QuoteService(db).save(OWNER, make_save(**kwargs)).quote_id


class TestCreate:

    def test_save_without_id_creates_version_one(self, db):
        result = QuoteService(db).save(OWNER, make_save())
        assert result.created is True
        assert result.version_num == 1
        assert result.change_summary == "Initial version"

        quote = QuoteService(db).get(OWNER, result.quote_id)
        assert quote.current_version == 1
        assert quote.status == "draft"
        assert [item.job for item in quote.items] == ["Tiling"]

    def test_create_writes_no_snapshot(self, db):
        quote_id = _create(db)
        assert VersionRepository(db).get_by_quote(quote_id) == []

    def test_blank_name_rejected(self, db):
        with pytest.raises(ValidationError):
            QuoteService(db).save(OWNER, make_save(name="   "))

    def test_item_order_preserved(self, db):
        items = [make_item(job=job) for job in ("Demolition", "Tiling", "Grouting")]
        quote = QuoteService(db).get(OWNER, _create(db, items=items))
        assert [item.job for item in quote.items] == ["Demolition", "Tiling", "Grouting"]
        assert [item.position for item in quote.items] == [0, 1, 2]


class TestSave:

    def test_update_snapshots_previous_state(self, db):
        quote_id = _create(db, total="1000")
        result = QuoteService(db).save(OWNER, make_save(id=quote_id, total="1200"))

        assert result.created is False
        assert result.version_num == 2
        snapshot = VersionRepository(db).get(quote_id, 1)
        assert snapshot.total == Decimal("1000")
        assert snapshot.change_summary == "Initial version"

    def test_change_summary_describes_applied_change(self, db):
        quote_id = _create(db, total="1000")
        data = make_save(
            id=quote_id,
            total="1200",
            items=[make_item(), make_item(job="Painting", quantity=20, unit_price=10)],
        )
        result = QuoteService(db).save(OWNER, data)
        assert result.change_summary == "Total: +200.00; Items: +1"

    def test_each_save_increments_version_by_one(self, db):
        quote_id = _create(db)
        svc = QuoteService(db)
        versions = [
            svc.save(OWNER, make_save(id=quote_id, total=str(1000 + n))).version_num
            for n in range(1, 5)
        ]
        assert versions == [2, 3, 4, 5]
        nums = [v.version_num for v in VersionRepository(db).get_by_quote(quote_id)]
        assert nums == [4, 3, 2, 1]

    def test_unchanged_save_still_creates_version(self, db):
        quote_id = _create(db)
        result = QuoteService(db).save(OWNER, make_save(id=quote_id))
        assert result.version_num == 2
        assert result.change_summary == "Details changed"

    def test_sub_cent_total_is_rounded_before_summary(self, db):
        quote_id = _create(db, total="1000")
        svc = QuoteService(db)

        result = svc.save(OWNER, make_save(id=quote_id, total="1000.004"))
        assert result.change_summary == "Details changed"
        assert svc.get(OWNER, quote_id).total == Decimal("1000.00")

        result = svc.save(OWNER, make_save(id=quote_id, total="1000.005"))
        assert result.change_summary == "Total: +0.01"

        db.expire_all()
        assert svc.get(OWNER, quote_id).total == Decimal("1000.01")
        history = VersionRepository(db).get(quote_id, 2)
        assert history.change_summary == "Details changed"
        delta = VersionService(db).compare_versions(OWNER, quote_id, 2, 3).header.total_delta
        assert delta == Decimal("0.01")

    def test_items_replaced_not_merged(self, db):
        quote_id = _create(db, items=[make_item(job="Tiling"), make_item(job="Painting")])
        QuoteService(db).save(OWNER, make_save(id=quote_id, items=[make_item(job="Plastering")]))

        quote = QuoteService(db).get(OWNER, quote_id)
        assert [item.job for item in quote.items] == ["Plastering"]
        assert db.query(QuoteItem).filter(QuoteItem.quote_id == quote_id).count() == 1

    def test_snapshot_is_not_affected_by_later_saves(self, db):
        quote_id = _create(db, name="Kitchen", items=[make_item(unit_price=50)])
        svc = QuoteService(db)
        svc.save(OWNER, make_save(id=quote_id, name="Kitchen v2", items=[make_item(unit_price=60)]))
        svc.save(OWNER, make_save(id=quote_id, name="Kitchen v3", items=[make_item(unit_price=70)]))

        db.expire_all()
        snapshot = VersionRepository(db).get(quote_id, 1)
        assert snapshot.name == "Kitchen"
        assert snapshot.items[0]["unit_price"] == 50
        assert snapshot.config == {"vat_rate": 23, "display_mode": "gross"}

    def test_unknown_quote_not_found(self, db):
        with pytest.raises(QuoteNotFoundError):
            QuoteService(db).save(OWNER, make_save(id=9999))

    def test_other_owner_forbidden(self, db):
        quote_id = _create(db)
        with pytest.raises(ForbiddenError):
            QuoteService(db).save("intruder", make_save(id=quote_id, total="1"))
        assert QuoteService(db).get(OWNER, quote_id).current_version == 1

    def test_busy_when_lock_held(self, db, monkeypatch):
        quote_id = _create(db)
        monkeypatch.setattr(settings, "lock_timeout_seconds", 0.05)

        # threading.Lock is not reentrant, so holding it here blocks the save.
        with quote_locks.hold(quote_id):
            with pytest.raises(BusyError):
                QuoteService(db).save(OWNER, make_save(id=quote_id, total="1"))

        db.expire_all()
        assert QuoteService(db).get(OWNER, quote_id).current_version == 1
        assert VersionRepository(db).get_by_quote(quote_id) == []

    def test_failure_after_snapshot_rolls_back_everything(self, db, monkeypatch):
        quote_id = _create(db, total="1000")

        def _explode(self, quote, **fields):
            raise RuntimeError("write failed")

        monkeypatch.setattr(QuoteRepository, "replace_content", _explode)
        with pytest.raises(RuntimeError):
            QuoteService(db).save(OWNER, make_save(id=quote_id, total="1200"))

        db.expire_all()
        quote = QuoteService(db).get(OWNER, quote_id)
        assert quote.current_version == 1
        assert quote.total == Decimal("1000")
        assert db.query(QuoteVersion).filter(QuoteVersion.quote_id == quote_id).count() == 0

    def test_concurrent_saves_get_distinct_versions(self, db):
        quote_id = _create(db)

        def _save(n: int) -> int:
            session = SessionLocal()
            try:
                return QuoteService(session).save(
                    OWNER, make_save(id=quote_id, total=str(2000 + n))
                ).version_num
            finally:
                session.close()

        with ThreadPoolExecutor(max_workers=5) as pool:
            results = list(pool.map(_save, range(5)))

        assert sorted(results) == [2, 3, 4, 5, 6]
        db.expire_all()
        assert QuoteService(db).get(OWNER, quote_id).current_version == 6
        nums = sorted(v.version_num for v in VersionRepository(db).get_by_quote(quote_id))
        assert nums == [1, 2, 3, 4, 5]


class TestListAndGet:

    def test_list_only_own_quotes_newest_first(self, db):
        first = _create(db, name="First")
        second = _create(db, name="Second")
        QuoteService(db).save("someone-else", make_save(name="Theirs"))

        quotes = QuoteService(db).list_quotes(OWNER)
        assert [q.id for q in quotes] == [second, first]

    def test_list_filters_by_status(self, db):
        draft = _create(db, name="Draft")
        sent = _create(db, name="Sent")
        QuoteService(db).update_status(OWNER, sent, QuoteStatus.SENT)

        quotes = QuoteService(db).list_quotes(OWNER, status=QuoteStatus.DRAFT)
        assert [q.id for q in quotes] == [draft]

    def test_get_missing_quote(self, db):
        with pytest.raises(QuoteNotFoundError):
            QuoteService(db).get(OWNER, 12345)


class TestUpdateStatus:

    def test_status_change_does_not_create_version(self, db):
        quote_id = _create(db)
        quote = QuoteService(db).update_status(
            OWNER, quote_id, QuoteStatus.IN_PROGRESS, daily_earnings=Decimal("350")
        )
        assert quote.status == "in_progress"
        assert quote.daily_earnings == Decimal("350")
        assert quote.current_version == 1
        assert VersionRepository(db).get_by_quote(quote_id) == []

    def test_other_owner_forbidden(self, db):
        quote_id = _create(db)
        with pytest.raises(ForbiddenError):
            QuoteService(db).update_status("intruder", quote_id, QuoteStatus.ACCEPTED)


class TestDelete:

    def test_delete_cascades_items_and_versions(self, db):
        quote_id = _create(db)
        QuoteService(db).save(OWNER, make_save(id=quote_id, total="1500"))

        QuoteService(db).delete(OWNER, quote_id)

        with pytest.raises(QuoteNotFoundError):
            QuoteService(db).get(OWNER, quote_id)
        assert db.query(QuoteItem).filter(QuoteItem.quote_id == quote_id).count() == 0
        assert db.query(QuoteVersion).filter(QuoteVersion.quote_id == quote_id).count() == 0

    def test_delete_missing_quote(self, db):
        with pytest.raises(QuoteNotFoundError):
            QuoteService(db).delete(OWNER, 4242)

    def test_delete_other_owner_forbidden(self, db):
        quote_id = _create(db)
        with pytest.raises(ForbiddenError):
            QuoteService(db).delete("intruder", quote_id)
