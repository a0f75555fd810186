"""Per-quote exclusive locks for the snapshot-then-mutate critical section.

One ``threading.Lock`` per quote id, created on demand. Acquisition is
bounded: a caller that cannot get the lock within the timeout gets a
BusyError instead of queueing. Locks are process-local; across processes
the row lock taken by ``QuoteRepository.get_for_update`` serializes
writers on PostgreSQL.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.config import settings
from ..core.logging_config import quote_log_context
from ..exceptions import BusyError, DatabaseError, QuoteLedgerException

logger = logging.getLogger(__name__)


class QuoteLockRegistry:
    """Thread-safe map of quote id -> lock."""

    def __init__(self) -> None:
        self._locks: dict[int, threading.Lock] = {}
        self._registry_lock = threading.Lock()

    def get(self, quote_id: int) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(quote_id)
            if lock is None:
                lock = self._locks[quote_id] = threading.Lock()
            return lock

    def discard(self, quote_id: int) -> None:
        """Forget the lock of a deleted quote."""
        with self._registry_lock:
            self._locks.pop(quote_id, None)

    def clear(self) -> None:
        """Drop every lock (for testing)."""
        with self._registry_lock:
            self._locks.clear()

    @contextmanager
    def hold(self, quote_id: int, timeout: Optional[float] = None) -> Iterator[None]:
        """Hold the quote's lock for the duration of the ``with`` block.

        Raises:
            BusyError: if the lock is not acquired within *timeout* seconds
                (defaults to ``settings.lock_timeout_seconds``).
        """
        if timeout is None:
            timeout = settings.lock_timeout_seconds

        lock = self.get(quote_id)
        if not lock.acquire(timeout=timeout):
            logger.warning(
                "Quote lock busy",
                extra={"quote_id": quote_id, "timeout_s": timeout},
            )
            raise BusyError(quote_id, retry_after=timeout)
        try:
            yield
        finally:
            lock.release()


# Process-wide registry shared by all services.
quote_locks = QuoteLockRegistry()


@contextmanager
def quote_critical_section(db: Session, quote_id: int, timeout: Optional[float] = None) -> Iterator[None]:
    """Lock the quote, run the block, and commit it as one transaction.

    The commit happens before the lock is released. Any exception, including
    cancellation, rolls the whole block back. Storage errors surface as
    DatabaseError; a duplicate version number written by a writer in another
    process surfaces as BusyError. Records logged inside carry ``quote_id``.
    """
    with quote_log_context(quote_id), quote_locks.hold(quote_id, timeout):
        try:
            yield
            db.commit()
        except QuoteLedgerException:
            db.rollback()
            raise
        except IntegrityError as e:
            db.rollback()
            logger.warning("Concurrent version write rejected")
            raise BusyError(quote_id, retry_after=1.0) from e
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Storage failure in quote critical section", exc_info=True)
            raise DatabaseError("Failed to persist quote changes", e) from e
        except BaseException:
            db.rollback()
            raise
