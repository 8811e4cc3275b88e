# Overview: Retry and row-locking helpers for writes that race (order creation, status transitions).

from __future__ import annotations

import logging
import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db

logger = logging.getLogger(__name__)


def lock_for_update(query):
    """
    Hold the selected order row until the transaction commits, so two admins
    moving the same order cannot both run its completion tasks.

    SQLite has no row locks and drops the FOR UPDATE clause; there the
    Order.version_id check is what catches the second writer.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Call func, rolling back and retrying when the database reports a lock
    conflict or a stale Order.version_id.

    Waits backoff_base, then twice that, and so on between attempts. The last
    failure is re-raised. func has to rebuild its writes from scratch because
    the rollback discards everything it added.
    """
    for attempt in range(1, attempts + 1):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            if attempt == attempts:
                raise
            logger.warning("Write conflict on attempt %d/%d, retrying: %s", attempt, attempts, exc)
            time.sleep(backoff_base * (2 ** (attempt - 1)))
