# Overview: Transaction helpers for stock-changing operations.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; the version_id columns on
    products and documents catch conflicting writers there instead.
    """
    return query.with_for_update()


RETRYABLE_ERRORS = (OperationalError, StaleDataError)


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1, retry_on=RETRYABLE_ERRORS):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, locks) and StaleDataError
    (optimistic locking conflicts) by default; retry_on widens or narrows
    that set.
    """
    for attempt in range(attempts):
        try:
            return func()
        except retry_on:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            current_app.logger.warning(
                "Concurrent update detected, retrying (attempt %d of %d)", attempt + 2, attempts
            )
            time.sleep(backoff_base * (2 ** attempt))


def run_in_transaction(func, *, attempts: int = 3, retry_integrity: bool = False):
    """
    Run func and commit once; any exception rolls the whole unit back.

    func must not commit on its own. Concurrency failures are retried from
    scratch, so func has to re-read everything it touches.

    retry_integrity also retries IntegrityError. Creates use it: two
    writers can pick the same sequential code (see code_service.next_code)
    and the loser recomputes it on the next attempt.
    """
    def _op():
        try:
            result = func()
            db.session.commit()
        except Exception:
            db.session.rollback()
            raise
        return result

    retry_on = RETRYABLE_ERRORS + (IntegrityError,) if retry_integrity else RETRYABLE_ERRORS
    return run_with_retry(_op, attempts=attempts, retry_on=retry_on)
