# Overview: Conditional-update and retry helpers for concurrent writers.

from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError

from ..extensions import db


def conditional_update(model, entity_id: int, values: dict, *conditions) -> int:
    """
    UPDATE model SET values WHERE id = entity_id AND conditions; commit.

    Returns affected row count. Zero means a precondition did not hold at
    write time (possibly because a concurrent writer got there first); the
    caller decides which error that is. No row is read before writing, so
    two racing writers can never both succeed.
    """
    def _op():
        affected = (
            db.session.query(model)
            .filter(model.id == entity_id, *conditions)
            .update(values, synchronize_session=False)
        )
        db.session.commit()
        return affected

    return run_with_retry(_op)


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on transient lock failures.

    Retries on OperationalError (e.g. SQLite "database is locked",
    deadlocks elsewhere). Anything else propagates immediately.
    """
    for attempt in range(attempts):
        try:
            return func()
        except OperationalError:
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
