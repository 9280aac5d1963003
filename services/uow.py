"""
Unit of work over a SQLAlchemy session.

Write paths take the unit of work as their first argument instead of deciding
on their own whether they run inside a transaction. The request or cascade
that opens it owns commit and rollback.

Usage:
    with UnitOfWork(db.session) as uow:
        order = create_order(uow, ...)
        uow.after_commit(send_confirmation, order.id)
    # transaction committed here, callbacks run afterwards
"""

import logging

logger = logging.getLogger(__name__)


class UnitOfWork:
    def __init__(self, session):
        self.session = session
        self._after_commit = []

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is None:
            self.commit()
        else:
            self.rollback()
        return False

    def flush(self):
        self.session.flush()

    def after_commit(self, fn, *args, **kwargs):
        """Schedule a side effect that must only happen once the data is durable."""
        self._after_commit.append((fn, args, kwargs))

    def commit(self):
        try:
            self.session.commit()
        except Exception:
            self.rollback()
            raise

        callbacks = self._after_commit
        self._after_commit = []
        for fn, args, kwargs in callbacks:
            try:
                fn(*args, **kwargs)
            except Exception:
                # data is already committed; a failing side effect must not undo it
                logger.error("after-commit callback %s failed", getattr(fn, "__name__", fn), exc_info=True)

    def rollback(self):
        if self._after_commit:
            logger.warning("Rolling back, discarding %d pending side effects", len(self._after_commit))
        self._after_commit = []
        self.session.rollback()
