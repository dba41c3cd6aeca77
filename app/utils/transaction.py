"""
Unit-of-work helper around a SQLAlchemy session.
"""
from contextlib import contextmanager
import logging

logger = logging.getLogger(__name__)


@contextmanager
def atomic(session):
    """
    Commit everything done inside the block, or roll all of it back.

    Usage:
        with atomic(db.session):
            record_movement(db.session, ...)
            post_stock_expense(db.session, ...)
    """
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
