import logging
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError

from services.errors import StorageError

logger = logging.getLogger(__name__)


@contextmanager
def storage_errors(session, action: str, **context):
    """
    Turn driver/ORM failures into StorageError.

    The session is rolled back so the unit of work never half-applies, and the
    failure is logged with its context; the caller only sees a generic error.
    """
    try:
        yield
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("storage failure during %s %s: %s", action, context, exc)
        raise StorageError(f"{action} failed") from exc


def paginate(query, page: int, limit: int):
    total = query.order_by(None).count()
    rows = query.offset((page - 1) * limit).limit(limit).all()
    return rows, total


@contextmanager
def transaction(session, action: str, **context):
    """
    One unit of work: commit on success, roll back on any failure.

    Typed errors pass through untouched; driver failures anywhere in the unit,
    the commit included, become StorageError via ``storage_errors``.
    """
    try:
        with storage_errors(session, action, **context):
            yield
            session.commit()
    except Exception:
        session.rollback()
        raise
