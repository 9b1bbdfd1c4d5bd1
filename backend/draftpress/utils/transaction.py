from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, OperationalError

from draftpress.domain.exceptions import ConstraintViolation, StorageUnavailable
from draftpress.extensions import db


@contextmanager
def transactional():
    """Context manager for database transactions."""
    try:
        yield
        db.session.commit()
    except OperationalError as exc:
        db.session.rollback()
        raise StorageUnavailable(f"Database unavailable: {exc.orig}") from exc
    except IntegrityError as exc:
        db.session.rollback()
        raise ConstraintViolation(f"Integrity constraint failed: {exc.orig}") from exc
    except Exception:
        db.session.rollback()
        raise
