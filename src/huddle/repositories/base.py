"""Transaction helpers shared by repositories and services."""
from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from huddle.core.errors import Unavailable

logger = logging.getLogger(__name__)


@contextmanager
def transaction(session: Session) -> Iterator[Session]:
    """Commit on success, roll back on any failure.

    Integrity violations are re-raised unchanged so callers can map them to a
    domain outcome; every other database failure surfaces as ``Unavailable``.
    """
    try:
        yield session
        session.commit()
    except IntegrityError:
        session.rollback()
        raise
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error("Database write failed: %s", exc, exc_info=True)
        raise Unavailable("Storage is temporarily unavailable") from exc
    except Exception:
        session.rollback()
        raise
