"""Shared service-layer helpers.

get_or_raise:   primary-key lookup that raises NotFoundError
unit_of_work:   run a block and commit it as one transaction, rolling back on any failure
"""
import logging
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError, OperationalError, SQLAlchemyError

from app.core.exceptions import NotFoundError, StorageError
from app.models import db

logger = logging.getLogger(__name__)


def get_or_raise(model, pk, label=None):
    """Fetch a model instance by primary key or raise NotFoundError.

    Usage::

        req = get_or_raise(OnboardingRequest, request_id)
    """
    label = label or model.__name__
    obj = db.session.get(model, pk) if pk else None
    if obj is None:
        raise NotFoundError(resource=label, resource_id=pk)
    return obj


# ── Transaction helper ───────────────────────────────────────────────────────

@contextmanager
def unit_of_work(operation):
    """Commit everything done inside the block, or nothing.

    Usage::

        with unit_of_work("transition_status"):
            transition(req, new_status, actor=actor)

    IntegrityError   → StorageError (duplicate / constraint violation)
    OperationalError → StorageError (connection / lock issues)
    SQLAlchemyError  → StorageError (unexpected)
    Other exceptions are re-raised unchanged after the rollback.
    """
    try:
        yield
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        logger.warning("Integrity error in %s: %s", operation, exc.orig)
        raise StorageError(operation, cause=exc) from exc
    except OperationalError as exc:
        db.session.rollback()
        logger.exception("Database operational error in %s", operation)
        raise StorageError(operation, cause=exc) from exc
    except SQLAlchemyError as exc:
        db.session.rollback()
        logger.exception("Unexpected database error in %s", operation)
        raise StorageError(operation, cause=exc) from exc
    except Exception:
        db.session.rollback()
        raise
