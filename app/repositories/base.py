"""Repository base class used by all concrete repositories."""
import logging
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from ..errors import StoreError


def next_timestamp(previous: Optional[datetime]) -> datetime:
    """Return now, nudged past *previous* so the value always advances."""
    now = datetime.utcnow()
    if previous is not None and now <= previous:
        now = previous + timedelta(microseconds=1)
    return now


class BaseRepository:
    """Provides SQLAlchemy error translation for a single aggregate.

    Every public method takes the *db* session as its first argument.  Writes
    are flushed, never committed: the calling service owns the transaction
    (see :func:`database.atomic`) so that multi-step writes commit or roll
    back together.

    Any :class:`~sqlalchemy.exc.SQLAlchemyError` raised inside
    :meth:`_store_errors` is logged and re-raised as
    :class:`~app.errors.StoreError` with the original exception chained.
    """

    def __init__(self) -> None:
        self._log = logging.getLogger(f'boardtunes.repository.{type(self).__name__}')

    @contextmanager
    def _store_errors(self, action: str):
        """Translate database failures raised while performing *action*."""
        try:
            yield
        except SQLAlchemyError as exc:
            self._log.error("Failed to %s: %s", action, exc)
            raise StoreError(f"Failed to {action}: {exc}") from exc
