"""Transaction scope shared by every mutating forum operation."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from forum_engine.core.errors import ConflictError

logger = logging.getLogger(__name__)

_DEPTH_KEY = "forum_engine.atomic_depth"


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """Run the enclosed block as one all-or-nothing unit.

    The outermost scope flushes and commits on success and rolls back on any
    exception, including cancellation. Nested scopes join the outer one.
    Optimistic version mismatches and unique-key races surface as
    ``ConflictError`` so callers can retry the whole command.

    Args:
        db: Session the operation runs in.

    Yields:
        The same session, for convenience.

    Raises:
        ConflictError: If a concurrent writer updated one of the touched rows.
    """
    depth = db.info.get(_DEPTH_KEY, 0)
    db.info[_DEPTH_KEY] = depth + 1
    try:
        yield db
        if depth == 0:
            db.commit()
    except (StaleDataError, IntegrityError) as exc:
        if depth > 0:
            raise
        db.rollback()
        logger.warning("Concurrent update detected, transaction rolled back: %s", exc)
        raise ConflictError() from exc
    except BaseException:
        if depth == 0:
            db.rollback()
        raise
    finally:
        db.info[_DEPTH_KEY] = depth
