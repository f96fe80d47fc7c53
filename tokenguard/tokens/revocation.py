"""Bookkeeping of credentials already consumed by a refresh exchange.

A record ``(credential_id, eligible_until)`` only has to live until
``eligible_until``: after that no refresh for the credential can succeed
anyway, so :meth:`RevocationStore.sweep` may drop it. Records must never be
dropped earlier, or the credential becomes refreshable again.
"""
import threading
from datetime import datetime, timezone
from typing import Dict, Protocol

from sqlalchemy import text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from tokenguard.database import Base
from tokenguard.models.consumed_token import ConsumedToken


class RevocationStore(Protocol):
    """Single-use registry for credential ids."""

    def mark_consumed(self, credential_id: str, eligible_until: datetime) -> bool:
        """Atomically mark ``credential_id`` as consumed.

        Returns True only for the one call that performed the transition;
        marking an already-consumed id again changes nothing and returns False.
        """

    def is_consumed(self, credential_id: str) -> bool: ...

    def sweep(self, now: datetime) -> int:
        """Remove every record with ``eligible_until <= now``; return how many."""

    def ping(self) -> None:
        """Raise if the backing storage is unreachable."""


class InMemoryRevocationStore:
    """Process-local store. Single-use guarantees do not survive a restart."""

    def __init__(self) -> None:
        self._records: Dict[str, datetime] = {}
        self._lock = threading.Lock()

    def mark_consumed(self, credential_id: str, eligible_until: datetime) -> bool:
        with self._lock:
            if credential_id in self._records:
                return False
            self._records[credential_id] = eligible_until
            return True

    def is_consumed(self, credential_id: str) -> bool:
        with self._lock:
            return credential_id in self._records

    def sweep(self, now: datetime) -> int:
        with self._lock:
            stale = [jti for jti, until in self._records.items() if until <= now]
            for jti in stale:
                del self._records[jti]
            return len(stale)

    def ping(self) -> None:
        return None

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class SqlRevocationStore:
    """SQLAlchemy-backed store (``consumed_tokens`` table).

    The unique index on ``jti`` is the compare-and-swap: concurrent inserts
    for the same id race inside the database and exactly one commits.
    """

    def __init__(self, session_factory: sessionmaker, create_tables: bool = True) -> None:
        self._session_factory = session_factory
        if create_tables:
            with session_factory() as db:
                Base.metadata.create_all(bind=db.get_bind(), tables=[ConsumedToken.__table__])

    def mark_consumed(self, credential_id: str, eligible_until: datetime) -> bool:
        with self._session_factory() as db:
            db.add(ConsumedToken(jti=credential_id, eligible_until=_naive_utc(eligible_until)))
            try:
                db.commit()
            except IntegrityError:
                db.rollback()
                return False
        return True

    def is_consumed(self, credential_id: str) -> bool:
        with self._session_factory() as db:
            row = db.query(ConsumedToken.id).filter(ConsumedToken.jti == credential_id).first()
            return row is not None

    def sweep(self, now: datetime) -> int:
        with self._session_factory() as db:
            removed = (
                db.query(ConsumedToken)
                .filter(ConsumedToken.eligible_until <= _naive_utc(now))
                .delete(synchronize_session=False)
            )
            db.commit()
            return removed

    def ping(self) -> None:
        with self._session_factory() as db:
            db.execute(text("SELECT 1"))


def _naive_utc(when: datetime) -> datetime:
    # DateTime columns hold naive UTC
    if when.tzinfo is None:
        return when
    return when.astimezone(timezone.utc).replace(tzinfo=None)
