"""ConsumedToken model: jti records for credentials already exchanged by refresh"""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String

from tokenguard.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


class ConsumedToken(Base):
    """Stores ids (jti claims) of credentials consumed by a successful refresh.

    The unique constraint on ``jti`` is what makes consumption single-use:
    a second insert for the same id fails with an IntegrityError.
    ``eligible_until`` is the end of the credential's refresh window; rows past
    it can no longer influence any refresh and are swept.
    """

    __tablename__ = "consumed_tokens"

    id = Column(Integer, primary_key=True, index=True)
    jti = Column(String(36), unique=True, nullable=False, index=True)
    consumed_at = Column(DateTime, default=_utcnow, nullable=False)
    eligible_until = Column(DateTime, nullable=False, index=True)  # naive UTC
