"""
SQLAlchemy-backed seen-domain store.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from db.models.seen_domain import SeenDomain
from leadgen.storage.base import SeenDomainStore


def _as_utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on round-trip; stored values are always UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SQLAlchemySeenDomainStore(SeenDomainStore):
    """
    Persist seen domains in the `seen_domains` table through a DB session.
    """

    def __init__(self, *, session: Session, batch_size: int = 500) -> None:
        self._session = session
        self._batch_size = max(1, batch_size)

    def was_seen_within(self, domain: str, window: timedelta, now: datetime | None = None) -> bool:
        key = domain.strip().lower()
        if not key or window <= timedelta(0):
            return False
        current = _as_utc(now or datetime.now(timezone.utc))
        row = self._session.scalar(select(SeenDomain).where(SeenDomain.domain == key))
        if row is None:
            return False
        return current - _as_utc(row.last_seen_at) <= window

    def mark_seen(self, domains: Iterable[str], now: datetime | None = None) -> int:
        current = _as_utc(now or datetime.now(timezone.utc))
        keys = sorted({domain.strip().lower() for domain in domains if domain.strip()})
        if not keys:
            return 0

        written = 0
        try:
            for start in range(0, len(keys), self._batch_size):
                chunk = keys[start : start + self._batch_size]
                existing = {
                    row.domain: row
                    for row in self._session.scalars(select(SeenDomain).where(SeenDomain.domain.in_(chunk)))
                }
                for key in chunk:
                    row = existing.get(key)
                    if row is None:
                        self._session.add(
                            SeenDomain(domain=key, first_seen_at=current, last_seen_at=current, times_seen=1)
                        )
                    else:
                        row.last_seen_at = current
                        row.times_seen = (row.times_seen or 0) + 1
                    written += 1
            self._session.commit()
            return written
        except SQLAlchemyError:
            self._session.rollback()
            raise
