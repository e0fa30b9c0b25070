"""
tests/test_seen_domain_store.py

Seen-domain store tests for the in-memory and SQLAlchemy backends.

The SQLAlchemy backend runs against an in-memory SQLite database.

Coverage
--------
- Recency window checks
- Domain normalization and blank entries
- Repeat marks update last_seen_at and times_seen
- Zero window never matches
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine, select
from sqlalchemy.orm import Session

from db.models.seen_domain import SeenDomain
from leadgen.storage.base import SeenDomainStore
from leadgen.storage.memory import InMemorySeenDomainStore
from leadgen.storage.sqlalchemy_storage import SQLAlchemySeenDomainStore

NOW = datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def db_session() -> Iterator[Session]:
    engine = create_engine("sqlite://")
    SeenDomain.__table__.create(engine)
    with Session(engine) as session:
        yield session
    engine.dispose()


@pytest.fixture(params=["memory", "sqlalchemy"])
def store(request, db_session: Session) -> SeenDomainStore:
    if request.param == "memory":
        return InMemorySeenDomainStore()
    return SQLAlchemySeenDomainStore(session=db_session)


class TestSeenDomainStore:
    def test_unknown_domain_is_not_seen(self, store: SeenDomainStore) -> None:
        assert not store.was_seen_within("acme.com", timedelta(days=7), now=NOW)

    def test_seen_within_window(self, store: SeenDomainStore) -> None:
        store.mark_seen(["acme.com"], now=NOW - timedelta(days=2))
        assert store.was_seen_within("acme.com", timedelta(days=7), now=NOW)
        assert not store.was_seen_within("acme.com", timedelta(days=1), now=NOW)

    def test_domains_are_normalized(self, store: SeenDomainStore) -> None:
        written = store.mark_seen([" Acme.COM ", "", "   "], now=NOW)
        assert written == 1
        assert store.was_seen_within("acme.com", timedelta(hours=1), now=NOW)

    def test_zero_window_never_matches(self, store: SeenDomainStore) -> None:
        store.mark_seen(["acme.com"], now=NOW)
        assert not store.was_seen_within("acme.com", timedelta(0), now=NOW)

    def test_repeat_mark_refreshes_last_seen(self, store: SeenDomainStore) -> None:
        store.mark_seen(["acme.com"], now=NOW - timedelta(days=30))
        store.mark_seen(["acme.com"], now=NOW)
        assert store.was_seen_within("acme.com", timedelta(days=1), now=NOW)


class TestSQLAlchemyStore:
    def test_times_seen_and_first_seen(self, db_session: Session) -> None:
        store = SQLAlchemySeenDomainStore(session=db_session, batch_size=1)
        store.mark_seen(["acme.com", "beta.io"], now=NOW - timedelta(days=3))
        store.mark_seen(["acme.com"], now=NOW)

        rows = {row.domain: row for row in db_session.scalars(select(SeenDomain))}

        assert set(rows) == {"acme.com", "beta.io"}
        assert rows["acme.com"].times_seen == 2
        assert rows["beta.io"].times_seen == 1
        assert rows["acme.com"].first_seen_at.replace(tzinfo=timezone.utc) == NOW - timedelta(days=3)

    def test_empty_input_writes_nothing(self, db_session: Session) -> None:
        assert SQLAlchemySeenDomainStore(session=db_session).mark_seen([]) == 0
        assert db_session.scalars(select(SeenDomain)).all() == []
