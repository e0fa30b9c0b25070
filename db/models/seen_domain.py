"""
db/models/seen_domain.py

Domains surfaced by discovery runs, used to skip recently-seen leads.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class SeenDomain(Base, TimestampMixin):
    __tablename__ = "seen_domains"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    domain: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    first_seen_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    last_seen_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    times_seen: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    __table_args__ = (Index("ix_seen_domains_last_seen_at", "last_seen_at"),)

    def __repr__(self) -> str:
        return f"<SeenDomain domain={self.domain!r} times_seen={self.times_seen}>"
