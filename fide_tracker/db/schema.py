"""Database tables / schema"""

from datetime import date, datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy import JSON, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Version of the serialized record layout stored in the backups table (see migration.py)
RECORD_SCHEMA_VERSION = 1


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    pass


class DBGameRecord(Base):
    __tablename__ = "games"
    id: Mapped[UUID] = mapped_column(primary_key=True)
    # entry order within a category (records are shown in the order they were entered, not by date)
    position: Mapped[int] = mapped_column(index=True)
    rating_category: Mapped[str] = mapped_column(index=True)
    month_key: Mapped[str]
    player_rating: Mapped[int]
    opponent_name: Mapped[str] = mapped_column(default="")
    opponent_rating: Mapped[int]
    k_factor: Mapped[float]
    outcome: Mapped[str]
    rating_change: Mapped[float]
    game_date: Mapped[date]
    created_at: Mapped[datetime] = mapped_column(default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(default=utc_now, onupdate=utc_now)


class DBBackup(Base):
    __tablename__ = "backups"
    __table_args__ = (UniqueConstraint("rating_category", "month_label"),)
    id: Mapped[UUID] = mapped_column(primary_key=True)
    rating_category: Mapped[str]
    month_label: Mapped[str]
    schema_version: Mapped[int] = mapped_column(default=RECORD_SCHEMA_VERSION)
    records: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    total_change: Mapped[float]
    game_count: Mapped[int]
    created_at: Mapped[datetime]
