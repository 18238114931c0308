import datetime as dt

from sqlalchemy import Date, DateTime, Float, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.db.base import Base


class MetricRecord(Base):
    """One synced sheet row: a team/adser's counters for a single day."""

    __tablename__ = "sync_data"
    __table_args__ = (Index("ix_sync_data_team_date", "team", "date"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    team: Mapped[str] = mapped_column(String(255), nullable=False)
    adser: Mapped[str | None] = mapped_column(String(255), nullable=True)
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)

    message: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    plan_message: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    spend: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    plan_spend: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    net_messages: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    lost_messages: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    deposit: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    turnover: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    turnover_adser: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    silent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    duplicate: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    has_user: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    spam: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    blocked: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    under18: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    over50: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    foreign: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: dt.datetime.now(dt.timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: dt.datetime.now(dt.timezone.utc),
        onupdate=lambda: dt.datetime.now(dt.timezone.utc),
        nullable=False,
    )
