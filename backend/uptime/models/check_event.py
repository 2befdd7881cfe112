"""CheckEvent model - append-only log of completed checks."""
from sqlalchemy import Column, Integer, Float, String, DateTime, Index

from ..database import Base


class CheckEventRow(Base):
    """One completed probe. Rows are inserted and never updated."""

    __tablename__ = "check_events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    target_id = Column(String, nullable=False)
    timestamp = Column(DateTime, nullable=False)  # Naive UTC, start of the attempt
    latency_ms = Column(Float, nullable=False)
    outcome = Column(String, nullable=False)  # healthy, degraded, unreachable
    error = Column(String, nullable=True)

    __table_args__ = (
        Index("idx_check_events_target_ts", "target_id", "timestamp"),
    )
