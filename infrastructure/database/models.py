from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Boolean, DateTime, JSON, Index
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow():
    return datetime.now(timezone.utc)


class WalkRecord(Base):
    __tablename__ = "walks"

    id = Column(String, primary_key=True)
    date = Column(DateTime(timezone=True), nullable=False)
    active = Column(Boolean, nullable=False, default=True)

    duration_minutes = Column(Integer, nullable=False, default=60)
    number_of_rotations = Column(Integer, nullable=False, default=3)
    current_rotation = Column(Integer, nullable=False, default=0)
    last_rotation_time = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    checked_in_users = Column(JSON, nullable=False, default=list)  # list[str]
    pairs = Column(JSON, nullable=False, default=list)             # list[dict] в формате Pair.to_dict()

    location_name = Column(String, nullable=True)
    organizer = Column(String, nullable=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    __table_args__ = (
        Index("idx_walks_active_date", "active", "date"),
    )

    def __repr__(self):
        return (f"<WalkRecord id={self.id}, active={self.active}, "
                f"rotation={self.current_rotation}/{self.number_of_rotations}>")
