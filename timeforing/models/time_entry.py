"""SQLAlchemy model for hours booked on a project."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, Column, Date, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import relationship

from ..db.session import Base


class TimeEntry(Base):
    __tablename__ = "time_entries"
    __allow_unmapped__ = True
    __table_args__ = (
        CheckConstraint("timer > 0 AND timer <= 24", name="ck_time_entries_timer_range"),
        Index("ix_time_entries_owner_date", "user_sub", "dato"),
    )

    id = Column(Integer, primary_key=True, index=True)
    prosjekt_id = Column(Integer, ForeignKey("projects.id"), nullable=False, index=True)
    # Redundant with the project owner; every query filters on it.
    user_sub = Column(String(255), nullable=False)
    dato = Column(Date, nullable=False)
    timer = Column(Float, nullable=False)
    kommentar = Column(Text, nullable=True)
    opprettet_dato = Column(DateTime, nullable=False, default=datetime.utcnow)
    sist_endret = Column(DateTime, nullable=False, default=datetime.utcnow)
    version = Column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    project = relationship("Project", back_populates="time_entries")


__all__ = ["TimeEntry"]
