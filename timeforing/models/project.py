"""SQLAlchemy model for projects owned by a token subject."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.orm import relationship

from ..db.session import Base


class Project(Base):
    """Soft-deletable container that time entries are booked against."""

    __tablename__ = "projects"
    __allow_unmapped__ = True

    id = Column(Integer, primary_key=True, index=True)
    user_sub = Column(String(255), nullable=False, index=True)
    navn = Column(String(200), nullable=False)
    beskrivelse = Column(String(500), nullable=True)
    aktiv = Column(Boolean, nullable=False, default=True)
    opprettet_dato = Column(DateTime, nullable=False, default=datetime.utcnow)
    endret_dato = Column(DateTime, nullable=False, default=datetime.utcnow)

    time_entries = relationship("TimeEntry", back_populates="project")


__all__ = ["Project"]
