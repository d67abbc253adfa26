"""SQLAlchemy model for registered users (Norwegian column names)."""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, Enum, Integer, String

from ..db.session import Base


class UserStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    PENDING = "PENDING"
    SUSPENDED = "SUSPENDED"


class User(Base):
    __tablename__ = "users"
    __allow_unmapped__ = True

    id = Column(Integer, primary_key=True, index=True)
    navn = Column(String(100), nullable=False)
    mobil = Column(String(16), nullable=False)
    epost = Column(String(255), nullable=False, index=True)
    status = Column(Enum(UserStatus, native_enum=False, length=16), nullable=False, default=UserStatus.ACTIVE)
    deleted = Column(Boolean, nullable=False, default=False)
    opprettet_dato = Column(DateTime, nullable=False, default=datetime.utcnow)
    sist_endret = Column(DateTime, nullable=False, default=datetime.utcnow)
    version = Column(Integer, nullable=False)

    # SQLAlchemy bumps ``version`` on every UPDATE and raises StaleDataError on mismatch.
    __mapper_args__ = {"version_id_col": version}

    @property
    def subject(self) -> str:
        return str(self.id)


__all__ = ["User", "UserStatus"]
