"""Pydantic schemas that describe project payloads for the API."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import field_validator

from . import WireModel


class ProjectBase(WireModel):
    navn: str
    beskrivelse: Optional[str] = None

    @field_validator("navn")
    @classmethod
    def check_navn(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Prosjektnavn er påkrevd")
        if len(cleaned) < 2:
            raise ValueError("Prosjektnavn må være minst 2 tegn")
        return cleaned

    @field_validator("beskrivelse")
    @classmethod
    def check_beskrivelse(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        cleaned = value.strip()
        if len(cleaned) > 500:
            raise ValueError("Beskrivelse kan være maks 500 tegn")
        return cleaned or None


class ProjectCreate(ProjectBase):
    pass


class ProjectUpdate(ProjectBase):
    pass


class ProjectOut(WireModel):
    project_id: int
    navn: str
    beskrivelse: Optional[str] = None
    aktiv: bool
    opprettet_dato: datetime
    endret_dato: datetime


class ProjectListResponse(WireModel):
    projects: list[ProjectOut]
    page: int
    page_size: int
    total: int
