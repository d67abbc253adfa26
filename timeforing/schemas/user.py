"""Pydantic schemas for user registration and profile payloads."""

from __future__ import annotations

import re
from datetime import datetime
from typing import Optional

from pydantic import EmailStr, field_validator

from . import WireModel

MOBILE_PATTERN = re.compile(r"^(\+47|0047|47)?[4-9]\d{7}$")


def _check_navn(value: str) -> str:
    cleaned = value.strip()
    if not 2 <= len(cleaned) <= 100:
        raise ValueError("Navn må være mellom 2 og 100 tegn")
    return cleaned


def _check_mobil(value: str) -> str:
    compact = re.sub(r"\s+", "", value)
    if not MOBILE_PATTERN.match(compact):
        raise ValueError("Ugyldig norsk mobilnummer")
    return compact


class UserRegister(WireModel):
    navn: str
    mobil: str
    epost: EmailStr

    model_config = {
        "json_schema_extra": {
            "example": {"navn": "Ola Nordmann", "mobil": "+47 41234567", "epost": "ola.nordmann@example.com"}
        }
    }

    @field_validator("navn")
    @classmethod
    def check_navn(cls, value: str) -> str:
        return _check_navn(value)

    @field_validator("mobil")
    @classmethod
    def check_mobil(cls, value: str) -> str:
        return _check_mobil(value)


class UserUpdate(WireModel):
    navn: Optional[str] = None
    mobil: Optional[str] = None
    epost: Optional[EmailStr] = None
    version: Optional[int] = None

    @field_validator("navn")
    @classmethod
    def check_navn(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else _check_navn(value)

    @field_validator("mobil")
    @classmethod
    def check_mobil(cls, value: Optional[str]) -> Optional[str]:
        return None if value is None else _check_mobil(value)


class UserOut(WireModel):
    id: str
    navn: str
    mobil: str
    epost: str
    created_at: datetime
    updated_at: datetime
    version: int


class EmailAvailability(WireModel):
    available: bool
