"""Pydantic schemas for time-entry payloads."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional

from pydantic import Field

from . import WireModel


class TimeEntryIn(WireModel):
    prosjekt_id: int
    dato: date
    timer: float
    kommentar: Optional[str] = Field(default=None, max_length=1000)
    # Only honoured on update: the version the client last saw.
    version: Optional[int] = None

    model_config = {
        "json_schema_extra": {
            "example": {"prosjektId": 1, "dato": "2024-05-02", "timer": 7.5, "kommentar": "Workshop"}
        }
    }


class TimeEntryOut(WireModel):
    time_entry_id: int
    prosjekt_id: int
    dato: date
    timer: float
    kommentar: Optional[str] = None
    opprettet_dato: datetime
    sist_endret: datetime
    version: int
