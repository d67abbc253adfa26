from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ..core.context import RequestContext
from ..crud.time_entries import (
    create_time_entry,
    delete_time_entry,
    get_time_entry,
    list_time_entries,
    update_time_entry,
)
from ..db.session import get_db
from ..deps.auth import require_subject
from ..schemas.time_entry import TimeEntryIn, TimeEntryOut

router = APIRouter(prefix="/api/time-entries", tags=["time-entries"])


def _entry_to_schema(entry) -> TimeEntryOut:
    return TimeEntryOut(
        time_entry_id=entry.id,
        prosjekt_id=entry.prosjekt_id,
        dato=entry.dato,
        timer=entry.timer,
        kommentar=entry.kommentar,
        opprettet_dato=entry.opprettet_dato,
        sist_endret=entry.sist_endret,
        version=entry.version,
    )


@router.post("", response_model=TimeEntryOut, status_code=status.HTTP_201_CREATED, summary="Registrer tid på prosjekt")
def api_create_time_entry(
    payload: TimeEntryIn,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_subject),
):
    return _entry_to_schema(create_time_entry(db, ctx, payload.model_dump()))


@router.get("", response_model=list[TimeEntryOut], summary="Hent timeføringer for periode")
def api_list_time_entries(
    date_from: date | None = Query(None, alias="from"),
    date_to: date | None = Query(None, alias="to"),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_subject),
):
    entries = list_time_entries(db, ctx.subject, date_from, date_to)
    return [_entry_to_schema(entry) for entry in entries]


@router.get("/{entry_id}", response_model=TimeEntryOut, summary="Hent spesifikk timeføring")
def api_get_time_entry(entry_id: int, db: Session = Depends(get_db), ctx: RequestContext = Depends(require_subject)):
    return _entry_to_schema(get_time_entry(db, ctx, entry_id))


@router.put("/{entry_id}", response_model=TimeEntryOut, summary="Oppdater timeføring")
def api_update_time_entry(
    entry_id: int,
    payload: TimeEntryIn,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_subject),
):
    return _entry_to_schema(update_time_entry(db, ctx, entry_id, payload.model_dump()))


@router.delete("/{entry_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Slett timeføring")
def api_delete_time_entry(entry_id: int, db: Session = Depends(get_db), ctx: RequestContext = Depends(require_subject)):
    delete_time_entry(db, ctx, entry_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
