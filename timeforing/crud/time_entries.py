"""CRUD helpers for time entries; every write passes the business validator first."""

from __future__ import annotations

import logging
from datetime import date, datetime

from sqlalchemy import desc, select
from sqlalchemy.orm import Session

from ..core.context import RequestContext
from ..core.errors import ConcurrentModification, TimeEntryNotFound
from ..models.time_entry import TimeEntry
from ..services.validation import TimeEntryCandidate, TimeEntryValidator
from .projects import find_active_project

logger = logging.getLogger(__name__)


def list_time_entries(
    db: Session,
    owner: str,
    date_from: date | None = None,
    date_to: date | None = None,
    project_id: int | None = None,
) -> list[TimeEntry]:
    stmt = select(TimeEntry).where(TimeEntry.user_sub == owner)
    if date_from is not None:
        stmt = stmt.where(TimeEntry.dato >= date_from)
    if date_to is not None:
        stmt = stmt.where(TimeEntry.dato <= date_to)
    if project_id is not None:
        stmt = stmt.where(TimeEntry.prosjekt_id == project_id)
    stmt = stmt.order_by(desc(TimeEntry.dato), desc(TimeEntry.id))
    return list(db.execute(stmt).scalars().all())


def entries_for_day(db: Session, owner: str, dato: date) -> list[TimeEntry]:
    return list_time_entries(db, owner, dato, dato)


def build_validator(db: Session) -> TimeEntryValidator:
    """Bind the validator's lookups to the request's session."""

    return TimeEntryValidator(
        find_active_project=lambda project_id, owner: find_active_project(db, project_id, owner),
        entries_for_day=lambda owner, dato: entries_for_day(db, owner, dato),
    )


def get_time_entry(db: Session, ctx: RequestContext, entry_id: int) -> TimeEntry:
    stmt = select(TimeEntry).where(TimeEntry.id == entry_id, TimeEntry.user_sub == ctx.subject)
    entry = db.execute(stmt).scalars().first()
    if entry is None:
        raise TimeEntryNotFound()
    return entry


def create_time_entry(db: Session, ctx: RequestContext, payload: dict) -> TimeEntry:
    candidate = TimeEntryCandidate(
        owner=ctx.subject,
        project_id=payload["prosjekt_id"],
        dato=payload["dato"],
        timer=float(payload["timer"]),
    )
    logger.info(
        "time_entry.create",
        extra=ctx.log_extra(project_id=candidate.project_id, dato=candidate.dato.isoformat()),
    )
    build_validator(db).validate(candidate)
    now = datetime.utcnow()
    entry = TimeEntry(
        prosjekt_id=candidate.project_id,
        user_sub=candidate.owner,
        dato=candidate.dato,
        timer=candidate.timer,
        kommentar=payload.get("kommentar"),
        opprettet_dato=now,
        sist_endret=now,
    )
    db.add(entry)
    db.commit()
    db.refresh(entry)
    logger.info("time_entry.created", extra=ctx.log_extra(time_entry_id=entry.id))
    return entry


def update_time_entry(db: Session, ctx: RequestContext, entry_id: int, payload: dict) -> TimeEntry:
    entry = get_time_entry(db, ctx, entry_id)
    expected_version = payload.get("version")
    if expected_version is not None and expected_version != entry.version:
        raise ConcurrentModification()

    candidate = TimeEntryCandidate(
        owner=ctx.subject,
        project_id=payload.get("prosjekt_id", entry.prosjekt_id),
        dato=payload.get("dato", entry.dato),
        timer=float(payload.get("timer", entry.timer)),
        entry_id=entry.id,
    )
    logger.info("time_entry.update", extra=ctx.log_extra(time_entry_id=entry.id))
    build_validator(db).validate(candidate, excluding_entry_id=entry.id)

    entry.prosjekt_id = candidate.project_id
    entry.dato = candidate.dato
    entry.timer = candidate.timer
    if "kommentar" in payload:
        entry.kommentar = payload.get("kommentar")
    entry.sist_endret = datetime.utcnow()
    db.commit()
    db.refresh(entry)
    logger.info("time_entry.updated", extra=ctx.log_extra(time_entry_id=entry.id, version=entry.version))
    return entry


def delete_time_entry(db: Session, ctx: RequestContext, entry_id: int) -> None:
    entry = get_time_entry(db, ctx, entry_id)
    db.delete(entry)
    db.commit()
    logger.info("time_entry.deleted", extra=ctx.log_extra(time_entry_id=entry_id))


__all__ = [
    "list_time_entries",
    "entries_for_day",
    "build_validator",
    "get_time_entry",
    "create_time_entry",
    "update_time_entry",
    "delete_time_entry",
]
