"""CRUD helpers for projects, always scoped to the owning subject."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import asc, desc, func, select
from sqlalchemy.orm import Session

from ..core.context import RequestContext
from ..core.errors import ProjectHasTimeEntries, ProjectNotFound
from ..models.project import Project
from ..models.time_entry import TimeEntry

logger = logging.getLogger(__name__)

SORT_COLUMNS = {
    "navn": Project.navn,
    "opprettetDato": Project.opprettet_dato,
    "endretDato": Project.endret_dato,
}


def find_active_project(db: Session, project_id: int, owner: str) -> Project | None:
    stmt = select(Project).where(
        Project.id == project_id,
        Project.user_sub == owner,
        Project.aktiv.is_(True),
    )
    return db.execute(stmt).scalars().first()


def get_project(db: Session, ctx: RequestContext, project_id: int) -> Project:
    project = find_active_project(db, project_id, ctx.subject)
    if project is None:
        raise ProjectNotFound()
    return project


def list_projects(
    db: Session,
    ctx: RequestContext,
    page: int = 1,
    page_size: int = 20,
    sort: str = "navn",
    ascending: bool = True,
) -> tuple[list[Project], int]:
    column = SORT_COLUMNS.get(sort, Project.navn)
    order = asc(column) if ascending else desc(column)
    base = select(Project).where(Project.user_sub == ctx.subject, Project.aktiv.is_(True))
    stmt = base.order_by(order, asc(Project.id)).limit(page_size).offset((page - 1) * page_size)
    projects = list(db.execute(stmt).scalars().all())
    total = db.execute(
        select(func.count()).select_from(Project).where(Project.user_sub == ctx.subject, Project.aktiv.is_(True))
    ).scalar_one()
    logger.info("project.list", extra=ctx.log_extra(page=page, page_size=page_size, total=total))
    return projects, total


def create_project(db: Session, ctx: RequestContext, payload: dict) -> Project:
    navn = (payload.get("navn") or "").strip()
    if not navn:
        raise ValueError("navn is required")
    now = datetime.utcnow()
    project = Project(
        user_sub=ctx.subject,
        navn=navn,
        beskrivelse=(payload.get("beskrivelse") or "").strip() or None,
        aktiv=True,
        opprettet_dato=now,
        endret_dato=now,
    )
    db.add(project)
    db.commit()
    db.refresh(project)
    logger.info("project.created", extra=ctx.log_extra(project_id=project.id))
    return project


def update_project(db: Session, ctx: RequestContext, project_id: int, payload: dict) -> Project:
    project = get_project(db, ctx, project_id)
    if "navn" in payload:
        navn = (payload.get("navn") or "").strip()
        if not navn:
            raise ValueError("navn is required")
        project.navn = navn
    if "beskrivelse" in payload:
        project.beskrivelse = (payload.get("beskrivelse") or "").strip() or None
    project.endret_dato = datetime.utcnow()
    db.commit()
    db.refresh(project)
    logger.info("project.updated", extra=ctx.log_extra(project_id=project.id))
    return project


def has_time_entries(db: Session, project_id: int) -> bool:
    count = db.execute(
        select(func.count()).select_from(TimeEntry).where(TimeEntry.prosjekt_id == project_id)
    ).scalar_one()
    return count > 0


def delete_project(db: Session, ctx: RequestContext, project_id: int) -> None:
    """Soft delete; refused while any time entry still references the project."""

    project = get_project(db, ctx, project_id)
    if has_time_entries(db, project.id):
        logger.info("project.delete.refused", extra=ctx.log_extra(project_id=project.id))
        raise ProjectHasTimeEntries()
    project.aktiv = False
    project.endret_dato = datetime.utcnow()
    db.commit()
    logger.info("project.deleted", extra=ctx.log_extra(project_id=project.id))


__all__ = [
    "SORT_COLUMNS",
    "find_active_project",
    "get_project",
    "list_projects",
    "create_project",
    "update_project",
    "has_time_entries",
    "delete_project",
]
