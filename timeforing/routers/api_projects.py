from __future__ import annotations

from typing import Literal

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ..core.context import RequestContext
from ..crud.projects import create_project, delete_project, get_project, list_projects, update_project
from ..db.session import get_db
from ..deps.auth import require_subject
from ..schemas.project import ProjectCreate, ProjectListResponse, ProjectOut, ProjectUpdate

router = APIRouter(prefix="/api/projects", tags=["projects"])


def _project_to_schema(project) -> ProjectOut:
    return ProjectOut(
        project_id=project.id,
        navn=project.navn,
        beskrivelse=project.beskrivelse,
        aktiv=project.aktiv,
        opprettet_dato=project.opprettet_dato,
        endret_dato=project.endret_dato,
    )


@router.post("", response_model=ProjectOut, status_code=status.HTTP_201_CREATED, summary="Opprett nytt prosjekt")
def api_create_project(
    payload: ProjectCreate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_subject),
):
    return _project_to_schema(create_project(db, ctx, payload.model_dump()))


@router.get("", response_model=ProjectListResponse, summary="Hent alle aktive prosjekter for innlogget bruker")
def api_list_projects(
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100, alias="pageSize"),
    sort: Literal["navn", "opprettetDato", "endretDato"] = Query("navn"),
    asc: bool = Query(True),
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_subject),
):
    projects, total = list_projects(db, ctx, page=page, page_size=page_size, sort=sort, ascending=asc)
    return ProjectListResponse(
        projects=[_project_to_schema(project) for project in projects],
        page=page,
        page_size=page_size,
        total=total,
    )


@router.get("/{project_id}", response_model=ProjectOut, summary="Hent detaljer for et prosjekt")
def api_get_project(project_id: int, db: Session = Depends(get_db), ctx: RequestContext = Depends(require_subject)):
    return _project_to_schema(get_project(db, ctx, project_id))


@router.put("/{project_id}", response_model=ProjectOut, summary="Oppdater prosjekt")
def api_update_project(
    project_id: int,
    payload: ProjectUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_subject),
):
    return _project_to_schema(update_project(db, ctx, project_id, payload.model_dump()))


@router.delete("/{project_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Soft delete av prosjekt")
def api_delete_project(project_id: int, db: Session = Depends(get_db), ctx: RequestContext = Depends(require_subject)):
    delete_project(db, ctx, project_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
