from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from ..core.context import RequestContext
from ..core.errors import UserNotFound
from ..crud.users import (
    delete_profile,
    get_user,
    get_user_by_subject,
    is_email_available,
    list_users,
    register_user,
    update_profile,
)
from ..db.session import get_db
from ..deps.auth import anonymous_context, require_admin, require_subject
from ..schemas.user import EmailAvailability, UserOut, UserRegister, UserUpdate

router = APIRouter(prefix="/api/users", tags=["users"])


def _user_to_schema(user) -> UserOut:
    return UserOut(
        id=str(user.id),
        navn=user.navn,
        mobil=user.mobil,
        epost=user.epost,
        created_at=user.opprettet_dato,
        updated_at=user.sist_endret,
        version=user.version,
    )


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED, summary="Registrer ny bruker")
def api_register_user(
    payload: UserRegister,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(anonymous_context),
):
    user = register_user(db, payload.model_dump(), ctx)
    return _user_to_schema(user)


@router.get("/check-email", response_model=EmailAvailability, summary="Sjekk om epost er ledig")
def api_check_email(email: str = Query(..., min_length=3), db: Session = Depends(get_db)):
    return EmailAvailability(available=is_email_available(db, email))


@router.get("/profile", response_model=UserOut, summary="Hent egen profil")
def api_get_profile(db: Session = Depends(get_db), ctx: RequestContext = Depends(require_subject)):
    return _user_to_schema(get_user_by_subject(db, ctx.subject))


@router.put("/profile", response_model=UserOut, summary="Oppdater egen profil")
def api_update_profile(
    payload: UserUpdate,
    db: Session = Depends(get_db),
    ctx: RequestContext = Depends(require_subject),
):
    user = update_profile(db, ctx, payload.model_dump(exclude_unset=True))
    return _user_to_schema(user)


@router.delete("/profile", status_code=status.HTTP_204_NO_CONTENT, summary="Slett egen konto")
def api_delete_profile(db: Session = Depends(get_db), ctx: RequestContext = Depends(require_subject)):
    delete_profile(db, ctx)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("", response_model=list[UserOut], summary="List brukere (admin)")
def api_list_users(
    limit: int = Query(20, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    _: RequestContext = Depends(require_admin),
):
    return [_user_to_schema(user) for user in list_users(db, limit=limit, offset=offset)]


@router.get("/{user_id}", response_model=UserOut, summary="Hent bruker (admin)")
def api_get_user(user_id: int, db: Session = Depends(get_db), _: RequestContext = Depends(require_admin)):
    user = get_user(db, user_id)
    if user is None:
        raise UserNotFound()
    return _user_to_schema(user)
