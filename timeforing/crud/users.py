"""CRUD helpers for registered users and their self-service profile."""

from __future__ import annotations

import logging
import re
from datetime import datetime

from sqlalchemy import desc, func, select
from sqlalchemy.orm import Session

from ..core.context import ANONYMOUS, RequestContext
from ..core.errors import ConcurrentModification, DuplicateEmail, UserNotFound
from ..models.user import User, UserStatus

logger = logging.getLogger(__name__)


def normalize_mobile(mobil: str) -> str:
    """Return ``+47XXXXXXXX`` for any accepted Norwegian mobile notation."""

    compact = re.sub(r"\s+", "", mobil or "")
    if compact.startswith("+47"):
        compact = compact[3:]
    elif compact.startswith("0047"):
        compact = compact[4:]
    elif compact.startswith("47") and len(compact) == 10:
        compact = compact[2:]
    return f"+47{compact}"


def normalize_email(epost: str) -> str:
    return (epost or "").strip().lower()


def _active_users():
    return select(User).where(User.deleted.is_(False))


def find_by_email(db: Session, epost: str) -> User | None:
    stmt = _active_users().where(func.lower(User.epost) == normalize_email(epost))
    return db.execute(stmt).scalars().first()


def is_email_available(db: Session, epost: str) -> bool:
    return find_by_email(db, epost) is None


def get_user(db: Session, user_id: int) -> User | None:
    return db.execute(_active_users().where(User.id == user_id)).scalars().first()


def list_users(db: Session, limit: int = 100, offset: int = 0) -> list[User]:
    stmt = _active_users().order_by(desc(User.opprettet_dato), desc(User.id)).limit(limit).offset(offset)
    return list(db.execute(stmt).scalars().all())


def get_user_by_subject(db: Session, subject: str) -> User:
    # ``isdigit`` also accepts digits ``int`` cannot parse, such as "²".
    if not subject or not (subject.isascii() and subject.isdecimal()):
        raise UserNotFound()
    user = get_user(db, int(subject))
    if user is None:
        raise UserNotFound()
    return user


def register_user(db: Session, payload: dict, ctx: RequestContext = ANONYMOUS) -> User:
    epost = normalize_email(payload.get("epost") or "")
    logger.info("user.register", extra=ctx.log_extra(epost=epost))
    if find_by_email(db, epost) is not None:
        logger.info("user.register.duplicate", extra=ctx.log_extra(epost=epost))
        raise DuplicateEmail()
    now = datetime.utcnow()
    user = User(
        navn=(payload.get("navn") or "").strip(),
        mobil=normalize_mobile(payload.get("mobil") or ""),
        epost=epost,
        status=UserStatus.ACTIVE,
        deleted=False,
        opprettet_dato=now,
        sist_endret=now,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("user.registered", extra=ctx.log_extra(user_id=user.id))
    return user


def update_profile(db: Session, ctx: RequestContext, payload: dict) -> User:
    user = get_user_by_subject(db, ctx.subject)
    expected_version = payload.get("version")
    if expected_version is not None and expected_version != user.version:
        raise ConcurrentModification()

    new_email = payload.get("epost")
    if new_email is not None:
        new_email = normalize_email(new_email)
        if new_email != user.epost:
            owner = find_by_email(db, new_email)
            if owner is not None and owner.id != user.id:
                raise DuplicateEmail()
        user.epost = new_email
    if payload.get("navn") is not None:
        user.navn = payload["navn"].strip()
    if payload.get("mobil") is not None:
        user.mobil = normalize_mobile(payload["mobil"])
    user.sist_endret = datetime.utcnow()
    db.commit()
    db.refresh(user)
    logger.info("user.updated", extra=ctx.log_extra(user_id=user.id, version=user.version))
    return user


def delete_profile(db: Session, ctx: RequestContext) -> None:
    user = get_user_by_subject(db, ctx.subject)
    user.deleted = True
    user.sist_endret = datetime.utcnow()
    db.commit()
    logger.info("user.deleted", extra=ctx.log_extra(user_id=user.id))


__all__ = [
    "normalize_mobile",
    "normalize_email",
    "find_by_email",
    "is_email_available",
    "get_user",
    "list_users",
    "get_user_by_subject",
    "register_user",
    "update_profile",
    "delete_profile",
]
