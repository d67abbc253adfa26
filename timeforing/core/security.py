from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

from .config import settings

DEFAULT_ROLES = ("timeforingapp::USER",)
ADMIN_ROLE = "timeforingapp::ADMIN"


class TokenPayload(BaseModel):
    sub: str
    exp: datetime
    iat: datetime
    iss: str
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    roles: list[str] = []


def _now() -> datetime:
    return datetime.now(tz=timezone.utc)


def issue_mock_token(
    sub: str,
    *,
    name: str,
    email: str,
    phone: str | None = None,
    roles: list[str] | tuple[str, ...] = DEFAULT_ROLES,
    valid_hours: int | None = None,
) -> str:
    """Sign a development token shaped like the identity provider's access tokens."""

    now = _now()
    hours = settings.JWT_TTL_HOURS if valid_hours is None else valid_hours
    payload: dict[str, Any] = {
        "sub": sub,
        "iss": settings.JWT_ISSUER,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(hours=hours)).timestamp()),
        "name": name,
        "email": email,
        "roles": list(roles),
    }
    if phone is not None:
        payload["phone"] = phone
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str) -> TokenPayload:
    try:
        decoded = jwt.decode(
            token,
            settings.JWT_SECRET,
            algorithms=[settings.JWT_ALGORITHM],
            issuer=settings.JWT_ISSUER,
        )
    except JWTError as exc:
        raise ValueError("Ugyldig token") from exc
    try:
        payload = TokenPayload.model_validate(decoded)
    except ValidationError as exc:
        raise ValueError("Ugyldig token-innhold") from exc
    if not payload.sub.strip():
        raise ValueError("Token mangler subject")
    return payload
