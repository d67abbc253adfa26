from __future__ import annotations

from fastapi import Depends, Header, HTTPException, Request, status
from fastapi.security.utils import get_authorization_scheme_param

from ..core.context import RequestContext
from ..core.security import ADMIN_ROLE, decode_token
from ..middlewares import principal_ctx_var


def _unauthorized(detail: str = "Autentisering kreves") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _set_principal(request: Request, principal: str) -> None:
    principal_ctx_var.set(principal)
    request.state.principal = principal


async def require_subject(
    request: Request,
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> RequestContext:
    """Resolve the bearer token into the caller's ``RequestContext``."""

    if not authorization:
        raise _unauthorized()
    scheme, credentials = get_authorization_scheme_param(authorization)
    if scheme.lower() != "bearer" or not credentials:
        raise _unauthorized()
    try:
        payload = decode_token(credentials)
    except ValueError as exc:
        raise _unauthorized(str(exc)) from exc
    _set_principal(request, payload.sub)
    request.state.token_payload = payload
    return RequestContext(
        subject=payload.sub,
        correlation_id=getattr(request.state, "correlation_id", None),
        name=payload.name,
        email=payload.email,
        roles=tuple(payload.roles),
    )


async def require_admin(ctx: RequestContext = Depends(require_subject)) -> RequestContext:
    if not ctx.has_role(ADMIN_ROLE):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Mangler tilgang")
    return ctx


def anonymous_context(request: Request) -> RequestContext:
    return RequestContext(subject="anonymous", correlation_id=getattr(request.state, "correlation_id", None))
