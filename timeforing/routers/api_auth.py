from __future__ import annotations

import logging

from fastapi import APIRouter

from ..core.security import issue_mock_token
from ..schemas.auth import MockTokenRequest, MockTokenResponse

# Mounted only when MOCK_AUTH_ENABLED is set.
router = APIRouter(prefix="/api/mock-auth", tags=["mock-auth"])
logger = logging.getLogger(__name__)


@router.post("/token", response_model=MockTokenResponse, summary="Hent mock-JWT for lokal utvikling")
async def api_mock_token(payload: MockTokenRequest):
    token = issue_mock_token(
        payload.sub,
        name=payload.name,
        email=payload.email,
        phone=payload.phone,
        roles=payload.roles,
    )
    logger.info("mock_auth.token_issued", extra={"extra_data": {"principal": payload.sub}})
    return MockTokenResponse(token=token)
