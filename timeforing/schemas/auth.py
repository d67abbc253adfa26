from __future__ import annotations

from pydantic import BaseModel, Field

from ..core.security import DEFAULT_ROLES


class MockTokenRequest(BaseModel):
    sub: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=1)
    phone: str | None = None
    roles: list[str] = Field(default_factory=lambda: list(DEFAULT_ROLES))

    model_config = {
        "json_schema_extra": {
            "example": {"sub": "1", "name": "Ola Nordmann", "email": "ola.nordmann@example.com"}
        }
    }


class MockTokenResponse(BaseModel):
    token: str

    model_config = {
        "json_schema_extra": {"example": {"token": "<jwt>"}}
    }
