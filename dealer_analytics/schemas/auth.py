"""
dealer_analytics/schemas/auth.py

Wire schemas for the login endpoint.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class LoginRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    """
    Bearer credential issued by POST /api/auth/login.
    """

    model_config = ConfigDict(frozen=True, extra="ignore", str_strip_whitespace=True)

    access_token: str = Field(..., min_length=1)
    token_type: str = "bearer"
    username: str
