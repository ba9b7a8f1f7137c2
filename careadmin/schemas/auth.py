"""Schemas related to OAuth flows."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

SIGNIN_SUCCESS_MESSAGE = (
    "Token exchange successful. Use the access_token in "
    "Authorization: Bearer <token> header for API calls."
)


class RefreshTokenRequest(BaseModel):
    """Body accepted by the refresh endpoint."""

    refresh_token: Optional[str] = Field(
        None, description="Opaque refresh token previously issued by Azure AD."
    )


class RefreshTokenResponse(BaseModel):
    """Normalized token refresh result."""

    access_token: str
    refresh_token: str = Field(
        ..., description="Rotated token from the provider, or the caller's own token."
    )
    expires_in: int = Field(..., description="Seconds until expiry as issued upstream.")
    token_type: str


class SigninCallbackResponse(RefreshTokenResponse):
    """Tokens returned to the browser after the sign-in redirect."""

    message: str = SIGNIN_SUCCESS_MESSAGE


class OAuthErrorResponse(BaseModel):
    """Error envelope shared by the proxied OAuth endpoints."""

    error: str
    details: Optional[str] = Field(None, description="Raw upstream error body.")
    message: Optional[str] = Field(None, description="Failure description.")
    error_description: Optional[str] = None


__all__ = [
    "OAuthErrorResponse",
    "RefreshTokenRequest",
    "RefreshTokenResponse",
    "SIGNIN_SUCCESS_MESSAGE",
    "SigninCallbackResponse",
]
