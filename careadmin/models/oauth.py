"""
Transient OAuth values built for a single authorize or token exchange.
"""

from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field

from careadmin.core.config import AzureADSettings

OIDC_SCOPES = "openid profile offline_access"
DEFAULT_EXPIRES_IN = 3600
DEFAULT_TOKEN_TYPE = "Bearer"
SIGNIN_CALLBACK_PATH = "/api/signin-oidc"


def with_oidc_scopes(api_scope: str) -> str:
    """Append the OpenID Connect scopes so the outgoing scope is never empty."""
    if not api_scope:
        return OIDC_SCOPES
    return f"{api_scope} {OIDC_SCOPES}"


def default_redirect_uri(scheme: str, host: str) -> str:
    """Same-origin callback URL for the inbound request."""
    return f"{scheme}://{host}{SIGNIN_CALLBACK_PATH}"


class AuthorizeConfig(BaseModel):
    """Resolved inputs for one authorize URL."""

    tenant_id: str = ""
    client_id: str = ""
    scope: str = OIDC_SCOPES
    redirect_uri: str

    @classmethod
    def resolve(cls, settings: AzureADSettings, redirect_uri: str) -> "AuthorizeConfig":
        return cls(
            tenant_id=settings.tenant_id,
            client_id=settings.client_id,
            scope=with_oidc_scopes(settings.api_scope),
            redirect_uri=redirect_uri,
        )


class TokenGrant(BaseModel):
    """Token endpoint success payload as issued by the provider."""

    access_token: str
    refresh_token: Optional[str] = None
    expires_in: int = Field(DEFAULT_EXPIRES_IN, description="Seconds from issue time.")
    token_type: str = DEFAULT_TOKEN_TYPE

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "TokenGrant":
        """
        Build a grant from decoded JSON.

        ``access_token`` is mandatory and a missing key raises ``KeyError``.
        The other fields fall back to their defaults when absent or null.
        """
        if not isinstance(payload, Mapping):
            raise TypeError("Token response is not a JSON object")
        expires_in = payload.get("expires_in")
        return cls(
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token"),
            expires_in=DEFAULT_EXPIRES_IN if expires_in is None else int(expires_in),
            token_type=payload.get("token_type") or DEFAULT_TOKEN_TYPE,
        )


__all__ = [
    "AuthorizeConfig",
    "DEFAULT_EXPIRES_IN",
    "DEFAULT_TOKEN_TYPE",
    "OIDC_SCOPES",
    "SIGNIN_CALLBACK_PATH",
    "TokenGrant",
    "default_redirect_uri",
    "with_oidc_scopes",
]
