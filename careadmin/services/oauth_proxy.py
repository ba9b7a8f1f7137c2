"""
Pass-through OAuth2 Authorization Code flow against Azure AD.

The service never stores tokens. Each call resolves configuration, performs at
most one token endpoint round-trip and hands the normalized result back to the
route. Tokens and the client secret never reach the logger.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from careadmin.clients.azure_auth import AzureADOAuthClient, OAuthInputError
from careadmin.core.config import AzureADSettings
from careadmin.models.oauth import AuthorizeConfig
from careadmin.schemas.auth import RefreshTokenResponse, SigninCallbackResponse

REFRESH_TOKEN_REQUIRED = "refresh_token is required"
AUTHORIZATION_CODE_MISSING = "No authorization code received from Azure AD"


class OAuthProviderError(OAuthInputError):
    """The provider redirected back with ``error`` instead of a code."""

    def __init__(self, error: str, description: str) -> None:
        super().__init__(f"Azure AD returned an error. {error}: {description}")
        self.error = error
        self.description = description


class OAuthProxyService:
    """Authorize URL construction, sign-in code exchange and token refresh."""

    def __init__(
        self,
        oauth_client: AzureADOAuthClient,
        settings: AzureADSettings,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._client = oauth_client
        self._settings = settings
        self._logger = logger or logging.getLogger(__name__)

    def authorization_url(
        self, redirect_uri: str, request_fields: Mapping[str, Any]
    ) -> str:
        """
        Build the authorize URL and record one diagnostic entry for it.

        ``request_fields`` carries request metadata (host, path, method, remote
        address, user agent, query string). Only that metadata and the resolved
        tenant, client id and scope are logged.
        """
        config = AuthorizeConfig.resolve(self._settings, redirect_uri)
        fields = dict(request_fields)
        fields.update(
            tenant_id=config.tenant_id,
            client_id=config.client_id,
            scope=config.scope,
            redirect_uri=config.redirect_uri,
        )
        self._logger.info(
            "Authorize URL requested host=%s path=%s tenant=%s client_id=%s",
            fields.get("host"),
            fields.get("path"),
            config.tenant_id,
            config.client_id,
            extra={"authorize": fields},
        )
        return self._client.build_authorization_url(config)

    async def refresh(self, refresh_token: Optional[str]) -> RefreshTokenResponse:
        """Exchange ``refresh_token``; the caller's token is echoed when not rotated."""
        if not refresh_token:
            raise OAuthInputError(REFRESH_TOKEN_REQUIRED)

        grant = await self._client.refresh_access_token(refresh_token)
        self._logger.info(
            "Access token refreshed (rotated=%s, expires_in=%s)",
            grant.refresh_token is not None,
            grant.expires_in,
        )
        return RefreshTokenResponse(
            access_token=grant.access_token,
            refresh_token=(
                grant.refresh_token if grant.refresh_token is not None else refresh_token
            ),
            expires_in=grant.expires_in,
            token_type=grant.token_type,
        )

    async def complete_signin(
        self,
        *,
        code: Optional[str],
        redirect_uri: str,
        error: Optional[str] = None,
        error_description: Optional[str] = None,
    ) -> SigninCallbackResponse:
        """Handle the provider redirect: surface its error or redeem the code."""
        if error:
            raise OAuthProviderError(error, error_description or "")
        if not code:
            raise OAuthInputError(AUTHORIZATION_CODE_MISSING)

        grant = await self._client.exchange_authorization_code(code, redirect_uri)
        self._logger.info("Authorization code exchanged (expires_in=%s)", grant.expires_in)
        return SigninCallbackResponse(
            access_token=grant.access_token,
            refresh_token=grant.refresh_token or "",
            expires_in=grant.expires_in,
            token_type=grant.token_type,
        )


__all__ = [
    "AUTHORIZATION_CODE_MISSING",
    "OAuthProviderError",
    "OAuthProxyService",
    "REFRESH_TOKEN_REQUIRED",
]
