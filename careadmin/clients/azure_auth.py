"""
Azure AD OAuth utilities.

Builds authorize URLs and performs the two token grants the API proxies:
``authorization_code`` (sign-in callback) and ``refresh_token``. Each grant is
a single form-encoded POST; failures are surfaced immediately and never
retried.
"""

from __future__ import annotations

from enum import Enum
from http import HTTPStatus
from typing import Dict, Optional
from urllib.parse import quote, urlencode

import httpx

from careadmin.core.config import AzureADSettings
from careadmin.models.oauth import AuthorizeConfig, TokenGrant, with_oidc_scopes


class OAuthErrorKind(str, Enum):
    """Terminal failure states of a proxied OAuth call."""

    INPUT_INVALID = "input_invalid"
    UPSTREAM_REJECTED = "upstream_rejected"
    TRANSPORT_FAILURE = "transport_failure"


ERROR_STATUS: Dict[OAuthErrorKind, HTTPStatus] = {
    OAuthErrorKind.INPUT_INVALID: HTTPStatus.BAD_REQUEST,
    OAuthErrorKind.UPSTREAM_REJECTED: HTTPStatus.BAD_REQUEST,
    OAuthErrorKind.TRANSPORT_FAILURE: HTTPStatus.INTERNAL_SERVER_ERROR,
}


class OAuthFlowError(Exception):
    """Base class for proxied OAuth failures."""

    kind: OAuthErrorKind = OAuthErrorKind.TRANSPORT_FAILURE

    @property
    def status_code(self) -> HTTPStatus:
        return ERROR_STATUS[self.kind]


class OAuthInputError(OAuthFlowError):
    """Raised before any network call when the caller's input is unusable."""

    kind = OAuthErrorKind.INPUT_INVALID


class OAuthUpstreamRejectedError(OAuthFlowError):
    """Raised when the token endpoint answers with a non-success status."""

    kind = OAuthErrorKind.UPSTREAM_REJECTED

    def __init__(self, upstream_status: int, body: str) -> None:
        super().__init__(body)
        self.upstream_status = upstream_status
        self.body = body


class OAuthTransportError(OAuthFlowError):
    """Raised when the call fails or the success payload cannot be read."""

    kind = OAuthErrorKind.TRANSPORT_FAILURE


class AzureADOAuthClient:
    """Talk to the Azure AD v2.0 authorize and token endpoints."""

    def __init__(
        self,
        settings: AzureADSettings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    @property
    def authorize_url(self) -> str:
        return self._endpoint("authorize")

    @property
    def token_url(self) -> str:
        return self._endpoint("token")

    @property
    def token_scope(self) -> str:
        """Scope sent with token grants: the API scope, else the OIDC scopes."""
        return self._settings.api_scope or with_oidc_scopes("")

    def _endpoint(self, name: str, tenant_id: Optional[str] = None) -> str:
        authority = self._settings.authority.rstrip("/")
        tenant = self._settings.tenant_id if tenant_id is None else tenant_id
        return f"{authority}/{tenant}/oauth2/v2.0/{name}"

    def build_authorization_url(self, config: AuthorizeConfig) -> str:
        """Construct the consent URL; parameter order is part of the contract."""
        params = {
            "client_id": config.client_id,
            "response_type": "code",
            "redirect_uri": config.redirect_uri,
            "response_mode": "query",
            "scope": config.scope,
            "prompt": "select_account",
        }
        base = self._endpoint("authorize", tenant_id=config.tenant_id)
        return f"{base}?{urlencode(params, quote_via=quote)}"

    async def refresh_access_token(self, refresh_token: str) -> TokenGrant:
        """Redeem a refresh token for a new access token."""
        form = {
            "client_id": self._settings.client_id,
            "grant_type": "refresh_token",
            "refresh_token": refresh_token,
            "scope": self.token_scope,
            "client_secret": self._settings.client_secret,
        }
        return await self._request_token(form)

    async def exchange_authorization_code(self, code: str, redirect_uri: str) -> TokenGrant:
        """Exchange an authorization code returned to the sign-in callback."""
        form = {
            "client_id": self._settings.client_id,
            "scope": self.token_scope,
            "code": code,
            "redirect_uri": redirect_uri,
            "grant_type": "authorization_code",
            "client_secret": self._settings.client_secret,
        }
        return await self._request_token(form)

    async def _request_token(self, form: Dict[str, str]) -> TokenGrant:
        try:
            async with httpx.AsyncClient(
                timeout=self._settings.http_timeout, transport=self._transport
            ) as client:
                response = await client.post(self.token_url, data=form)
        except httpx.HTTPError as exc:
            raise OAuthTransportError(str(exc)) from exc

        if not response.is_success:
            raise OAuthUpstreamRejectedError(response.status_code, response.text)

        try:
            return TokenGrant.from_payload(response.json())
        except (ValueError, KeyError, TypeError) as exc:
            raise OAuthTransportError(str(exc)) from exc


__all__ = [
    "AzureADOAuthClient",
    "ERROR_STATUS",
    "OAuthErrorKind",
    "OAuthFlowError",
    "OAuthInputError",
    "OAuthTransportError",
    "OAuthUpstreamRejectedError",
]
