"""
FastAPI routes for health and the Azure AD OAuth proxy.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from http import HTTPStatus
from typing import Annotated, Any, Optional

from fastapi import APIRouter, Body, Depends, Query, Request
from fastapi.responses import JSONResponse

from careadmin.clients.azure_auth import (
    OAuthErrorKind,
    OAuthFlowError,
    OAuthUpstreamRejectedError,
)
from careadmin.dependencies import (
    SettingsDependency,
    get_ancillary_repository,
    get_contact_repository,
    get_oauth_proxy_service,
    get_patient_repository,
)
from careadmin.models.oauth import default_redirect_uri
from careadmin.schemas import (
    OAuthErrorResponse,
    RefreshTokenRequest,
    RefreshTokenResponse,
    SigninCallbackResponse,
)
from careadmin.services.oauth_proxy import OAuthProviderError

router = APIRouter()
health_router = APIRouter()
logger = logging.getLogger(__name__)

_ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    HTTPStatus.BAD_REQUEST.value: {"model": OAuthErrorResponse},
    HTTPStatus.INTERNAL_SERVER_ERROR.value: {"model": OAuthErrorResponse},
}


def _oauth_error_response(exc: OAuthFlowError, operation: str) -> JSONResponse:
    """Translate an OAuth failure into its fixed status code and body shape."""
    if isinstance(exc, OAuthProviderError):
        body: dict[str, Any] = {
            "error": exc.error,
            "error_description": exc.description,
            "message": str(exc),
        }
    elif exc.kind is OAuthErrorKind.INPUT_INVALID:
        body = {"error": str(exc)}
    elif isinstance(exc, OAuthUpstreamRejectedError):
        body = {"error": f"{operation} failed", "details": exc.body}
    else:
        body = {"error": f"{operation} error", "message": str(exc)}
    return JSONResponse(status_code=exc.status_code, content=body)


def _request_fields(request: Request) -> dict[str, Any]:
    return {
        "host": request.url.netloc,
        "path": request.url.path,
        "method": request.method,
        "remote_addr": request.client.host if request.client else None,
        "user_agent": request.headers.get("user-agent"),
        "query_string": request.url.query,
    }


def _callback_redirect_uri(request: Request) -> str:
    return default_redirect_uri(request.url.scheme, request.url.netloc)


@health_router.get("/health", status_code=HTTPStatus.OK)
async def healthcheck(
    settings: SettingsDependency,
    patients: Annotated[Any, Depends(get_patient_repository)],
    contacts: Annotated[Any, Depends(get_contact_repository)],
    ancillaries: Annotated[Any, Depends(get_ancillary_repository)],
) -> dict:
    """Simple health endpoint for monitoring."""
    return {
        "status": "Healthy",
        "environment": settings.environment,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "records": {
            "patients": patients.count(),
            "contacts": contacts.count(),
            "ancillaries": ancillaries.count(),
        },
    }


@router.get("/auth/authorize", status_code=HTTPStatus.OK, response_model=str, tags=["Auth"])
async def get_authorize_url(
    request: Request,
    proxy: Annotated[Any, Depends(get_oauth_proxy_service)],
    redirect_uri: Optional[str] = Query(
        default=None,
        description="Where Azure AD should send the browser; defaults to this API's /api/signin-oidc when absent.",
    ),
) -> str:
    """Return the Azure AD authorize URL that starts the Authorization Code flow."""
    return proxy.authorization_url(
        _callback_redirect_uri(request) if redirect_uri is None else redirect_uri,
        _request_fields(request),
    )


@router.post(
    "/auth/refresh",
    status_code=HTTPStatus.OK,
    response_model=RefreshTokenResponse,
    responses=_ERROR_RESPONSES,
    tags=["Auth"],
)
async def refresh_access_token(
    proxy: Annotated[Any, Depends(get_oauth_proxy_service)],
    payload: Optional[RefreshTokenRequest] = Body(default=None),
) -> Any:
    """Exchange a refresh_token for a new access_token."""
    try:
        return await proxy.refresh(payload.refresh_token if payload else None)
    except OAuthFlowError as exc:
        logger.warning("Token refresh did not complete: %s", exc.kind.value)
        return _oauth_error_response(exc, "Token refresh")


@router.get(
    "/signin-oidc",
    status_code=HTTPStatus.OK,
    response_model=SigninCallbackResponse,
    responses=_ERROR_RESPONSES,
    tags=["Auth"],
)
async def signin_oidc_callback(
    request: Request,
    proxy: Annotated[Any, Depends(get_oauth_proxy_service)],
    code: Optional[str] = Query(default=None, description="Authorization code from Azure AD."),
    error: Optional[str] = Query(default=None),
    error_description: Optional[str] = Query(default=None),
) -> Any:
    """Receive the Azure AD redirect and exchange its code for tokens."""
    try:
        return await proxy.complete_signin(
            code=code,
            redirect_uri=_callback_redirect_uri(request),
            error=error,
            error_description=error_description,
        )
    except OAuthFlowError as exc:
        logger.warning("Sign-in callback did not complete: %s", exc.kind.value)
        return _oauth_error_response(exc, "Token exchange")


__all__ = ["health_router", "router"]
