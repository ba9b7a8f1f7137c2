"""Public schema exports."""

from .auth import (
    OAuthErrorResponse,
    RefreshTokenRequest,
    RefreshTokenResponse,
    SigninCallbackResponse,
)
from .records import (
    AncillariesByDivisionReport,
    AncillaryStats,
    BulkCreateResponse,
    ContactStats,
    ContactsByEntityReport,
    PatientDiagnosesResponse,
    PatientStats,
    PatientsByAgencyReport,
)

__all__ = [
    "AncillariesByDivisionReport",
    "AncillaryStats",
    "BulkCreateResponse",
    "ContactStats",
    "ContactsByEntityReport",
    "OAuthErrorResponse",
    "PatientDiagnosesResponse",
    "PatientStats",
    "PatientsByAgencyReport",
    "RefreshTokenRequest",
    "RefreshTokenResponse",
    "SigninCallbackResponse",
]
