"""Service layer exports."""

from .oauth_proxy import OAuthProxyService
from .records import (
    AncillaryUserRepository,
    ContactUserRepository,
    InMemoryRepository,
    PatientRepository,
    RecordExistsError,
)

__all__ = [
    "AncillaryUserRepository",
    "ContactUserRepository",
    "InMemoryRepository",
    "OAuthProxyService",
    "PatientRepository",
    "RecordExistsError",
]
