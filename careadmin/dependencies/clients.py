"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

from functools import lru_cache

from careadmin.clients import AzureADOAuthClient, load_records
from careadmin.models.records import AncillaryUser, ContactUser, Patient
from careadmin.services import (
    AncillaryUserRepository,
    ContactUserRepository,
    OAuthProxyService,
    PatientRepository,
)

from .config import get_app_settings, get_azure_ad_settings


@lru_cache()
def get_azure_oauth_client() -> AzureADOAuthClient:
    """Create a singleton Azure AD OAuth client."""
    return AzureADOAuthClient(get_azure_ad_settings())


def get_oauth_proxy_service() -> OAuthProxyService:
    """Build the OAuth proxy around the shared client."""
    return OAuthProxyService(get_azure_oauth_client(), get_azure_ad_settings())


@lru_cache()
def get_patient_repository() -> PatientRepository:
    """Provide patients loaded from the configured seed file."""
    path = get_app_settings().data_files.patients_path
    return PatientRepository(load_records(path, Patient, wrapper_key="patients"))


@lru_cache()
def get_contact_repository() -> ContactUserRepository:
    """Provide contacts loaded from the configured seed file."""
    path = get_app_settings().data_files.contacts_path
    return ContactUserRepository(load_records(path, ContactUser, wrapper_key="contacts"))


@lru_cache()
def get_ancillary_repository() -> AncillaryUserRepository:
    """Provide ancillaries loaded from the configured seed file."""
    path = get_app_settings().data_files.ancillaries_path
    return AncillaryUserRepository(
        load_records(path, AncillaryUser, wrapper_key="ancillaries")
    )


__all__ = [
    "get_ancillary_repository",
    "get_azure_oauth_client",
    "get_contact_repository",
    "get_oauth_proxy_service",
    "get_patient_repository",
]
