"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_ancillary_repository,
    get_azure_oauth_client,
    get_contact_repository,
    get_oauth_proxy_service,
    get_patient_repository,
)
from .config import SettingsDependency, get_app_settings, get_azure_ad_settings

__all__ = [
    "SettingsDependency",
    "get_ancillary_repository",
    "get_app_settings",
    "get_azure_ad_settings",
    "get_azure_oauth_client",
    "get_contact_repository",
    "get_oauth_proxy_service",
    "get_patient_repository",
]
