"""
FastAPI dependency utilities for injecting configuration.
"""

from functools import lru_cache
from typing import Annotated

from fastapi import Depends

from careadmin.core.config import AppSettings, AzureADSettings, get_settings


@lru_cache()
def _settings_singleton() -> AppSettings:
    """Ensure configuration is created once per process."""
    return get_settings()


def get_app_settings() -> AppSettings:
    """FastAPI dependency returning application settings."""
    return _settings_singleton()


def get_azure_ad_settings() -> AzureADSettings:
    """Azure AD registration the OAuth proxy is built from."""
    return _settings_singleton().azure_ad


SettingsDependency = Annotated[AppSettings, Depends(get_app_settings)]

__all__ = ["SettingsDependency", "get_app_settings", "get_azure_ad_settings"]
