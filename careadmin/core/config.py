"""
Application configuration models and helpers.

Settings are read from the environment. Every identity-provider value accepts
more than one spelling; the first non-empty one wins, so an exported but
blank ``AZURE_AD__TENANTID`` falls through to ``AZUREAD__TENANTID``.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

import os

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_AUTHORITY = "https://login.microsoftonline.com"


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or os.environ.get(key):
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


def _keys(*names: str) -> AliasChoices:
    return AliasChoices(*names)


class AzureADSettings(BaseSettings):
    """Azure AD application registration used by the OAuth proxy endpoints."""

    model_config = SettingsConfigDict(
        env_ignore_empty=True,
        populate_by_name=True,
        extra="ignore",
    )

    tenant_id: str = Field(
        "", validation_alias=_keys("AZURE_AD__TENANTID", "AZUREAD__TENANTID")
    )
    client_id: str = Field(
        "", validation_alias=_keys("AZURE_AD__CLIENTID", "AZUREAD__CLIENTID")
    )
    client_secret: str = Field(
        "",
        validation_alias=_keys("AZURE_AD__CLIENTSECRET", "AZUREAD__CLIENTSECRET"),
        repr=False,
    )
    scope: str = Field("", validation_alias=_keys("AZURE_AD__SCOPE", "AZUREAD__SCOPE"))
    audience: str = Field(
        "", validation_alias=_keys("AZURE_AD__AUDIENCE", "AZUREAD__AUDIENCE")
    )
    authority: str = Field(
        DEFAULT_AUTHORITY,
        validation_alias=_keys("AZURE_AD__AUTHORITY", "AZUREAD__AUTHORITY"),
        description="Base URL of the identity provider.",
    )
    http_timeout: float = Field(
        10.0,
        validation_alias=_keys("AZURE_AD__HTTP_TIMEOUT"),
        description="Seconds allowed for a single token endpoint round-trip.",
    )

    @property
    def api_scope(self) -> str:
        """Explicit scope first, then ``{audience}/access_as_user``, else empty."""
        if self.scope:
            return self.scope
        if self.audience:
            return f"{self.audience}/access_as_user"
        return ""

    def missing_required(self) -> list[str]:
        """Names of settings without which the authorize URL is malformed."""
        required = {
            "tenant_id": self.tenant_id,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "scope/audience": self.api_scope,
        }
        return [name for name, value in required.items() if not value]


class DataFileSettings(BaseSettings):
    """Optional JSON seed files for the in-memory record repositories."""

    model_config = SettingsConfigDict(
        env_ignore_empty=True,
        populate_by_name=True,
        extra="ignore",
    )

    patients_path: Optional[str] = Field(
        None, validation_alias=_keys("DATA_FILES__PATIENTS", "DATAFILES__PATIENTSDATAPATH")
    )
    contacts_path: Optional[str] = Field(
        None, validation_alias=_keys("DATA_FILES__CONTACTS", "DATAFILES__CONTACTSDATAPATH")
    )
    ancillaries_path: Optional[str] = Field(
        None,
        validation_alias=_keys("DATA_FILES__ANCILLARIES", "DATAFILES__ANCILLARIESDATAPATH"),
    )


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(
        env_ignore_empty=True,
        populate_by_name=True,
        extra="ignore",
    )

    environment: str = Field("development", validation_alias=_keys("APP_ENV"))
    log_level: str = Field("INFO", validation_alias=_keys("APP_LOG_LEVEL"))
    azure_ad: AzureADSettings = Field(default_factory=AzureADSettings)
    data_files: DataFileSettings = Field(default_factory=DataFileSettings)

    @property
    def is_development(self) -> bool:
        return self.environment.lower() == "development"


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()


__all__ = [
    "AppSettings",
    "AzureADSettings",
    "DEFAULT_AUTHORITY",
    "DataFileSettings",
    "get_settings",
]
