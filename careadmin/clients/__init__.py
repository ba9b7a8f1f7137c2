"""Expose constructed client wrappers."""

from .azure_auth import AzureADOAuthClient
from .json_loader import load_records

__all__ = ["AzureADOAuthClient", "load_records"]
