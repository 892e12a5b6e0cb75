"""Authentication module for Google service-account bearer credentials."""

from leadflow.auth.credentials import (
    CLOUD_PLATFORM_SCOPE,
    DEFAULT_REFRESH_MARGIN,
    GOOGLE_TOKEN_URI,
    Credential,
    CredentialManager,
    ServiceAccountKey,
)

__all__ = [
    "CLOUD_PLATFORM_SCOPE",
    "DEFAULT_REFRESH_MARGIN",
    "GOOGLE_TOKEN_URI",
    "Credential",
    "CredentialManager",
    "ServiceAccountKey",
]
