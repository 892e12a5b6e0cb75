"""Domain enumerations and the error taxonomy for outbound calls."""

from leadflow.domain.errors import (
    AuthenticationFailed,
    CredentialExchangeFailed,
    LeadflowError,
    MalformedResponse,
    NotificationDeliveryFailed,
    PermanentError,
    QuotaExceeded,
    RateLimited,
    ServiceError,
    TransientError,
)
from leadflow.domain.types import CompanySize, Confidence, EngagementLevel, ErrorKind, RecordSource

__all__ = [
    "AuthenticationFailed",
    "CompanySize",
    "Confidence",
    "CredentialExchangeFailed",
    "EngagementLevel",
    "ErrorKind",
    "LeadflowError",
    "MalformedResponse",
    "NotificationDeliveryFailed",
    "PermanentError",
    "QuotaExceeded",
    "RateLimited",
    "RecordSource",
    "ServiceError",
    "TransientError",
]
