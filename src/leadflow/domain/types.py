"""Domain enumerations shared across the invocation, enrichment, and email layers."""

from enum import StrEnum


class ErrorKind(StrEnum):
    """Classification tag attached to every outbound-call failure.

    Retry decisions match on this tag; the error message is never parsed.
    """

    AUTHENTICATION = "authentication"
    RATE_LIMITED = "rate_limited"
    QUOTA_EXCEEDED = "quota_exceeded"
    TRANSIENT = "transient"
    MALFORMED_RESPONSE = "malformed_response"
    PERMANENT = "permanent"


class Confidence(StrEnum):
    """Coarse quality label carried by enrichment data."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RecordSource(StrEnum):
    """Where an enrichment record came from."""

    CACHE = "cache"
    PROVIDER = "provider"
    DEFAULT = "default"


class CompanySize(StrEnum):
    """Company size buckets the research provider is asked to choose from."""

    STARTUP = "startup"  # 1-50 employees
    SMB = "smb"  # 51-500 employees
    MID_MARKET = "mid-market"  # 501-5000 employees
    ENTERPRISE = "enterprise"  # 5000+ employees


class EngagementLevel(StrEnum):
    """How warm a lead is, bucketed from its engagement score."""

    HOT = "hot"  # 70+
    WARM = "warm"  # 40-69
    NEW = "new"
