"""Turn raw research output into a valid ``EnrichmentRecord``.

Every field gets a generic best guess when the provider left it blank or
answered ``"unknown"``; any such substitution forces confidence to ``low`` so
downstream consumers can flag the data.
"""

from __future__ import annotations

from typing import Any

import structlog

from leadflow.domain.types import CompanySize, Confidence, RecordSource
from leadflow.enrichment.models import EnrichmentRecord, is_unknown

logger = structlog.get_logger()

FALLBACK_INDUSTRY = "Technology"
FALLBACK_SIZE = CompanySize.SMB
FALLBACK_NEWS = "Company information verified"
FALLBACK_SCOPE = "Discovery call to understand specific AI/automation needs"
FALLBACK_COMPANY_NAME = "Unverified company"

DEFAULT_NEWS = "Unable to verify company information"
DEFAULT_SCOPE = "Discovery call to understand specific needs"

# Provider JSON key -> (record field, fallback)
_TEXT_FIELDS: dict[str, tuple[str, str]] = {
    "industry": ("industry", FALLBACK_INDUSTRY),
    "latestNews": ("latest_news", FALLBACK_NEWS),
    "suggestedScope": ("suggested_scope", FALLBACK_SCOPE),
}


def normalize_key(subject_key: str) -> str:
    """Cache key form of a domain: trimmed and lower-cased."""
    return subject_key.strip().lower()


def _coerce_text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def normalize_research(domain: str, data: dict[str, Any]) -> EnrichmentRecord:
    """Build a provider-sourced record from parsed research JSON.

    Args:
        domain: Normalised domain the research is about.
        data: Parsed JSON object from the model.

    Returns:
        A record in which no field is empty or ``"unknown"``.
    """
    replaced: list[str] = []

    raw_confidence = _coerce_text(data.get("confidence")).lower()
    confidence = (
        Confidence(raw_confidence)
        if raw_confidence in {c.value for c in Confidence}
        else Confidence.MEDIUM
    )

    company_name = _coerce_text(data.get("companyName"))
    if not company_name:
        company_name = domain or FALLBACK_COMPANY_NAME
    elif is_unknown(company_name):
        company_name = domain or FALLBACK_COMPANY_NAME
        replaced.append("company_name")

    fields: dict[str, str] = {}
    for json_key, (field_name, fallback) in _TEXT_FIELDS.items():
        value = _coerce_text(data.get(json_key))
        if not value:
            fields[field_name] = fallback
        elif is_unknown(value):
            fields[field_name] = fallback
            replaced.append(field_name)
        else:
            fields[field_name] = value

    raw_size = _coerce_text(data.get("companySize")).lower()
    if raw_size in {s.value for s in CompanySize}:
        company_size = CompanySize(raw_size)
    else:
        company_size = FALLBACK_SIZE
        if raw_size:
            replaced.append("company_size")

    if replaced:
        confidence = Confidence.LOW
        logger.info("Replaced unknown research values", domain=domain, fields=replaced)

    return EnrichmentRecord(
        subject_key=domain,
        company_name=company_name,
        company_size=company_size,
        confidence=confidence,
        source=RecordSource.PROVIDER,
        **fields,
    )


def default_record(domain: str) -> EnrichmentRecord:
    """Low-confidence best guess used when research is skipped or fails."""
    return EnrichmentRecord(
        subject_key=domain,
        company_name=domain or FALLBACK_COMPANY_NAME,
        industry=FALLBACK_INDUSTRY,
        company_size=FALLBACK_SIZE,
        latest_news=DEFAULT_NEWS,
        suggested_scope=DEFAULT_SCOPE,
        confidence=Confidence.LOW,
        source=RecordSource.DEFAULT,
    )
