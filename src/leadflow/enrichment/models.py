"""Pydantic models for company enrichment records.

``EnrichmentRecord`` enforces its own invariant: no field may be empty or the
sentinel ``"unknown"``.  Producers run raw provider output through
``leadflow.enrichment.normalize`` first, which swaps such values for generic
best guesses and downgrades confidence.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from leadflow.domain.types import CompanySize, Confidence, RecordSource

UNKNOWN_SENTINEL = "unknown"


def is_unknown(value: str) -> bool:
    """``True`` when *value* is blank or the ``"unknown"`` sentinel (any case)."""
    stripped = value.strip().lower()
    return not stripped or stripped == UNKNOWN_SENTINEL


class ResearchContext(BaseModel):
    """Request fields that sharpen the research prompt."""

    model_config = ConfigDict(frozen=True)

    job_title: str = ""


class EnrichmentRecord(BaseModel):
    """What we know about the company behind a lead's e-mail domain."""

    model_config = ConfigDict(frozen=True)

    subject_key: str = Field(description="Normalised (lower-cased) domain")
    company_name: str
    industry: str
    company_size: CompanySize
    latest_news: str
    suggested_scope: str
    confidence: Confidence
    source: RecordSource

    @model_validator(mode="after")
    def _no_unknown_values(self) -> EnrichmentRecord:
        for name in ("company_name", "industry", "latest_news", "suggested_scope"):
            if is_unknown(getattr(self, name)):
                raise ValueError(f"{name} must be a concrete value, not empty or 'unknown'")
        return self
