"""Company enrichment: research via the model, cached with expiry, with a default fallback."""

from leadflow.enrichment.cache import ResearchCache, init_cache_db
from leadflow.enrichment.models import EnrichmentRecord, ResearchContext, is_unknown
from leadflow.enrichment.normalize import default_record, normalize_key, normalize_research
from leadflow.enrichment.parsing import (
    PARSE_STRATEGIES,
    ParseAttempt,
    brace_span,
    fenced_block,
    parse_json_object,
    strict_json,
)
from leadflow.enrichment.pipeline import (
    DEFAULT_TTL,
    PERSONAL_EMAIL_DOMAINS,
    PROVIDER_TTL,
    EnrichmentPipeline,
)
from leadflow.enrichment.researcher import CompanyResearcher

__all__ = [
    "DEFAULT_TTL",
    "PARSE_STRATEGIES",
    "PERSONAL_EMAIL_DOMAINS",
    "PROVIDER_TTL",
    "CompanyResearcher",
    "EnrichmentPipeline",
    "EnrichmentRecord",
    "ParseAttempt",
    "ResearchCache",
    "ResearchContext",
    "brace_span",
    "default_record",
    "fenced_block",
    "init_cache_db",
    "is_unknown",
    "normalize_key",
    "normalize_research",
    "parse_json_object",
    "strict_json",
]
