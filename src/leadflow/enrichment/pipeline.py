"""Three-tier enrichment: cache, then provider, then a default record.

``EnrichmentPipeline.resolve`` never raises for cache or provider trouble.
It always returns a usable record whose ``confidence`` and ``source`` tell
downstream consumers how far to trust it:

    CACHE_LOOKUP -> hit: RETURN
                 -> miss: PROVIDER_CALL -> success: VALIDATE_AND_CACHE (long TTL) -> RETURN
                                        -> failure: DEFAULT -> CACHE (short TTL) -> RETURN

Concurrent cold misses for the same key each call the provider; research
calls are idempotent reads and the last cache write wins.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import timedelta

import structlog

from leadflow.domain.errors import ServiceError
from leadflow.enrichment.cache import ResearchCache
from leadflow.enrichment.models import EnrichmentRecord, ResearchContext
from leadflow.enrichment.normalize import default_record, normalize_key
from leadflow.enrichment.researcher import CompanyResearcher
from leadflow.observability.metrics import ENRICHMENT_RESOLUTIONS

logger = structlog.get_logger()

PROVIDER_TTL = timedelta(days=30)
DEFAULT_TTL = timedelta(days=1)

PERSONAL_EMAIL_DOMAINS: frozenset[str] = frozenset(
    {
        "gmail.com",
        "yahoo.com",
        "hotmail.com",
        "outlook.com",
        "icloud.com",
        "me.com",
        "protonmail.com",
        "aol.com",
    }
)


class EnrichmentPipeline:
    """Resolve a domain to an ``EnrichmentRecord`` with cache and fallback.

    Args:
        cache: Research cache, or ``None`` to run uncached.
        researcher: Provider-backed researcher, or ``None`` when no provider
            is configured (every call then resolves to the default tier).
        provider_ttl: Cache lifetime of provider-sourced records.
        default_ttl: Cache lifetime of default records, kept short so the
            provider is retried soon.
        personal_domains: Consumer mail domains that are never researched.
    """

    def __init__(
        self,
        cache: ResearchCache | None,
        researcher: CompanyResearcher | None,
        *,
        provider_ttl: timedelta = PROVIDER_TTL,
        default_ttl: timedelta = DEFAULT_TTL,
        personal_domains: Iterable[str] = PERSONAL_EMAIL_DOMAINS,
    ) -> None:
        self._cache = cache
        self._researcher = researcher
        self._provider_ttl = provider_ttl
        self._default_ttl = default_ttl
        self._personal_domains = frozenset(normalize_key(d) for d in personal_domains)

    def is_personal_domain(self, key: str) -> bool:
        """True for a personal mail provider or any of its subdomains."""
        return any(key == d or key.endswith(f".{d}") for d in self._personal_domains)

    async def resolve(
        self,
        subject_key: str,
        context: ResearchContext | None = None,
    ) -> EnrichmentRecord:
        """Return the best available record for *subject_key*.

        Args:
            subject_key: Company e-mail domain.  Matching is case-insensitive.
            context: Optional request fields passed to the research prompt.

        Returns:
            A record sourced from the cache, the provider, or the default tier.
        """
        key = normalize_key(subject_key)
        context = context or ResearchContext()

        if not key or self.is_personal_domain(key):
            logger.info("Skipping research for personal or empty domain", domain=key)
            return self._resolved(default_record(key))

        cached = await self._lookup(key)
        if cached is not None:
            logger.info("Research cache hit", domain=key, confidence=cached.confidence.value)
            return self._resolved(cached)

        record = await self._research(key, context)
        if record is not None:
            await self._store(key, record, self._provider_ttl)
            return self._resolved(record)

        logger.warning("Using default research", domain=key)
        record = default_record(key)
        await self._store(key, record, self._default_ttl)
        return self._resolved(record)

    async def _lookup(self, key: str) -> EnrichmentRecord | None:
        if self._cache is None:
            return None
        try:
            return await self._cache.get(key)
        except Exception:
            logger.warning("Research cache lookup failed; treating as miss", domain=key, exc_info=True)
            return None

    async def _research(self, key: str, context: ResearchContext) -> EnrichmentRecord | None:
        if self._researcher is None:
            logger.info("No research provider configured", domain=key)
            return None
        try:
            return await self._researcher.research(key, context.job_title)
        except ServiceError as exc:
            logger.warning(
                "Company research failed",
                domain=key,
                error_kind=exc.kind.value,
                status_code=exc.status_code,
                exception=str(exc),
            )
        except Exception:
            logger.exception("Unexpected error during company research", domain=key)
        return None

    async def _store(self, key: str, record: EnrichmentRecord, ttl: timedelta) -> None:
        if self._cache is None:
            return
        try:
            await self._cache.put(key, record, ttl)
            logger.info("Cached research", domain=key, source=record.source.value, ttl_days=ttl.days)
        except Exception:
            logger.warning("Research cache write failed", domain=key, exc_info=True)

    @staticmethod
    def _resolved(record: EnrichmentRecord) -> EnrichmentRecord:
        ENRICHMENT_RESOLUTIONS.labels(source=record.source.value).inc()
        return record
