"""Company research through the generative model.

Asks the model for a fixed JSON schema, extracts the object with the parse
chain, and normalises it into a provider-sourced ``EnrichmentRecord``.
"""

from __future__ import annotations

import structlog

from leadflow.domain.errors import MalformedResponse
from leadflow.enrichment.models import EnrichmentRecord
from leadflow.enrichment.normalize import normalize_research
from leadflow.enrichment.parsing import parse_json_object
from leadflow.llm.client import VertexClient
from leadflow.llm.models import ChatMessage, GenerationRequest
from leadflow.llm.prompts import COMPANY_RESEARCH_PROMPT

logger = structlog.get_logger()

RESEARCH_TEMPERATURE = 0.3
RESEARCH_MAX_OUTPUT_TOKENS = 1024


class CompanyResearcher:
    """Research a company from its domain with a grounded model call.

    Args:
        client: The Vertex AI client used for the call.
    """

    def __init__(self, client: VertexClient) -> None:
        self._client = client

    async def research(self, domain: str, job_title: str = "") -> EnrichmentRecord:
        """Return a provider-sourced record for *domain*.

        Raises:
            ServiceError: The model call failed terminally.
            MalformedResponse: The model answered but no JSON object could be
                extracted from it.
        """
        request = GenerationRequest(
            messages=[
                ChatMessage(
                    content=COMPANY_RESEARCH_PROMPT.format(
                        domain=domain,
                        job_title=job_title or "not provided",
                    )
                )
            ],
            temperature=RESEARCH_TEMPERATURE,
            max_output_tokens=RESEARCH_MAX_OUTPUT_TOKENS,
            response_mime_type="application/json",
            google_search=True,
        )
        result = await self._client.generate(request)

        parsed = parse_json_object(result.content)
        if parsed.data is None:
            logger.warning(
                "Could not extract JSON from research response",
                domain=domain,
                error=parsed.error,
                content_length=len(result.content),
            )
            raise MalformedResponse(
                f"Unparseable research response: {parsed.error}", api_name="vertex_ai"
            )

        record = normalize_research(domain, parsed.data)
        logger.info(
            "Company research complete",
            domain=domain,
            company_name=record.company_name,
            industry=record.industry,
            company_size=record.company_size.value,
            confidence=record.confidence.value,
            parse_strategy=parsed.strategy,
            retried=result.retried,
        )
        return record
