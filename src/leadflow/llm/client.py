"""Vertex AI ``generateContent`` client with credential refresh and retries.

Each call runs through ``invoke`` under ``PROVIDER_POLICY``.  A 401 drops the
cached bearer token and the next attempt mints a new one; a second 401 after
that refresh is permanent.  Rate-limit (429) and quota (402) responses are
surfaced immediately because every extra attempt is billed.
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import structlog
from pydantic import BaseModel, ConfigDict

from leadflow.auth.credentials import CredentialManager
from leadflow.domain.errors import AuthenticationFailed, MalformedResponse, PermanentError
from leadflow.llm.models import GenerationRequest, GenerationResult, MessageRole
from leadflow.resilience.backoff import PROVIDER_POLICY, BackoffPolicy
from leadflow.resilience.http import send_request
from leadflow.resilience.retry import Sleep, invoke

logger = structlog.get_logger()

API_NAME = "vertex_ai"

VERTEX_ENDPOINT = (
    "https://{location}-aiplatform.googleapis.com/v1/projects/{project_id}"
    "/locations/{location}/publishers/google/models/{model}:generateContent"
)

RAG_CORPUS = "projects/{project_id}/locations/{location}/ragCorpora/{corpus_id}"

# Finish reasons that mean the content was withheld by safety filtering.
BLOCKED_FINISH_REASONS: frozenset[str] = frozenset(
    {"SAFETY", "BLOCKLIST", "PROHIBITED_CONTENT", "SPII", "RECITATION"}
)


class VertexConfig(BaseModel):
    """Which Vertex AI model to call."""

    model_config = ConfigDict(frozen=True)

    project_id: str
    location: str = "us-east1"
    model: str = "gemini-2.5-flash"
    rag_corpus_id: str | None = None

    @property
    def endpoint(self) -> str:
        return VERTEX_ENDPOINT.format(
            location=self.location, project_id=self.project_id, model=self.model
        )

    @property
    def rag_corpus(self) -> str | None:
        """Full resource name of the RAG corpus, or ``None`` when unset."""
        if not self.rag_corpus_id:
            return None
        return RAG_CORPUS.format(
            project_id=self.project_id, location=self.location, corpus_id=self.rag_corpus_id
        )


def build_request_body(
    request: GenerationRequest, rag_corpus: str | None = None
) -> dict[str, Any]:
    """Translate a ``GenerationRequest`` into the ``generateContent`` JSON body.

    Retrieval is attached only when the request asks for it and *rag_corpus*
    names a corpus.
    """
    generation_config: dict[str, Any] = {
        "temperature": request.temperature,
        "maxOutputTokens": request.max_output_tokens,
    }
    if request.response_mime_type:
        generation_config["responseMimeType"] = request.response_mime_type

    body: dict[str, Any] = {
        "contents": [
            {
                "role": "model" if msg.role == MessageRole.ASSISTANT else "user",
                "parts": [{"text": msg.content}],
            }
            for msg in request.messages
        ],
        "generationConfig": generation_config,
    }
    if request.system_instruction:
        body["systemInstruction"] = {"parts": [{"text": request.system_instruction}]}
    tools: list[dict[str, Any]] = []
    if request.google_search:
        tools.append({"googleSearch": {}})
    if request.use_rag and rag_corpus:
        tools.append(
            {
                "retrieval": {
                    "disableAttribution": False,
                    "vertexRagStore": {
                        "ragResources": [{"ragCorpus": rag_corpus}],
                        "similarityTopK": request.similarity_top_k,
                        "vectorDistanceThreshold": request.vector_distance_threshold,
                    },
                }
            }
        )
    if tools:
        body["tools"] = tools
    return body


def extract_content(data: dict[str, Any]) -> GenerationResult:
    """Pull the generated text out of a ``generateContent`` response.

    Raises:
        MalformedResponse: The prompt or answer was blocked, or no text came back.
    """
    block_reason = (data.get("promptFeedback") or {}).get("blockReason")
    if block_reason:
        raise MalformedResponse(f"Prompt blocked: {block_reason}", api_name=API_NAME)

    candidates = data.get("candidates") or []
    if not candidates:
        raise MalformedResponse("Response contained no candidates", api_name=API_NAME)
    candidate = candidates[0]

    finish_reason = candidate.get("finishReason")
    if finish_reason in BLOCKED_FINISH_REASONS:
        logger.warning(
            "Response blocked by safety filter",
            finish_reason=finish_reason,
            safety_ratings=candidate.get("safetyRatings"),
        )
        raise MalformedResponse(f"Response blocked: {finish_reason}", api_name=API_NAME)

    parts = (candidate.get("content") or {}).get("parts") or []
    text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))
    if not text.strip():
        raise MalformedResponse("Empty response from model", api_name=API_NAME)

    return GenerationResult(
        content=text,
        finish_reason=finish_reason,
        grounded=candidate.get("groundingMetadata") is not None,
    )


class VertexClient:
    """Call a Vertex AI model with a service-account bearer token.

    Args:
        config: Project, region and model to call.
        credentials: Shared credential manager for the service account.
        http_client: Shared async HTTP client.
        policy: Backoff policy; defaults to ``PROVIDER_POLICY``.
        sleep: Coroutine used between attempts.
    """

    def __init__(
        self,
        config: VertexConfig,
        credentials: CredentialManager,
        http_client: httpx.AsyncClient,
        *,
        policy: BackoffPolicy = PROVIDER_POLICY,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._config = config
        self._credentials = credentials
        self._http = http_client
        self._policy = policy
        self._sleep = sleep

    @property
    def config(self) -> VertexConfig:
        return self._config

    async def generate(self, request: GenerationRequest) -> GenerationResult:
        """Generate content for *request*.

        Returns:
            The generated text, finish reason, and the number of attempts used.

        Raises:
            ServiceError: The terminal failure once retries are exhausted or a
                non-retryable error occurs.
        """
        body = build_request_body(request, self._config.rag_corpus)
        endpoint = self._config.endpoint
        refresh_pending = False
        refreshed_after_401 = False

        async def attempt() -> GenerationResult:
            nonlocal refresh_pending, refreshed_after_401
            credential = await self._credentials.get_credential(force_refresh=refresh_pending)
            if refresh_pending:
                refresh_pending = False
                refreshed_after_401 = True
            try:
                response = await send_request(
                    self._http,
                    "POST",
                    endpoint,
                    api_name=API_NAME,
                    json=body,
                    headers={"Authorization": f"Bearer {credential.token.get_secret_value()}"},
                )
            except AuthenticationFailed as exc:
                self._credentials.invalidate()
                if refreshed_after_401:
                    raise PermanentError(
                        "Credential rejected again after a forced refresh",
                        status_code=exc.status_code,
                        api_name=API_NAME,
                    ) from exc
                refresh_pending = True
                raise

            try:
                data = response.json()
            except ValueError as exc:
                raise MalformedResponse("Response body is not JSON", api_name=API_NAME) from exc
            return extract_content(data)

        result = await invoke(attempt, self._policy, api_name=API_NAME, sleep=self._sleep)
        generation = result.value
        logger.info(
            "Model call complete",
            model=self._config.model,
            attempts=result.attempts,
            grounded=generation.grounded,
            content_length=len(generation.content),
        )
        return generation.model_copy(update={"attempts": result.attempts})
