"""Centralized, typed configuration using pydantic-settings.

Provides a single ``Settings`` class backed by ``.env`` file and environment
variables, a cached ``get_settings()`` accessor, and a ``validate_credentials()``
startup gate that enforces credential presence in production mode.

This module imports nothing from the ``leadflow`` package so any module can
read settings without import cycles.
"""

from __future__ import annotations

import sys
from functools import lru_cache
from pathlib import Path

import structlog
from pydantic import SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger()


class Settings(BaseSettings):
    """Application settings loaded from environment variables and ``.env`` file.

    ``SecretStr`` fields keep the service-account key and API keys out of logs
    and error output.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- General ---------------------------------------------------------------
    production: bool = False
    port: int = 8000
    service_name: str = "leadflow"
    sentry_dsn: str = ""

    # -- Google service account / Vertex AI ------------------------------------
    google_service_account_json: SecretStr = SecretStr("")
    google_service_account_path: Path | None = None
    vertex_project_id: str = ""
    vertex_location: str = "us-east1"
    vertex_model: str = "gemini-2.5-flash"
    vertex_rag_corpus_id: str = ""
    credential_refresh_margin_seconds: int = 600

    # -- Resend ----------------------------------------------------------------
    resend_api_key: SecretStr = SecretStr("")
    notification_from: str = "Website <noreply@example.com>"
    notification_to: str = ""
    lead_notification_from: str = ""

    # -- Enrichment cache ------------------------------------------------------
    cache_db_path: Path = Path("data/leadflow.db")
    research_ttl_days: int = 30
    default_research_ttl_days: int = 1
    personal_email_domains: list[str] = [
        "gmail.com",
        "yahoo.com",
        "hotmail.com",
        "outlook.com",
        "icloud.com",
        "me.com",
        "protonmail.com",
        "aol.com",
    ]

    # -- Retries ---------------------------------------------------------------
    retry_jitter_seconds: float = 0.0

    def service_account_info(self) -> str:
        """Raw service-account JSON from the inline secret or the key file.

        Returns an empty string when neither is configured.
        """
        inline = self.google_service_account_json.get_secret_value().strip()
        if inline:
            return inline
        if self.google_service_account_path is not None:
            path = self.google_service_account_path.expanduser()
            if path.exists():
                return path.read_text(encoding="utf-8")
        return ""


@lru_cache
def get_settings() -> Settings:
    """Return a cached ``Settings`` instance.

    The ``@lru_cache`` decorator ensures environment variables are parsed
    exactly once.  Call ``get_settings.cache_clear()`` in tests to reset.

    Returns:
        The application ``Settings``.
    """
    try:
        return Settings()
    except ValidationError as exc:
        # Log only the structured errors list, never the exception text,
        # which may contain raw secret values.
        logger.error("settings_validation_failed", errors=exc.errors())
        sys.exit(1)


def validate_credentials(settings: Settings) -> None:
    """Enforce credential presence at startup.

    In **production** mode (``settings.production is True``), the application
    exits with a clear error block if any required credential is missing.

    In **development** mode, each missing credential is logged as a warning
    but the application continues to start.  Enrichment then always resolves
    to default records and notifications fail (and are logged).

    Args:
        settings: The loaded application settings.
    """
    errors: list[str] = []

    if not settings.service_account_info():
        errors.append(
            "GOOGLE_SERVICE_ACCOUNT_JSON is empty and GOOGLE_SERVICE_ACCOUNT_PATH is unset or missing"
        )

    if not settings.vertex_project_id:
        errors.append("VERTEX_PROJECT_ID is empty or not set")

    resend_key = settings.resend_api_key.get_secret_value().strip()
    if not resend_key:
        errors.append("RESEND_API_KEY is empty or not set")
    elif not resend_key.startswith("re_"):
        logger.warning("resend_api_key_unexpected_format", expected_prefix="re_")

    if not settings.notification_to:
        errors.append("NOTIFICATION_TO is empty or not set")

    if not errors:
        logger.info("credential_validation_passed")
        return

    if settings.production:
        for err in errors:
            logger.error("credential_missing", detail=err)
        print("\n=== STARTUP FAILED ===", file=sys.stderr)
        print("Missing required credentials for production mode:", file=sys.stderr)
        for err in errors:
            print(f"  - {err}", file=sys.stderr)
        print("======================\n", file=sys.stderr)
        sys.exit(1)
    else:
        for err in errors:
            logger.warning("credential_missing_dev", detail=err)
