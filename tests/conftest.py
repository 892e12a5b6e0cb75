"""Shared pytest fixtures for the leadflow test suite."""

from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from leadflow.auth.credentials import ServiceAccountKey
from leadflow.domain.types import CompanySize, Confidence, RecordSource
from leadflow.enrichment.models import EnrichmentRecord

EPOCH = datetime(2025, 1, 15, 12, 0, 0, tzinfo=UTC)


class FixedClock:
    """Manually advanced UTC clock."""

    def __init__(self, now: datetime = EPOCH) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


class SleepRecorder:
    """Stand-in for ``asyncio.sleep`` that records delays instead of waiting."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(scope="session")
def rsa_private_key_pem() -> str:
    """A freshly generated 2048-bit RSA key in PKCS#8 PEM form."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")


@pytest.fixture
def service_account_json(rsa_private_key_pem: str) -> str:
    """Service-account key JSON as it would appear in a downloaded key file."""
    return json.dumps(
        {
            "type": "service_account",
            "project_id": "test-project",
            "private_key_id": "key-123",
            "private_key": rsa_private_key_pem,
            "client_email": "research@test-project.iam.gserviceaccount.com",
            "token_uri": "https://oauth2.googleapis.com/token",
        }
    )


@pytest.fixture
def service_account_key(service_account_json: str) -> ServiceAccountKey:
    return ServiceAccountKey.from_json(service_account_json)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock()


@pytest.fixture
def sleep() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def provider_record() -> EnrichmentRecord:
    """A representative record as returned by a successful research call."""
    return EnrichmentRecord(
        subject_key="acme.com",
        company_name="Acme Corp",
        industry="Manufacturing",
        company_size=CompanySize.MID_MARKET,
        latest_news="Opened a new plant in Ohio",
        suggested_scope="Automate supplier onboarding",
        confidence=Confidence.HIGH,
        source=RecordSource.PROVIDER,
    )
