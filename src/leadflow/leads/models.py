"""Request and response models for the lead intake endpoints."""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, Field

from leadflow.domain.types import Confidence, EngagementLevel, RecordSource

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"

COMMITMENT_LABELS: dict[str, str] = {
    "1hr": "1 Hour Session",
    "3hr": "3 Hour Session",
    "4wk": "4 Week Program",
    "90d": "90 Day Program",
}

# Time on site, in seconds, that earns the full time bonus.
FULL_TIME_ON_SITE = 180


class FrictionMap(BaseModel):
    model_config = ConfigDict(frozen=True)

    problem: str = Field(max_length=1000)
    time_saved: float
    tool_recommendations: list[str] = Field(default_factory=list)
    generated_at: str = ""


class SelectedTask(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    hours: float
    savings: float


class PortfolioBuilder(BaseModel):
    model_config = ConfigDict(frozen=True)

    selected_tasks: list[SelectedTask] = Field(default_factory=list)
    total_time_saved: float = 0
    total_cost_savings: float = 0


class Assessment(BaseModel):
    model_config = ConfigDict(frozen=True)

    profile_type: str
    profile_description: str = ""
    recommended_product: str = ""


class WidgetChallenge(BaseModel):
    model_config = ConfigDict(frozen=True)

    input: str
    response: str = ""
    timestamp: str = ""


class TryItWidget(BaseModel):
    model_config = ConfigDict(frozen=True)

    challenges: list[WidgetChallenge] = Field(default_factory=list)


class SessionData(BaseModel):
    """What the visitor did on the site before submitting the form.

    Every tool section is optional; the browsing counters default to zero.
    """

    model_config = ConfigDict(frozen=True)

    friction_map: FrictionMap | None = None
    portfolio_builder: PortfolioBuilder | None = None
    assessment: Assessment | None = None
    try_it_widget: TryItWidget | None = None
    pages_visited: list[str] = Field(default_factory=list)
    time_on_site: float = Field(default=0, ge=0, description="Seconds")
    scroll_depth: float = Field(default=0, ge=0, le=100, description="Percent")

    @property
    def used_tools(self) -> bool:
        """True when any interactive tool left a result behind."""
        return bool(
            self.friction_map
            or (self.portfolio_builder and self.portfolio_builder.selected_tasks)
            or self.assessment
            or (self.try_it_widget and self.try_it_widget.challenges)
        )


def score_engagement(session: SessionData) -> int:
    """Score a visit from 0 to 100.

    Each tool used earns a fixed share; time on site and scroll depth add up
    to 10 and 5 points.
    """
    factors = [
        25 if session.friction_map else 0,
        25 if session.portfolio_builder and session.portfolio_builder.selected_tasks else 0,
        20 if session.assessment else 0,
        15 if session.try_it_widget and session.try_it_widget.challenges else 0,
        min(session.time_on_site / FULL_TIME_ON_SITE * 10, 10),
        min(session.scroll_depth / 100 * 5, 5),
    ]
    # Half rounds up.
    return math.floor(sum(factors) + 0.5)


def level_for_score(score: int) -> EngagementLevel:
    if score >= 70:
        return EngagementLevel.HOT
    if score >= 40:
        return EngagementLevel.WARM
    return EngagementLevel.NEW


class LeadSubmission(BaseModel):
    """A booking request from the website's lead form."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=100)
    email: str = Field(pattern=EMAIL_PATTERN, max_length=254)
    job_title: str = Field(default="", max_length=200)
    message: str = Field(default="", max_length=5000)
    session_type: str = Field(default="discovery", max_length=100)
    commitment_level: str | None = Field(
        default=None,
        max_length=20,
        description="Length of engagement the lead picked, e.g. '1hr' or '90d'",
    )
    session_data: SessionData = Field(default_factory=SessionData)

    @property
    def domain(self) -> str:
        """Lower-cased part of the e-mail address after the ``@``."""
        return self.email.rsplit("@", 1)[-1].lower()

    @property
    def commitment_label(self) -> str:
        if not self.commitment_level:
            return ""
        return COMMITMENT_LABELS.get(self.commitment_level, self.commitment_level)

    @property
    def engagement_score(self) -> int:
        return score_engagement(self.session_data)

    @property
    def engagement_level(self) -> EngagementLevel:
        return level_for_score(self.engagement_score)


class ContactSubmission(BaseModel):
    """A general enquiry from the contact form."""

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=100)
    email: str = Field(pattern=EMAIL_PATTERN, max_length=254)
    message: str = Field(min_length=1, max_length=5000)
    company: str = Field(default="", max_length=200)
    role: str = Field(default="", max_length=200)
    interest: str = Field(default="", max_length=200)


class LeadReceipt(BaseModel):
    """Response body for an accepted lead."""

    lead_id: int | None
    company_name: str
    confidence: Confidence
    source: RecordSource
    email_sent: bool
    engagement_score: int = 0


class ContactReceipt(BaseModel):
    """Response body for a delivered contact message."""

    message_id: str
    attempts: int
