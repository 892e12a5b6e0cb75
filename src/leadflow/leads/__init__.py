"""Lead intake: request models, engagement scoring, persistence, orchestration, and HTTP routes."""

from leadflow.leads.models import (
    ContactReceipt,
    ContactSubmission,
    LeadReceipt,
    LeadSubmission,
    SessionData,
    level_for_score,
    score_engagement,
)
from leadflow.leads.service import LeadService
from leadflow.leads.store import LeadStore, init_leads_table

__all__ = [
    "ContactReceipt",
    "ContactSubmission",
    "LeadReceipt",
    "LeadService",
    "LeadStore",
    "LeadSubmission",
    "SessionData",
    "init_leads_table",
    "level_for_score",
    "score_engagement",
]
