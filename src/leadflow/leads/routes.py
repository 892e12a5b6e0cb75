"""HTTP routes for lead intake.

The ``LeadService`` is looked up from ``app.state.services`` so the routes
carry no construction logic and tests can swap the service out.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, HTTPException, Request

from leadflow.domain.errors import NotificationDeliveryFailed
from leadflow.leads.models import ContactReceipt, ContactSubmission, LeadReceipt, LeadSubmission
from leadflow.leads.service import LeadService

logger = structlog.get_logger()

router = APIRouter(prefix="/api")


def _lead_service(request: Request) -> LeadService:
    service: LeadService | None = request.app.state.services.get("lead_service")
    if service is None:
        raise HTTPException(status_code=503, detail="Lead service not initialized")
    return service


@router.post("/leads", response_model=LeadReceipt)
async def submit_lead(lead: LeadSubmission, request: Request) -> LeadReceipt:
    """Accept a booking request.  Enrichment and notification are best effort."""
    return await _lead_service(request).process_lead(lead)


@router.post("/contact", response_model=ContactReceipt)
async def submit_contact(contact: ContactSubmission, request: Request) -> ContactReceipt:
    """Deliver a contact-form message.

    Raises:
        HTTPException: 502 when the e-mail provider could not take the message.
    """
    try:
        return await _lead_service(request).send_contact(contact)
    except NotificationDeliveryFailed as exc:
        logger.error("Contact message not delivered", attempts=exc.attempts)
        raise HTTPException(status_code=502, detail="Failed to send message") from exc
