"""Lead intake orchestration.

``process_lead`` resolves company research, records the lead, and sends the
internal notification.  Research and the notification are both best effort:
a lead is never rejected because the model or the mail provider is down.
``send_contact`` is a dedicated send, so its delivery failure propagates to
the caller.
"""

from __future__ import annotations

import sqlite3

import structlog

from leadflow.domain.errors import NotificationDeliveryFailed
from leadflow.email.dispatcher import NotificationDispatcher
from leadflow.email.models import DispatchRequest, DispatchResult
from leadflow.email.templates import render_contact_notification, render_lead_notification
from leadflow.enrichment.models import EnrichmentRecord, ResearchContext
from leadflow.enrichment.pipeline import EnrichmentPipeline
from leadflow.leads.models import ContactReceipt, ContactSubmission, LeadReceipt, LeadSubmission
from leadflow.leads.store import LeadStore

logger = structlog.get_logger()


class LeadService:
    """Glue between the HTTP routes, the enrichment pipeline, and e-mail.

    Args:
        pipeline: Resolves a lead's domain to company research.
        dispatcher: Sends notifications.
        store: Persists leads, or ``None`` to skip recording.
        notification_to: Internal inbox receiving lead and contact notifications.
        lead_sender: ``From`` address for lead notifications.
        contact_sender: ``From`` address for contact notifications.
    """

    def __init__(
        self,
        pipeline: EnrichmentPipeline,
        dispatcher: NotificationDispatcher,
        store: LeadStore | None,
        *,
        notification_to: str,
        lead_sender: str | None = None,
        contact_sender: str | None = None,
    ) -> None:
        self._pipeline = pipeline
        self._dispatcher = dispatcher
        self._store = store
        self._notification_to = notification_to
        self._lead_sender = lead_sender
        self._contact_sender = contact_sender

    async def process_lead(self, lead: LeadSubmission) -> LeadReceipt:
        """Enrich, record, and announce a new lead."""
        log = logger.bind(domain=lead.domain)

        research = await self._pipeline.resolve(
            lead.domain, ResearchContext(job_title=lead.job_title)
        )
        log.info(
            "Lead enriched",
            company=research.company_name,
            confidence=research.confidence.value,
            source=research.source.value,
            engagement_score=lead.engagement_score,
        )

        lead_id = await self._record(lead, research)
        email_sent = await self._notify(lead, research)

        if email_sent and lead_id is not None and self._store is not None:
            try:
                await self._store.mark_email_sent(lead_id)
            except sqlite3.Error:
                log.exception("Failed to mark lead notification sent", lead_id=lead_id)

        return LeadReceipt(
            lead_id=lead_id,
            company_name=research.company_name,
            confidence=research.confidence,
            source=research.source,
            email_sent=email_sent,
            engagement_score=lead.engagement_score,
        )

    async def send_contact(self, contact: ContactSubmission) -> ContactReceipt:
        """Forward a contact-form message to the internal inbox.

        Raises:
            NotificationDeliveryFailed: The message could not be delivered.
        """
        rendered = render_contact_notification(contact)
        result: DispatchResult = await self._dispatcher.send(
            DispatchRequest(
                recipient=self._notification_to,
                subject=rendered.subject,
                html=rendered.html,
                reply_to=contact.email,
                sender=self._contact_sender,
            )
        )
        return ContactReceipt(message_id=result.message_id, attempts=result.attempts)

    async def _record(self, lead: LeadSubmission, research: EnrichmentRecord) -> int | None:
        if self._store is None:
            return None
        try:
            return await self._store.record(lead, research)
        except sqlite3.Error:
            logger.exception("Failed to record lead", domain=lead.domain)
            return None

    async def _notify(self, lead: LeadSubmission, research: EnrichmentRecord) -> bool:
        rendered = render_lead_notification(lead, research)
        try:
            await self._dispatcher.send(
                DispatchRequest(
                    recipient=self._notification_to,
                    subject=rendered.subject,
                    html=rendered.html,
                    reply_to=lead.email,
                    sender=self._lead_sender,
                )
            )
        except NotificationDeliveryFailed as exc:
            logger.warning(
                "Lead notification not delivered",
                domain=lead.domain,
                attempts=exc.attempts,
                exception=str(exc.cause),
            )
            return False
        return True
