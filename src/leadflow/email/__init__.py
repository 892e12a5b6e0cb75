"""Transactional e-mail: Resend client, retrying dispatcher, templates."""

from leadflow.email.client import RESEND_API_URL, ResendClient
from leadflow.email.dispatcher import NotificationDispatcher
from leadflow.email.models import DispatchRequest, DispatchResult, OutboundEmail, RenderedMessage
from leadflow.email.templates import render_contact_notification, render_lead_notification

__all__ = [
    "RESEND_API_URL",
    "DispatchRequest",
    "DispatchResult",
    "NotificationDispatcher",
    "OutboundEmail",
    "RenderedMessage",
    "ResendClient",
    "render_contact_notification",
    "render_lead_notification",
]
