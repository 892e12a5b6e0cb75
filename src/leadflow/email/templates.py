"""HTML notification templates.

Every user-provided value is escaped before it is interpolated.  Lead
notifications show the enrichment confidence and source so a reader can tell
researched data from a fallback, followed by what the visitor did on the
site and the resulting engagement score.
"""

from __future__ import annotations

from html import escape
from typing import TYPE_CHECKING

from leadflow.domain.types import Confidence
from leadflow.email.models import RenderedMessage

if TYPE_CHECKING:
    from leadflow.enrichment.models import EnrichmentRecord
    from leadflow.leads.models import ContactSubmission, LeadSubmission

_CONFIDENCE_COLORS = {
    Confidence.HIGH: "#15803d",
    Confidence.MEDIUM: "#b45309",
    Confidence.LOW: "#b91c1c",
}


def _row(label: str, value: str) -> str:
    return (
        f'<tr><td style="padding:4px 12px 4px 0;color:#555;">{escape(label)}</td>'
        f"<td style=\"padding:4px 0;\">{escape(value) or '&mdash;'}</td></tr>"
    )


def _paragraphs(text: str) -> str:
    return "<br>".join(escape(line) for line in text.splitlines())


def _engagement_section(lead: LeadSubmission) -> str:
    session = lead.session_data
    items = []
    if session.friction_map:
        items.append(
            f"<li>Friction map: &quot;{escape(session.friction_map.problem)}&quot;,"
            f" {session.friction_map.time_saved:g}h/week potential savings</li>"
        )
    if session.portfolio_builder and session.portfolio_builder.selected_tasks:
        portfolio = session.portfolio_builder
        items.append(
            f"<li>Portfolio builder: {len(portfolio.selected_tasks)} tasks,"
            f" {portfolio.total_time_saved:g}h/week,"
            f" ${portfolio.total_cost_savings:,.0f}/month potential</li>"
        )
    if session.assessment:
        items.append(
            f"<li>Assessment: {escape(session.assessment.profile_type)}"
            f" (recommended: {escape(session.assessment.recommended_product) or '&mdash;'})</li>"
        )
    if session.try_it_widget and session.try_it_widget.challenges:
        challenges = session.try_it_widget.challenges
        last = challenges[-1].input
        if len(last) > 100:
            last = last[:100] + "..."
        items.append(
            f"<li>Try It widget ({len(challenges)}x): &quot;{escape(last)}&quot;</li>"
        )

    minutes, seconds = divmod(int(session.time_on_site), 60)
    html = "<h3>Engagement</h3>"
    if items:
        html += f"<ul>{''.join(items)}</ul>"
    html += (
        "<table>"
        f"{_row('Level', lead.engagement_level.value)}"
        f"{_row('Score', f'{lead.engagement_score}/100')}"
        f"{_row('Time on site', f'{minutes}:{seconds:02d}')}"
        f"{_row('Pages visited', str(len(session.pages_visited)))}"
        "</table>"
    )
    return html


def render_lead_notification(lead: LeadSubmission, record: EnrichmentRecord) -> RenderedMessage:
    """Internal notification for a new booking request, with company research."""
    color = _CONFIDENCE_COLORS[record.confidence]
    html = (
        "<h2>New lead</h2>"
        "<table>"
        f"{_row('Name', lead.name)}"
        f"{_row('Email', lead.email)}"
        f"{_row('Job title', lead.job_title)}"
        f"{_row('Session', lead.session_type)}"
        f"{_row('Commitment', lead.commitment_label)}"
        "</table>"
        "<h3>Company research</h3>"
        f'<p style="color:{color};">Confidence: <strong>{escape(record.confidence.value)}</strong>'
        f" (source: {escape(record.source.value)})</p>"
        "<table>"
        f"{_row('Company', record.company_name)}"
        f"{_row('Industry', record.industry)}"
        f"{_row('Size', record.company_size.value)}"
        f"{_row('Latest news', record.latest_news)}"
        f"{_row('Suggested scope', record.suggested_scope)}"
        "</table>"
    )
    if lead.message:
        html += f"<h3>Message</h3><p>{_paragraphs(lead.message)}</p>"
    html += _engagement_section(lead)

    subject = f"New lead: {lead.name} ({record.company_name})"
    return RenderedMessage(subject=subject, html=html)


def render_contact_notification(contact: ContactSubmission) -> RenderedMessage:
    html = (
        "<h2>New contact message</h2>"
        "<table>"
        f"{_row('Name', contact.name)}"
        f"{_row('Email', contact.email)}"
        f"{_row('Company', contact.company)}"
        f"{_row('Role', contact.role)}"
        f"{_row('Interest', contact.interest)}"
        "</table>"
        f"<h3>Message</h3><p>{_paragraphs(contact.message)}</p>"
    )
    return RenderedMessage(subject=f"Contact form: {contact.name}", html=html)
