"""
backend/notifications.py

Notification dispatcher: emails the owning agent when a lead is captured.
Sends through the SendGrid v3 mail/send API.
"""

from __future__ import annotations

import html
import logging
from typing import Optional, Protocol

import requests

from backend.config import Settings
from backend.errors import UpstreamError
from backend.models import LeadContact

logger = logging.getLogger(__name__)

SENDGRID_SEND_URL = "https://api.sendgrid.com/v3/mail/send"


class NotificationDispatcher(Protocol):
    def notify_new_lead(self, agent_email: str, listing_title: str, lead: LeadContact) -> None: ...


def render_new_lead_email(listing_title: str, lead: LeadContact) -> tuple[str, str, str]:
    """Return (subject, text, html) for a new-lead notification."""
    phone = lead.phone or "N/A"
    subject = f"NEW LEAD: Inquiry for listing: {listing_title}"

    text = (
        f"You have a new lead for your listing: {listing_title}.\n\n"
        "Lead Details:\n"
        f"Name: {lead.name}\n"
        f"Email: {lead.email}\n"
        f"Phone: {phone}\n"
        f"Message: {lead.message}\n\n"
        "Action Required: Log into your dashboard to contact them immediately!\n"
    )

    esc = html.escape
    body = (
        '<div style="font-family: Arial, sans-serif; line-height: 1.6; color: #333;">'
        '<h2 style="color: #007bff;">New Property Inquiry!</h2>'
        f"<p>You have a new lead for your listing: <strong>{esc(listing_title)}</strong>.</p>"
        '<div style="border: 1px solid #ddd; padding: 15px; margin: 20px 0; background-color: #f9f9f9;">'
        "<h4>Lead Details:</h4><ul>"
        f"<li><strong>Name:</strong> {esc(lead.name)}</li>"
        f'<li><strong>Email:</strong> <a href="mailto:{esc(lead.email)}">{esc(lead.email)}</a></li>'
        f"<li><strong>Phone:</strong> {esc(phone)}</li>"
        f"<li><strong>Message:</strong> {esc(lead.message)}</li>"
        "</ul></div>"
        "<p><strong>Action Required:</strong> Log into your agent dashboard to manage this lead.</p>"
        "</div>"
    )
    return subject, text, body


class SendGridNotifier:
    def __init__(
        self,
        api_key: Optional[str],
        sender_email: str,
        session: Optional[requests.Session] = None,
        timeout: int = 20,
    ):
        self._api_key = api_key
        self.sender_email = sender_email
        self.session = session or requests.Session()
        self.timeout = timeout

    def send(self, to_email: str, subject: str, text: str, html_body: str) -> None:
        """
        Raises:
            UpstreamError: Not configured, network failure or non-2xx response
        """
        if not self._api_key:
            logger.error("[EMAIL] Send blocked, API key missing. subject=%r", subject)
            raise UpstreamError("Email service is not configured.")

        message = {
            "personalizations": [{"to": [{"email": to_email}]}],
            "from": {"email": self.sender_email},
            "subject": subject,
            "content": [
                {"type": "text/plain", "value": text},
                {"type": "text/html", "value": html_body},
            ],
        }
        try:
            resp = self.session.post(
                SENDGRID_SEND_URL,
                json=message,
                headers={"Authorization": f"Bearer {self._api_key}"},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("[EMAIL] SendGrid request failed: %s", type(e).__name__)
            raise UpstreamError("Failed to send email notification to agent.") from e

        if resp.status_code >= 400:
            logger.error("[EMAIL] SendGrid error: status=%s body=%s", resp.status_code, resp.text[:300])
            raise UpstreamError("Failed to send email notification to agent.")

    def notify_new_lead(self, agent_email: str, listing_title: str, lead: LeadContact) -> None:
        subject, text, html_body = render_new_lead_email(listing_title, lead)
        self.send(agent_email, subject, text, html_body)
        logger.info("[EMAIL] Lead notification sent to agent")


def build_notifier(settings: Settings) -> SendGridNotifier:
    if not settings.sendgrid_api_key:
        logger.error("[EMAIL] SENDGRID_API_KEY is not defined; lead notifications will fail")
    return SendGridNotifier(api_key=settings.sendgrid_api_key, sender_email=settings.sender_email)
