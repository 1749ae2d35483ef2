"""Transactional email through the Resend HTTP API."""
from typing import Optional
import html
import logging

import requests

from copyforge.config import settings

logger = logging.getLogger(__name__)

RESEND_ENDPOINT = "https://api.resend.com/emails"


def is_email_configured() -> bool:
    return bool(settings.resend_api_key)


def send_email(to: str, subject: str, html_body: str, timeout: float = 10.0) -> Optional[str]:
    """Send one email. Returns the provider message id, raises on HTTP failure."""
    response = requests.post(
        RESEND_ENDPOINT,
        headers={
            "Authorization": f"Bearer {settings.resend_api_key}",
            "Content-Type": "application/json",
        },
        json={
            "from": settings.email_from,
            "to": [to],
            "subject": subject,
            "html": html_body,
        },
        timeout=timeout,
    )
    response.raise_for_status()
    return response.json().get("id")


def send_invite_email(to: str, organization_name: str, inviter_email: Optional[str], invite_token: str, role: str) -> bool:
    """Invite email; failures are logged and reported as False so the invite itself still succeeds."""
    if not is_email_configured():
        logger.warning("Email not configured, skipping invite email to %s", to)
        return False
    link = f"{settings.app_url}/signup/{invite_token}"
    inviter = html.escape(inviter_email or "A teammate")
    body = (
        f"<p>{inviter} invited you to join <strong>{html.escape(organization_name)}</strong> "
        f"as {html.escape(role.replace('_', ' '))}.</p>"
        f'<p><a href="{link}">Accept invitation</a></p>'
        "<p>This invitation expires in 7 days.</p>"
    )
    try:
        send_email(to, f"You're invited to join {organization_name}", body)
        return True
    except Exception as e:
        logger.error(f"Failed to send invite email to {to}: {e}")
        return False
