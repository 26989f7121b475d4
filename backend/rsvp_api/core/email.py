# backend/rsvp_api/core/email.py
from __future__ import annotations

import html
import logging
from dataclasses import dataclass, field
from typing import List, Optional

import httpx

from rsvp_api.core.config import Settings
from rsvp_api.core.errors import NotificationError

logger = logging.getLogger("rsvp.email")

RESEND_URL = "https://api.resend.com/emails"


@dataclass
class RsvpNotice:
    """Everything the organiser email needs about one accepted RSVP."""

    invite_name: str
    primary_name: str
    attending: bool
    extra_guest_names: List[str] = field(default_factory=list)
    notes: Optional[str] = None
    submitted_at: str = ""
    ip: Optional[str] = None

    @property
    def attending_count(self) -> int:
        return 1 + len(self.extra_guest_names) if self.attending else 0


@dataclass
class EmailMessage:
    subject: str
    text_body: str
    html_body: str


def build_rsvp_email(notice: RsvpNotice) -> EmailMessage:
    response = "Attending" if notice.attending else "Declined"
    guests = notice.extra_guest_names if notice.attending else []

    text_lines = [
        f"Invite: {notice.invite_name}",
        f"Response: {response}",
        f"Total attending (including invitee): {notice.attending_count}",
        f"Primary name: {notice.primary_name}",
        f"Additional guests: {len(guests)}",
        f"Guest names: {', '.join(guests)}" if guests else "Guest names: -",
        f"Notes: {notice.notes}" if notice.notes else "Notes: -",
        f"Submitted: {notice.submitted_at}",
        f"IP: {notice.ip}" if notice.ip else "IP: -",
    ]

    esc = html.escape
    footer_ip = f" &bull; IP: {esc(notice.ip)}" if notice.ip else ""
    html_body = f"""
<div style="font-family: Arial, sans-serif; line-height: 1.5;">
  <h2 style="margin:0 0 10px;">RSVP Received</h2>
  <p><strong>Invite:</strong> {esc(notice.invite_name)}</p>
  <p><strong>Response:</strong> {response}</p>
  <p><strong>Total attending:</strong> {notice.attending_count}</p>
  <p><strong>Primary name:</strong> {esc(notice.primary_name)}</p>
  <p><strong>Additional guest names:</strong> {esc(', '.join(guests)) if guests else '-'}</p>
  <p><strong>Notes:</strong> {esc(notice.notes) if notice.notes else '-'}</p>
  <p style="color:#666;font-size:12px;margin-top:16px;">
    Submitted: {esc(notice.submitted_at)}{footer_ip}
  </p>
</div>
""".strip()

    return EmailMessage(
        subject=f"RSVP: {notice.invite_name} - {response}",
        text_body="\n".join(text_lines),
        html_body=html_body,
    )


class RsvpNotifier:
    """
    Sends the organiser an email for every RSVP.

    Provider selection:
      - EMAIL_PROVIDER=resend -> Resend REST API
      - EMAIL_PROVIDER=log    -> log only

    Unlike a request-path helper this one raises on provider failure; it only
    ever runs inside the background registry, which records and logs it.
    """

    def __init__(self, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None) -> None:
        self.settings = settings
        self._transport = transport

    @property
    def provider(self) -> str:
        return (self.settings.email_provider or "log").strip().lower()

    async def send(self, notice: RsvpNotice) -> None:
        message = build_rsvp_email(notice)

        if self.provider == "resend":
            if not self.settings.resend_api_key:
                logger.warning("EMAIL_PROVIDER=resend but RESEND_API_KEY is not set; falling back to log mode.")
                self._log_email(message)
                return
            await self._send_resend(message)
            return

        self._log_email(message)

    async def _send_resend(self, message: EmailMessage) -> None:
        payload = {
            "from": self.settings.rsvp_from_email,
            "to": [self.settings.rsvp_to_email],
            "subject": message.subject,
            "text": message.text_body,
            "html": message.html_body,
        }

        async with httpx.AsyncClient(
            timeout=self.settings.email_timeout_seconds,
            transport=self._transport,
        ) as client:
            resp = await client.post(
                RESEND_URL,
                json=payload,
                headers={"Authorization": f"Bearer {self.settings.resend_api_key}"},
            )

        if resp.status_code >= 300:
            raise NotificationError(f"Email failed: {resp.status_code} {resp.text[:500]}")

        logger.info("Email sent via Resend to=%s subject=%s", self.settings.rsvp_to_email, message.subject)

    def _log_email(self, message: EmailMessage) -> None:
        logger.info(
            "RSVP email (log mode) to=%s subject=%s\n%s",
            self.settings.rsvp_to_email or "-",
            message.subject,
            message.text_body,
        )
