"""
Email Transport using Resend

Wraps the Resend SDK in a small transport object so that the reminder
pipeline and the notification endpoints receive it as a collaborator and
tests can pass a fake.

A transport makes exactly one attempt per send() call. Retrying is the
caller's decision (see reminders.dispatcher.send_with_retry).
"""

import asyncio
import logging
from html import escape
from typing import Protocol

import resend

from hold_tracker.core.config import Settings

logger = logging.getLogger(__name__)


class MailSendError(Exception):
    """A single send attempt failed (provider error or timeout)."""


class MailTransportUnconfiguredError(RuntimeError):
    """The transport has no API key or sender and cannot send anything."""

    def __init__(self, message: str = "Mail transport is not configured (RESEND_API_KEY missing)"):
        super().__init__(message)


class MailTransport(Protocol):
    """What the rest of the app needs from an email transport."""

    @property
    def is_configured(self) -> bool: ...

    async def send(self, to: str, subject: str, html_content: str) -> str:
        """Send one message and return the provider message id."""
        ...


class ResendMailTransport:
    """
    MailTransport backed by the Resend API.

    Resend's client is synchronous, so each call runs in a worker thread and
    is bounded by `timeout` seconds. A timeout counts as a failed attempt.
    """

    def __init__(self, api_key: str | None, sender: str, timeout: float = 15.0):
        self._api_key = api_key
        self.sender = sender
        self.timeout = timeout

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key and self.sender)

    async def send(self, to: str, subject: str, html_content: str) -> str:
        """
        Send one email.

        Returns:
            The Resend message id

        Raises:
            MailTransportUnconfiguredError: No API key or sender
            MailSendError: The provider rejected the message or timed out
        """
        if not self.is_configured:
            raise MailTransportUnconfiguredError()

        resend.api_key = self._api_key
        params: resend.Emails.SendParams = {
            "from": self.sender,
            "to": [to],
            "subject": subject,
            "html": html_content,
        }

        try:
            # Run sync Resend call in thread pool to avoid blocking event loop
            email = await asyncio.wait_for(
                asyncio.to_thread(resend.Emails.send, params),
                timeout=self.timeout,
            )
        except TimeoutError as e:
            raise MailSendError(f"Send timed out after {self.timeout}s") from e
        except Exception as e:
            raise MailSendError(str(e)) from e

        message_id = email["id"] if isinstance(email, dict) else getattr(email, "id", "")
        logger.info(f"Email sent to {to}, id: {message_id}")
        return message_id


def build_mail_transport(settings: Settings) -> ResendMailTransport:
    """Create the process mail transport. An unset API key yields an unconfigured transport."""
    transport = ResendMailTransport(
        api_key=settings.resend_api_key,
        sender=settings.email_from,
        timeout=settings.send_timeout_seconds,
    )
    if not transport.is_configured:
        logger.warning("RESEND_API_KEY not set - reminder batches will abort until it is")
    return transport


def render_email_layout(title: str, body_html: str) -> str:
    """
    Wrap pre-rendered body HTML in the shared email layout.

    `title` is escaped here; `body_html` must already be escaped by the caller.
    """
    safe_title = escape(title)
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <style>
            body {{ font-family: system-ui, -apple-system, sans-serif; line-height: 1.6; color: #1f2937; }}
            .container {{ max-width: 720px; margin: 0 auto; padding: 40px 20px; }}
            .header {{ color: #1a365d; margin-bottom: 24px; }}
            table {{ border-collapse: collapse; width: 100%; margin: 16px 0; }}
            th, td {{ border: 1px solid #e5e7eb; padding: 8px; text-align: left; font-size: 14px; }}
            th {{ background-color: #f3f4f6; }}
            .footer {{ margin-top: 40px; padding-top: 20px; border-top: 1px solid #e5e7eb; color: #6b7280; font-size: 14px; }}
        </style>
    </head>
    <body>
        <div class="container">
            <h1 class="header">{safe_title}</h1>
            {body_html}
            <div class="footer">
                <p>Generated by Hold Tracker</p>
            </div>
        </div>
    </body>
    </html>
    """
