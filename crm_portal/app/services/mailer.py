"""Outbound email transport backed by the Resend HTTP API."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional

import httpx

from crm_portal.app.core.settings import get_settings

logger = logging.getLogger(__name__)


@dataclass
class OutboundEmail:
    to_email: str
    subject: str
    to_name: str = ""
    body: str = ""
    html_body: str = ""


class MailTransportError(RuntimeError):
    pass


class EmailTransport(ABC):
    """Deliver a batch and return one provider id per email."""

    from_email: str = ""
    from_name: str = ""

    @abstractmethod
    def send_batch(self, emails: List[OutboundEmail]) -> List[Optional[str]]:
        """Send every email in one provider call; raise MailTransportError on failure."""


class ResendTransport(EmailTransport):
    def __init__(self, api_key: str, from_email: str, from_name: str, base_url: str, timeout: float = 30.0):
        self.api_key = api_key
        self.from_email = from_email
        self.from_name = from_name
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _payload(self, email: OutboundEmail) -> dict:
        to = f"{email.to_name} <{email.to_email}>" if email.to_name else email.to_email
        payload = {
            "from": f"{self.from_name} <{self.from_email}>",
            "to": [to],
            "subject": email.subject,
            "text": email.body,
        }
        if email.html_body:
            payload["html"] = email.html_body
        return payload

    def send_batch(self, emails: List[OutboundEmail]) -> List[Optional[str]]:
        if not self.api_key:
            raise MailTransportError("RESEND_API_KEY is not configured")
        with httpx.Client(timeout=self.timeout) as client:
            resp = client.post(
                f"{self.base_url}/emails/batch",
                json=[self._payload(email) for email in emails],
                headers={"Authorization": f"Bearer {self.api_key}"},
            )
        if resp.status_code not in (200, 201):
            raise MailTransportError(f"Resend returned {resp.status_code}: {resp.text}")
        data = resp.json().get("data", [])
        logger.info("Resend accepted %d emails", len(data))
        return [entry.get("id") for entry in data]


def get_email_transport() -> EmailTransport:
    settings = get_settings()
    return ResendTransport(
        api_key=settings.resend_api_key,
        from_email=settings.mail_from_email,
        from_name=settings.mail_from_name,
        base_url=settings.resend_api_url,
    )
