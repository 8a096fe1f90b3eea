"""Single, bulk and invoice email sending with a persistent sent-email log."""

import logging
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from crm_portal.app.core.session_context import UserSession
from crm_portal.app.core.settings import get_settings
from crm_portal.app.core.time import utc_now
from crm_portal.app.models.contact import Contact
from crm_portal.app.models.email import EmailCampaign, EmailTemplate, SentEmail
from crm_portal.app.models.invoice import Invoice
from crm_portal.app.schemas.email import BulkSendRequest, EmailSendRequest
from crm_portal.app.services.dispatch import DispatchResult, dispatch_in_batches
from crm_portal.app.services.mailer import EmailTransport, OutboundEmail

logger = logging.getLogger(__name__)

CONTACT_FIELDS = {
    "firstName": "first_name",
    "lastName": "last_name",
    "email": "email",
    "jobTitle": "job_title",
}


def render_placeholders(text: Optional[str], variables: Optional[Dict[str, str]]) -> str:
    """Replace each {{key}} in text with its value; unknown keys are left as written."""
    if not text or not variables:
        return text or ""
    for key, value in variables.items():
        text = text.replace("{{" + key + "}}", value or "")
    return text


def contact_variables(contact: Contact) -> Dict[str, str]:
    return {key: getattr(contact, attr, "") or "" for key, attr in CONTACT_FIELDS.items()}


def substitute_variables(text: Optional[str], contact: Contact) -> str:
    return render_placeholders(text, contact_variables(contact))


def _record(
    db: Session,
    transport: EmailTransport,
    email: OutboundEmail,
    result: DispatchResult,
    session: UserSession,
    **links,
) -> SentEmail:
    sent = SentEmail(
        to_email=email.to_email,
        to_name=email.to_name,
        from_email=transport.from_email,
        from_name=transport.from_name,
        subject=email.subject,
        body=email.body,
        html_body=email.html_body,
        status="sent" if result.success else "failed",
        provider_id=result.provider_id,
        error_message=result.error,
        sent_by=session.sender_label,
        sent_at=utc_now(),
        **links,
    )
    db.add(sent)
    return sent


def send_single_email(
    db: Session, transport: EmailTransport, session: UserSession, request: EmailSendRequest
) -> SentEmail:
    """Send one email; the attempt is logged whether or not it succeeds."""
    email = OutboundEmail(
        to_email=request.to_email,
        to_name=request.to_name,
        subject=request.subject,
        body=request.body,
        html_body=session.sign_html(request.html_body),
    )
    result = dispatch_in_batches([email], transport.send_batch, batch_size=1, delay_seconds=0)[0]
    if result.success:
        logger.info("Email sent to %s (provider id %s)", email.to_email, result.provider_id)
    sent = _record(
        db,
        transport,
        email,
        result,
        session,
        contact_id=request.contact_id,
        organisation_id=request.organisation_id,
    )
    db.commit()
    db.refresh(sent)
    return sent


def bulk_send(db: Session, transport: EmailTransport, session: UserSession, request: BulkSendRequest) -> dict:
    settings = get_settings()

    subject, body, html_body = request.subject, request.body, request.html_body or ""
    if request.template_id is not None:
        template = db.query(EmailTemplate).filter(EmailTemplate.id == request.template_id).first()
        if template is not None:
            subject = subject or template.subject
            body = body or template.body
            html_body = html_body or template.html_body

    campaign = None
    if request.campaign_name:
        campaign = EmailCampaign(
            name=request.campaign_name,
            subject=subject,
            body=body,
            html_body=html_body,
            template_id=request.template_id,
            total_recipients=len(request.contact_ids),
            status="sending",
            created_by=session.sender_label,
        )
        db.add(campaign)
        db.commit()
        db.refresh(campaign)

    contacts: List[Contact] = (
        db.query(Contact).filter(Contact.id.in_(request.contact_ids), Contact.email != "").all()
    )
    emails = [
        OutboundEmail(
            to_email=contact.email,
            to_name=contact.full_name,
            subject=substitute_variables(subject, contact),
            body=substitute_variables(body, contact),
            html_body=session.sign_html(substitute_variables(html_body, contact)),
        )
        for contact in contacts
    ]

    results = dispatch_in_batches(
        emails,
        transport.send_batch,
        batch_size=settings.bulk_email_batch_size,
        delay_seconds=settings.bulk_email_delay_ms / 1000,
    )
    for contact, email, result in zip(contacts, emails, results):
        _record(
            db,
            transport,
            email,
            result,
            session,
            contact_id=contact.id,
            organisation_id=contact.organisation_id,
            campaign_id=campaign.id if campaign else None,
        )

    sent_count = sum(1 for r in results if r.success)
    failed_count = len(results) - sent_count
    if campaign is not None:
        campaign.sent_count = sent_count
        campaign.failed_count = failed_count
        campaign.status = "sent"
        campaign.sent_at = utc_now()
    db.commit()
    logger.info("Bulk send finished: %d sent, %d failed", sent_count, failed_count)

    return {
        "total_contacts": len(contacts),
        "sent_count": sent_count,
        "failed_count": failed_count,
        "campaign_id": campaign.id if campaign else None,
        "message": f"Sent {sent_count} emails, {failed_count} failed",
    }


def _invoice_recipient(invoice: Invoice) -> Optional[Contact]:
    organisation = invoice.client.organisation if invoice.client else None
    if organisation is None:
        return None
    contacts = [c for c in organisation.contacts if c.email]
    if not contacts:
        return None
    contacts.sort(key=lambda c: (not c.is_primary, c.id))
    return contacts[0]


def _invoice_email(invoice: Invoice, contact: Contact, session: UserSession) -> OutboundEmail:
    total = Decimal(str(invoice.total_amount or 0)).quantize(Decimal("0.01"))
    due = invoice.due_date.date().isoformat() if invoice.due_date else "on receipt"
    number = invoice.invoice_number or f"#{invoice.id}"
    body = (
        f"Hi {contact.first_name},\n\n"
        f"Please find invoice {number} for ${total} attached. Payment is due {due}.\n"
    )
    html_body = (
        f"<p>Hi {contact.first_name},</p>"
        f"<p>Please find invoice <strong>{number}</strong> for <strong>${total}</strong>. "
        f"Payment is due {due}.</p>"
    )
    return OutboundEmail(
        to_email=contact.email,
        to_name=contact.full_name,
        subject=f"Invoice {number}",
        body=body,
        html_body=session.sign_html(html_body),
    )


def send_invoices(
    db: Session, transport: EmailTransport, session: UserSession, invoices: List[Invoice]
) -> List[DispatchResult]:
    """Email invoices to each client's primary contact and mark them sent.

    Invoices without a reachable contact come back as failed results without
    being dispatched.
    """
    settings = get_settings()
    outgoing = []
    skipped: List[DispatchResult] = []
    for invoice in invoices:
        contact = _invoice_recipient(invoice)
        if contact is None:
            skipped.append(DispatchResult(recipient=invoice, success=False, error="No contact email for client"))
            continue
        outgoing.append((invoice, contact, _invoice_email(invoice, contact, session)))

    results = dispatch_in_batches(
        [email for _, _, email in outgoing],
        transport.send_batch,
        batch_size=settings.invoice_email_batch_size,
        delay_seconds=settings.invoice_email_delay_ms / 1000,
    )

    invoice_results: List[DispatchResult] = []
    for (invoice, contact, email), result in zip(outgoing, results):
        _record(
            db,
            transport,
            email,
            result,
            session,
            contact_id=contact.id,
            organisation_id=contact.organisation_id,
            invoice_id=invoice.id,
        )
        if result.success and invoice.status in ("draft", "overdue"):
            invoice.status = "sent"
        invoice_results.append(
            DispatchResult(recipient=invoice, success=result.success, provider_id=result.provider_id, error=result.error)
        )
    db.commit()
    sent_count = sum(1 for r in invoice_results if r.success)
    logger.info("Invoice dispatch: %d sent, %d failed", sent_count, len(invoices) - sent_count)
    return invoice_results + skipped
