"""Invoice routes: CRUD, totals preview, lifecycle transitions and sending."""

import logging
from decimal import Decimal
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from crm_portal.app.core.session_context import UserSession
from crm_portal.app.core.time import utc_now
from crm_portal.app.db.session import get_db
from crm_portal.app.dependencies.auth import get_current_user, get_user_session
from crm_portal.app.models.client import Client
from crm_portal.app.models.invoice import Invoice
from crm_portal.app.models.invoice_line_item import InvoiceLineItem
from crm_portal.app.models.user import User
from crm_portal.app.schemas.invoice import (
    BulkInvoiceSend,
    InvoiceCreate,
    InvoiceRead,
    InvoiceStats,
    InvoiceTotalsRead,
    InvoiceUpdate,
    TotalsPreviewRequest,
)
from crm_portal.app.services.aggregation import compute_invoice_stats
from crm_portal.app.services.email_service import send_invoices
from crm_portal.app.services.mailer import EmailTransport, get_email_transport
from crm_portal.app.services.rollup import InvoiceDraft, amount_totals, implied_tax_percent

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/invoices", tags=["invoices"])

SENDABLE_STATUSES = {"draft", "sent", "overdue"}


def _get_invoice(db: Session, invoice_id: int) -> Invoice:
    invoice = db.query(Invoice).filter(Invoice.id == invoice_id).first()
    if not invoice:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    return invoice


def _replace_line_items(invoice: Invoice, draft: InvoiceDraft) -> None:
    invoice.line_items.clear()
    for index, item in enumerate(draft.billable_items()):
        invoice.line_items.append(
            InvoiceLineItem(
                description=item.description,
                quantity=item.quantity,
                unit_price=item.unit_price,
                total=item.total,
                sort_order=index,
            )
        )


def _check_invoice_number(db: Session, invoice_number: str, invoice_id: int | None = None) -> None:
    if not invoice_number:
        return
    query = db.query(Invoice).filter(Invoice.invoice_number == invoice_number)
    if invoice_id is not None:
        query = query.filter(Invoice.id != invoice_id)
    if query.first():
        raise HTTPException(status_code=400, detail="Invoice number already in use")


@router.get("/", response_model=List[InvoiceRead])
async def list_invoices(
    status: str | None = None,
    client_id: int | None = None,
    skip: int = 0,
    limit: int = 100,
    sort_by: str = "created_at",
    sort_order: str = "desc",
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(Invoice)
    if status:
        query = query.filter(Invoice.status == status)
    if client_id:
        query = query.filter(Invoice.client_id == client_id)

    supported_sort_fields = {
        "created_at": Invoice.created_at,
        "status": Invoice.status,
        "total_amount": Invoice.total_amount,
        "due_date": Invoice.due_date,
        "issue_date": Invoice.issue_date,
    }
    if sort_by not in supported_sort_fields:
        raise HTTPException(status_code=400, detail="Invalid sort_by value")
    sort_order_normalized = (sort_order or "desc").lower()
    if sort_order_normalized not in {"asc", "desc"}:
        raise HTTPException(status_code=400, detail="Invalid sort_order value")
    sort_column = supported_sort_fields[sort_by]
    if sort_order_normalized == "asc":
        order_by_clause = [sort_column.asc(), Invoice.id.asc()]
    else:
        order_by_clause = [sort_column.desc(), Invoice.id.desc()]

    return query.order_by(*order_by_clause).offset(skip).limit(limit).all()


@router.get("/stats", response_model=InvoiceStats)
async def invoice_stats(
    client_id: int | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(Invoice)
    if client_id:
        query = query.filter(Invoice.client_id == client_id)
    return compute_invoice_stats(query.all())


@router.post("/preview-totals", response_model=InvoiceTotalsRead)
async def preview_totals(payload: TotalsPreviewRequest, current_user: User = Depends(get_current_user)):
    totals = InvoiceDraft(tax_percent=payload.tax_rate, items=payload.line_items).totals
    return InvoiceTotalsRead(subtotal=totals.subtotal, tax=totals.tax, total=totals.total)


@router.post("/send-bulk")
def send_invoices_bulk(
    payload: BulkInvoiceSend,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_user_session),
    transport: EmailTransport = Depends(get_email_transport),
):
    if not payload.invoice_ids:
        raise HTTPException(status_code=400, detail="No invoice ids supplied")
    invoices = db.query(Invoice).filter(Invoice.id.in_(payload.invoice_ids)).all()
    found = {invoice.id for invoice in invoices}
    sendable = [invoice for invoice in invoices if invoice.status in SENDABLE_STATUSES]

    rows = []
    for invoice_id in payload.invoice_ids:
        if invoice_id not in found:
            rows.append({"invoice_id": invoice_id, "success": False, "error": "Invoice not found"})
    for invoice in invoices:
        if invoice.status not in SENDABLE_STATUSES:
            rows.append({"invoice_id": invoice.id, "success": False, "error": f"Invoice is {invoice.status}"})
    for result in send_invoices(db, transport, session, sendable):
        rows.append({"invoice_id": result.recipient.id, "success": result.success, "error": result.error})

    sent_count = sum(1 for row in rows if row["success"])
    return {
        "total": len(payload.invoice_ids),
        "sent_count": sent_count,
        "failed_count": len(rows) - sent_count,
        "results": rows,
    }


@router.get("/{invoice_id}", response_model=InvoiceRead)
async def get_invoice(invoice_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _get_invoice(db, invoice_id)


@router.post("/", response_model=InvoiceRead, status_code=status.HTTP_201_CREATED)
async def create_invoice(
    payload: InvoiceCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    if not db.query(Client).filter(Client.id == payload.client_id).first():
        raise HTTPException(status_code=400, detail="Client not found")
    _check_invoice_number(db, payload.invoice_number)

    invoice = Invoice(
        client_id=payload.client_id,
        invoice_number=payload.invoice_number,
        description=payload.description,
        tax_rate=payload.tax_rate,
        status=payload.status,
        issue_date=payload.issue_date or utc_now(),
        due_date=payload.due_date,
        notes=payload.notes,
    )
    if payload.line_items:
        draft = InvoiceDraft(tax_percent=payload.tax_rate, items=payload.line_items)
        _replace_line_items(invoice, draft)
        totals = draft.totals
    else:
        totals = amount_totals(payload.amount, payload.tax_rate)
    invoice.amount = totals.subtotal
    invoice.tax = totals.tax
    invoice.total_amount = totals.total
    if invoice.status == "paid":
        invoice.paid_date = utc_now()

    db.add(invoice)
    db.commit()
    db.refresh(invoice)
    if not invoice.invoice_number:
        invoice.invoice_number = f"INV-{invoice.id:05d}"
        db.commit()
        db.refresh(invoice)
    logger.info("Created invoice %s for client %s", invoice.id, invoice.client_id)
    return invoice


@router.put("/{invoice_id}", response_model=InvoiceRead)
async def update_invoice(
    invoice_id: int,
    payload: InvoiceUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    invoice = _get_invoice(db, invoice_id)
    if payload.invoice_number is not None:
        _check_invoice_number(db, payload.invoice_number, invoice.id)
        invoice.invoice_number = payload.invoice_number

    for field in ("description", "issue_date", "due_date", "paid_date", "notes"):
        value = getattr(payload, field)
        if value is not None:
            setattr(invoice, field, value)

    amounts_changed = False
    if payload.tax_rate is not None:
        invoice.tax_rate = payload.tax_rate
        amounts_changed = True
    if payload.line_items is not None:
        draft = InvoiceDraft(tax_percent=invoice.tax_rate, items=payload.line_items)
        _replace_line_items(invoice, draft)
        invoice.amount = draft.totals.subtotal
        amounts_changed = True
    elif payload.amount is not None:
        # Itemised invoices take their amount from the items.
        if invoice.line_items:
            raise HTTPException(status_code=400, detail="Invoice has line items; edit the items instead of the amount")
        invoice.amount = payload.amount
        amounts_changed = True

    if payload.tax is not None:
        # A flat tax edit wins over the stored rate; keep the rate in step.
        invoice.tax = payload.tax
        invoice.tax_rate = implied_tax_percent(invoice.amount, payload.tax)
        invoice.total_amount = Decimal(str(invoice.amount or 0)) + payload.tax
    elif amounts_changed:
        totals = amount_totals(invoice.amount, invoice.tax_rate)
        invoice.tax = totals.tax
        invoice.total_amount = totals.total

    if payload.status is not None:
        invoice.status = payload.status
        if payload.status == "paid" and invoice.paid_date is None:
            invoice.paid_date = utc_now()

    db.commit()
    db.refresh(invoice)
    return invoice


@router.delete("/{invoice_id}")
async def delete_invoice(invoice_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    invoice = _get_invoice(db, invoice_id)
    for payment in list(invoice.payments):
        payment.invoice_id = None
    db.delete(invoice)
    db.commit()
    logger.info("Deleted invoice %s", invoice_id)
    return {"status": "deleted", "id": invoice_id}


@router.post("/{invoice_id}/send", response_model=InvoiceRead)
def send_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_user_session),
    transport: EmailTransport = Depends(get_email_transport),
):
    invoice = _get_invoice(db, invoice_id)
    if invoice.status not in SENDABLE_STATUSES:
        raise HTTPException(status_code=400, detail=f"Cannot send an invoice that is {invoice.status}")
    result = send_invoices(db, transport, session, [invoice])[0]
    if not result.success:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=result.error or "Invoice email failed")
    db.refresh(invoice)
    return invoice


@router.post("/{invoice_id}/mark-paid", response_model=InvoiceRead)
async def mark_invoice_paid(
    invoice_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    invoice = _get_invoice(db, invoice_id)
    if invoice.status == "cancelled":
        raise HTTPException(status_code=400, detail="Cannot mark a cancelled invoice as paid")
    invoice.status = "paid"
    invoice.paid_date = utc_now()
    db.commit()
    db.refresh(invoice)
    logger.info("Invoice %s marked paid", invoice.id)
    return invoice


@router.post("/{invoice_id}/cancel", response_model=InvoiceRead)
async def cancel_invoice(
    invoice_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    invoice = _get_invoice(db, invoice_id)
    if invoice.status == "paid":
        raise HTTPException(status_code=400, detail="Cannot cancel a paid invoice")
    invoice.status = "cancelled"
    db.commit()
    db.refresh(invoice)
    return invoice
