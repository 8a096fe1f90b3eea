"""Payment routes. Recording a payment never changes an invoice's status."""

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from crm_portal.app.core.time import utc_now
from crm_portal.app.db.session import get_db
from crm_portal.app.dependencies.auth import get_current_user
from crm_portal.app.models.client import Client
from crm_portal.app.models.invoice import Invoice
from crm_portal.app.models.payment import Payment
from crm_portal.app.models.user import User
from crm_portal.app.schemas.payment import PaymentCreate, PaymentRead, PaymentStats, PaymentUpdate
from crm_portal.app.services.aggregation import compute_payment_stats

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])


def _get_payment(db: Session, payment_id: int) -> Payment:
    payment = db.query(Payment).filter(Payment.id == payment_id).first()
    if not payment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment not found")
    return payment


@router.get("/", response_model=list[PaymentRead])
async def list_payments(
    client_id: int | None = None,
    invoice_id: int | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(Payment)
    if client_id:
        query = query.filter(Payment.client_id == client_id)
    if invoice_id:
        query = query.filter(Payment.invoice_id == invoice_id)
    return query.order_by(Payment.payment_date.desc(), Payment.id.desc()).all()


@router.get("/stats", response_model=PaymentStats)
async def payment_stats(
    client_id: int | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(Payment)
    if client_id:
        query = query.filter(Payment.client_id == client_id)
    return compute_payment_stats(query.all())


@router.get("/{payment_id}", response_model=PaymentRead)
async def get_payment(payment_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _get_payment(db, payment_id)


@router.post("/", response_model=PaymentRead, status_code=status.HTTP_201_CREATED)
async def create_payment(
    payload: PaymentCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    if not db.query(Client).filter(Client.id == payload.client_id).first():
        raise HTTPException(status_code=400, detail="Client not found")
    if payload.invoice_id is not None:
        invoice = db.query(Invoice).filter(Invoice.id == payload.invoice_id).first()
        if not invoice or invoice.client_id != payload.client_id:
            raise HTTPException(status_code=400, detail="Invoice not found for this client")

    payment = Payment(
        client_id=payload.client_id,
        invoice_id=payload.invoice_id,
        amount=payload.amount,
        payment_method=payload.payment_method,
        payment_date=payload.payment_date or utc_now(),
        reference=payload.reference,
        notes=payload.notes,
    )
    db.add(payment)
    db.commit()
    db.refresh(payment)
    logger.info("Recorded payment %s of %s for client %s", payment.id, payment.amount, payment.client_id)
    return payment


@router.put("/{payment_id}", response_model=PaymentRead)
async def update_payment(
    payment_id: int,
    payload: PaymentUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    payment = _get_payment(db, payment_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(payment, field, value)
    db.commit()
    db.refresh(payment)
    return payment


@router.delete("/{payment_id}")
async def delete_payment(payment_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    payment = _get_payment(db, payment_id)
    db.delete(payment)
    db.commit()
    return {"status": "deleted", "id": payment_id}
