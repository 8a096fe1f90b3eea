"""Client endpoints, including MRR derivation and the merged client views."""

import logging
from decimal import Decimal

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from crm_portal.app.db.session import get_db
from crm_portal.app.dependencies.auth import get_current_user
from crm_portal.app.models.client import Client
from crm_portal.app.models.contact import Contact
from crm_portal.app.models.organisation import Organisation
from crm_portal.app.models.user import User
from crm_portal.app.schemas.client import (
    ClientCreate,
    ClientFinancials,
    ClientRead,
    ClientStats,
    ClientUpdate,
    ClientViewList,
    InferredClientViewRead,
    RealClientViewRead,
)
from crm_portal.app.services.aggregation import compute_client_stats
from crm_portal.app.services.client_views import (
    InferredFromContact,
    RealClient,
    build_client_views,
    client_view_mrr,
    total_active_mrr,
)
from crm_portal.app.services.rollup import outstanding_balance, update_mrr_from_invoices

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/clients", tags=["clients"])


def _get_client(db: Session, client_id: int) -> Client:
    client = db.query(Client).filter(Client.id == client_id).first()
    if not client:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")
    return client


def _to_read(client: Client) -> ClientRead:
    total_invoiced = sum((Decimal(str(inv.total_amount or 0)) for inv in client.invoices), Decimal("0.00"))
    data = ClientRead.model_validate(client, from_attributes=True).model_dump()
    data.update(
        organisation_name=client.organisation.name if client.organisation else None,
        total_invoiced=total_invoiced,
    )
    return ClientRead(**data)


def _view_read(view):
    if isinstance(view, RealClient):
        client = view.client
        return RealClientViewRead(
            organisation_id=client.organisation_id,
            organisation_name=client.organisation.name if client.organisation else None,
            client_id=client.id,
            plan=client.plan,
            status=client.status,
            mrr=client_view_mrr(view),
        )
    if isinstance(view, InferredFromContact):
        contact = view.contact
        return InferredClientViewRead(
            organisation_id=contact.organisation_id,
            organisation_name=contact.organisation.name if contact.organisation else None,
            contact_id=contact.id,
            contact_name=contact.full_name,
            contact_status=contact.status,
            mrr=client_view_mrr(view),
        )
    raise TypeError(f"Unsupported client view: {view!r}")


@router.get("/", response_model=list[ClientRead])
async def list_clients(
    status: str | None = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    query = db.query(Client)
    if status:
        query = query.filter(Client.status == status)
    clients = query.order_by(Client.created_at.desc(), Client.id.desc()).all()
    return [_to_read(client) for client in clients]


@router.get("/stats", response_model=ClientStats)
async def client_stats(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return compute_client_stats(db.query(Client).all())


@router.get("/views", response_model=ClientViewList)
async def client_views(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    clients = db.query(Client).order_by(Client.id.asc()).all()
    contacts = db.query(Contact).filter(Contact.organisation_id.isnot(None)).all()
    views = build_client_views(clients, contacts)
    return ClientViewList(views=[_view_read(view) for view in views], total_mrr=total_active_mrr(views))


@router.get("/{client_id}", response_model=ClientRead)
async def get_client(client_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return _to_read(_get_client(db, client_id))


@router.post("/", response_model=ClientRead, status_code=status.HTTP_201_CREATED)
async def create_client(
    payload: ClientCreate, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    organisation = db.query(Organisation).filter(Organisation.id == payload.organisation_id).first()
    if not organisation:
        raise HTTPException(status_code=400, detail="Organisation not found")
    if db.query(Client).filter(Client.organisation_id == payload.organisation_id).first():
        raise HTTPException(status_code=400, detail="Organisation is already a client")
    client = Client(**payload.model_dump())
    db.add(client)
    db.commit()
    db.refresh(client)
    logger.info("Converted organisation %s to client %s", organisation.id, client.id)
    return _to_read(client)


@router.put("/{client_id}", response_model=ClientRead)
async def update_client(
    client_id: int,
    payload: ClientUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    client = _get_client(db, client_id)
    for field, value in payload.model_dump(exclude_unset=True).items():
        if value is not None or field in ("contract_start", "contract_end"):
            setattr(client, field, value)
    db.commit()
    db.refresh(client)
    return _to_read(client)


@router.delete("/{client_id}")
async def delete_client(client_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    client = _get_client(db, client_id)
    # Invoices, their line items and payments go with the client.
    db.delete(client)
    db.commit()
    logger.info("Deleted client %s and its billing records", client_id)
    return {"status": "deleted", "id": client_id}


@router.put("/{client_id}/update-mrr-from-invoices", response_model=ClientRead)
async def update_client_mrr(
    client_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    client = _get_client(db, client_id)
    update_mrr_from_invoices(db, client.id)
    db.refresh(client)
    return _to_read(client)


@router.get("/{client_id}/financials", response_model=ClientFinancials)
async def client_financials(
    client_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)
):
    client = _get_client(db, client_id)
    invoices = list(client.invoices)
    payments = list(client.payments)
    return ClientFinancials(
        client_id=client.id,
        total_invoiced=sum((Decimal(str(i.total_amount or 0)) for i in invoices), Decimal("0.00")),
        total_paid=sum((Decimal(str(p.amount or 0)) for p in payments), Decimal("0.00")),
        outstanding_balance=outstanding_balance(invoices, payments),
        invoice_count=len(invoices),
        payment_count=len(payments),
    )
