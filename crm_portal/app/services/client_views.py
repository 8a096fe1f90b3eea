"""One effective client view per organisation.

An organisation shows up either through its real Client row or, until one
exists, through a contact whose status already marks it as a client.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Union

from crm_portal.app.models.client import Client
from crm_portal.app.models.contact import Contact

CLIENT_CONTACT_STATUSES = ("client", "client-expansion")


@dataclass(frozen=True)
class RealClient:
    client: Client

    @property
    def organisation_id(self) -> int:
        return self.client.organisation_id


@dataclass(frozen=True)
class InferredFromContact:
    contact: Contact

    @property
    def organisation_id(self) -> int:
        return self.contact.organisation_id


ClientView = Union[RealClient, InferredFromContact]


def build_client_views(clients: Iterable[Client], contacts: Iterable[Contact]) -> List[ClientView]:
    views: List[ClientView] = []
    seen = set()
    for client in clients:
        if client.organisation_id in seen:
            continue
        seen.add(client.organisation_id)
        views.append(RealClient(client))

    candidates = [
        c for c in contacts if c.status in CLIENT_CONTACT_STATUSES and c.organisation_id is not None
    ]
    # Primary contacts first so they represent their organisation.
    candidates.sort(key=lambda c: (not c.is_primary, c.id or 0))
    for contact in candidates:
        if contact.organisation_id in seen:
            continue
        seen.add(contact.organisation_id)
        views.append(InferredFromContact(contact))
    return views


def client_view_mrr(view: ClientView) -> Decimal:
    if isinstance(view, RealClient):
        return Decimal(str(view.client.mrr or 0))
    if isinstance(view, InferredFromContact):
        return Decimal("0.00")
    raise TypeError(f"Unsupported client view: {view!r}")


def total_active_mrr(views: Iterable[ClientView]) -> Decimal:
    total = Decimal("0.00")
    for view in views:
        if isinstance(view, RealClient) and view.client.status != "active":
            continue
        total += client_view_mrr(view)
    return total
