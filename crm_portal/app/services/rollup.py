"""Invoice totals, MRR derivation and client balance rollups."""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from crm_portal.app.models.client import Client
from crm_portal.app.models.invoice import Invoice
from crm_portal.app.services.errors import NoPaidInvoicesError

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")
TWO_DP = Decimal("0.01")
HUNDRED = Decimal("100")


def _money(value: Decimal) -> Decimal:
    return value.quantize(TWO_DP, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class InvoiceTotals:
    subtotal: Decimal
    tax: Decimal
    total: Decimal


@dataclass
class LineItem:
    description: str = ""
    quantity: Decimal = Decimal("1")
    unit_price: Decimal = ZERO
    total: Decimal = ZERO

    def recompute(self) -> Decimal:
        self.total = _money(Decimal(str(self.quantity or 0)) * Decimal(str(self.unit_price or 0)))
        return self.total


def _is_billable(item) -> bool:
    return bool((item.description or "").strip())


def line_item_total(quantity, unit_price) -> Decimal:
    return _money(Decimal(str(quantity or 0)) * Decimal(str(unit_price or 0)))


def invoice_totals(line_items: Iterable, tax_percent) -> InvoiceTotals:
    """Subtotal over line items with a description, plus percentage tax."""
    subtotal = sum(
        (line_item_total(item.quantity, item.unit_price) for item in line_items if _is_billable(item)),
        ZERO,
    )
    tax = _money(subtotal * Decimal(str(tax_percent or 0)) / HUNDRED)
    return InvoiceTotals(subtotal=_money(subtotal), tax=tax, total=_money(subtotal + tax))


def amount_totals(amount, tax_percent) -> InvoiceTotals:
    """Totals for an invoice billed as a single amount with no line items."""
    subtotal = _money(Decimal(str(amount or 0)))
    tax = _money(subtotal * Decimal(str(tax_percent or 0)) / HUNDRED)
    return InvoiceTotals(subtotal=subtotal, tax=tax, total=_money(subtotal + tax))


def implied_tax_percent(amount, tax) -> Decimal:
    """Percentage that a flat tax amount represents on a pre-tax amount."""
    amount = Decimal(str(amount or 0))
    if amount <= 0:
        return ZERO
    return _money(Decimal(str(tax or 0)) / amount * HUNDRED)


class InvoiceDraft:
    """Editable list of line items with totals kept current after every edit.

    Any change to an item's description, quantity or unit price recomputes
    that item's total and then resums the whole invoice.
    """

    def __init__(self, tax_percent=ZERO, items: Optional[Iterable] = None):
        self.tax_percent = Decimal(str(tax_percent or 0))
        self.items: List[LineItem] = []
        self.totals = InvoiceTotals(ZERO, ZERO, ZERO)
        for item in items or []:
            self.items.append(
                LineItem(description=item.description, quantity=item.quantity, unit_price=item.unit_price)
            )
        for item in self.items:
            item.recompute()
        self._resum()

    def _resum(self) -> InvoiceTotals:
        self.totals = invoice_totals(self.items, self.tax_percent)
        return self.totals

    def add_item(self, description: str = "", quantity=Decimal("1"), unit_price=ZERO) -> LineItem:
        item = LineItem(description=description, quantity=Decimal(str(quantity)), unit_price=Decimal(str(unit_price)))
        item.recompute()
        self.items.append(item)
        self._resum()
        return item

    def update_item(self, index: int, *, description=None, quantity=None, unit_price=None) -> LineItem:
        item = self.items[index]
        if description is not None:
            item.description = description
        if quantity is not None:
            item.quantity = Decimal(str(quantity))
        if unit_price is not None:
            item.unit_price = Decimal(str(unit_price))
        item.recompute()
        self._resum()
        return item

    def remove_item(self, index: int) -> LineItem:
        item = self.items.pop(index)
        self._resum()
        return item

    def set_tax_percent(self, tax_percent) -> InvoiceTotals:
        self.tax_percent = Decimal(str(tax_percent or 0))
        return self._resum()

    def billable_items(self) -> List[LineItem]:
        return [item for item in self.items if _is_billable(item)]


def mrr_from_invoices(invoices: Iterable, client_id=None) -> Decimal:
    """Sum of paid invoice totals; raises NoPaidInvoicesError when none are paid."""
    paid = [inv for inv in invoices if inv.status == "paid"]
    if not paid:
        raise NoPaidInvoicesError(client_id)
    return _money(sum((Decimal(str(inv.total_amount or 0)) for inv in paid), ZERO))


def update_mrr_from_invoices(db: Session, client_id: int) -> Decimal:
    """Derive a client's MRR from its paid invoices and store it.

    The client row is left untouched when there is nothing to derive from.
    """
    client = db.query(Client).filter(Client.id == client_id).first()
    if client is None:
        raise LookupError(f"Client {client_id} not found")
    invoices = db.query(Invoice).filter(Invoice.client_id == client_id, Invoice.status == "paid").all()
    mrr = mrr_from_invoices(invoices, client_id=client_id)
    client.mrr = mrr
    db.commit()
    db.refresh(client)
    logger.info("Updated MRR for client %s to %s from %d paid invoices", client_id, mrr, len(invoices))
    return mrr


def outstanding_balance(invoices: Iterable, payments: Iterable) -> Decimal:
    """All invoiced totals minus all payments.

    Every invoice counts whatever its status, and payments need not be linked
    to an invoice. This is an aggregate approximation, not a per-invoice
    receivable.
    """
    invoiced = sum((Decimal(str(inv.total_amount or 0)) for inv in invoices), ZERO)
    paid = sum((Decimal(str(p.amount or 0)) for p in payments), ZERO)
    return _money(invoiced - paid)
