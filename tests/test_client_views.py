from decimal import Decimal
from types import SimpleNamespace

import pytest

from crm_portal.app.services.client_views import (
    InferredFromContact,
    RealClient,
    build_client_views,
    client_view_mrr,
    total_active_mrr,
)


def client(id, organisation_id, mrr="0", status="active"):
    return SimpleNamespace(id=id, organisation_id=organisation_id, mrr=Decimal(mrr), status=status)


def contact(id, organisation_id, status="client", is_primary=False):
    return SimpleNamespace(id=id, organisation_id=organisation_id, status=status, is_primary=is_primary)


def test_real_client_wins_over_contact():
    views = build_client_views([client(1, 10, "500")], [contact(5, 10)])
    assert len(views) == 1
    assert isinstance(views[0], RealClient)


def test_one_inferred_view_per_organisation_prefers_primary():
    contacts = [contact(1, 20), contact(2, 20, is_primary=True), contact(3, 20, status="client-expansion")]
    views = build_client_views([], contacts)
    assert len(views) == 1
    assert isinstance(views[0], InferredFromContact)
    assert views[0].contact.id == 2


def test_non_client_contacts_and_orphans_ignored():
    contacts = [contact(1, 30, status="qualified"), contact(2, None), contact(3, 31, status="client-expansion")]
    views = build_client_views([], contacts)
    assert [v.organisation_id for v in views] == [31]


def test_view_mrr_by_variant():
    assert client_view_mrr(RealClient(client(1, 1, "1200.50"))) == Decimal("1200.50")
    assert client_view_mrr(InferredFromContact(contact(1, 2))) == Decimal("0.00")
    with pytest.raises(TypeError):
        client_view_mrr(object())


def test_total_active_mrr_skips_inactive_clients():
    views = build_client_views(
        [client(1, 1, "1000"), client(2, 2, "300", status="churned"), client(3, 3, "50", status="active")],
        [contact(9, 4)],
    )
    assert total_active_mrr(views) == Decimal("1050")
