import pytest
from fastapi.testclient import TestClient

from crm_portal.app.db.base import Base
from crm_portal.app.db.session import SessionLocal, engine
from crm_portal.app.main import app
from crm_portal.app.models.email import SentEmail
from crm_portal.app.services.mailer import EmailTransport, MailTransportError, get_email_transport


class FakeTransport(EmailTransport):
    from_email = "billing@example.com"
    from_name = "Billing"

    def __init__(self, fail=False):
        self.fail = fail
        self.batches = []

    def send_batch(self, emails):
        self.batches.append(list(emails))
        if self.fail:
            raise MailTransportError("provider down")
        return [f"msg-{len(self.batches)}-{i}" for i in range(len(emails))]


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)
    app.dependency_overrides.clear()


def register_and_login(client: TestClient, email: str, password: str) -> str:
    client.post("/auth/register", json={"email": email, "password": password})
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200
    return response.json()["access_token"]


def setup_client(client: TestClient, headers: dict, with_contact: bool = True) -> int:
    org_id = client.post("/organisations/", json={"name": "Acme"}, headers=headers).json()["id"]
    if with_contact:
        client.post(
            "/contacts/",
            json={
                "first_name": "Jo",
                "last_name": "Payer",
                "email": "jo@acme.test",
                "organisation_id": org_id,
                "is_primary": True,
            },
            headers=headers,
        )
    return client.post("/clients/", json={"organisation_id": org_id}, headers=headers).json()["id"]


def test_create_invoice_from_line_items():
    client = TestClient(app)
    token = register_and_login(client, "inv@example.com", "secret")
    headers = {"Authorization": f"Bearer {token}"}
    client_id = setup_client(client, headers)

    response = client.post(
        "/invoices/",
        json={
            "client_id": client_id,
            "tax_rate": "10",
            "line_items": [
                {"description": "Fourtify Professional", "quantity": "2", "unit_price": "2099"},
                {"description": "", "quantity": "1", "unit_price": "999"},
            ],
        },
        headers=headers,
    )
    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "draft"
    assert float(data["amount"]) == 4198.00
    assert float(data["tax"]) == 419.80
    assert float(data["total_amount"]) == 4617.80
    assert len(data["line_items"]) == 1
    assert data["invoice_number"] == f"INV-{data['id']:05d}"


def test_create_invoice_for_unknown_client():
    client = TestClient(app)
    token = register_and_login(client, "inv2@example.com", "secret")
    response = client.post("/invoices/", json={"client_id": 99}, headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 400


def test_duplicate_invoice_number_rejected():
    client = TestClient(app)
    token = register_and_login(client, "dupinv@example.com", "secret")
    headers = {"Authorization": f"Bearer {token}"}
    client_id = setup_client(client, headers)
    payload = {"client_id": client_id, "invoice_number": "INV-1", "amount": "10"}
    assert client.post("/invoices/", json=payload, headers=headers).status_code == 201
    assert client.post("/invoices/", json=payload, headers=headers).status_code == 400


def test_update_line_items_recomputes_totals():
    client = TestClient(app)
    token = register_and_login(client, "upd@example.com", "secret")
    headers = {"Authorization": f"Bearer {token}"}
    client_id = setup_client(client, headers)
    invoice = client.post(
        "/invoices/", json={"client_id": client_id, "amount": "100", "tax_rate": "10"}, headers=headers
    ).json()
    assert float(invoice["total_amount"]) == 110

    response = client.put(
        f"/invoices/{invoice['id']}",
        json={"line_items": [{"description": "Audit", "quantity": "3", "unit_price": "50"}]},
        headers=headers,
    )
    data = response.json()
    assert float(data["amount"]) == 150
    assert float(data["tax"]) == 15
    assert float(data["total_amount"]) == 165


def test_amount_edit_rejected_on_itemised_invoice():
    client = TestClient(app)
    token = register_and_login(client, "itemised@example.com", "secret")
    headers = {"Authorization": f"Bearer {token}"}
    client_id = setup_client(client, headers)
    invoice = client.post(
        "/invoices/",
        json={"client_id": client_id, "line_items": [{"description": "Audit", "quantity": "2", "unit_price": "50"}]},
        headers=headers,
    ).json()

    response = client.put(f"/invoices/{invoice['id']}", json={"amount": "999"}, headers=headers)
    assert response.status_code == 400
    stored = client.get(f"/invoices/{invoice['id']}", headers=headers).json()
    assert float(stored["amount"]) == 100
    assert len(stored["line_items"]) == 1

    cleared = client.put(f"/invoices/{invoice['id']}", json={"line_items": []}, headers=headers).json()
    assert cleared["line_items"] == []
    updated = client.put(f"/invoices/{invoice['id']}", json={"amount": "80"}, headers=headers).json()
    assert float(updated["amount"]) == 80
    assert float(updated["total_amount"]) == 80


def test_flat_tax_edit_derives_rate():
    client = TestClient(app)
    token = register_and_login(client, "flat@example.com", "secret")
    headers = {"Authorization": f"Bearer {token}"}
    client_id = setup_client(client, headers)
    invoice = client.post("/invoices/", json={"client_id": client_id, "amount": "200"}, headers=headers).json()

    data = client.put(f"/invoices/{invoice['id']}", json={"tax": "30"}, headers=headers).json()
    assert float(data["tax"]) == 30
    assert float(data["tax_rate"]) == 15
    assert float(data["total_amount"]) == 230


def test_preview_totals():
    client = TestClient(app)
    token = register_and_login(client, "preview@example.com", "secret")
    response = client.post(
        "/invoices/preview-totals",
        json={"tax_rate": "10", "line_items": [{"description": "Fourtify Professional", "quantity": 2, "unit_price": 2099}]},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 200
    data = response.json()
    assert float(data["subtotal"]) == 4198
    assert float(data["tax"]) == 419.8
    assert float(data["total"]) == 4617.8


def test_mark_paid_and_cancel():
    client = TestClient(app)
    token = register_and_login(client, "paid@example.com", "secret")
    headers = {"Authorization": f"Bearer {token}"}
    client_id = setup_client(client, headers)
    first = client.post("/invoices/", json={"client_id": client_id, "amount": "10"}, headers=headers).json()
    second = client.post("/invoices/", json={"client_id": client_id, "amount": "10"}, headers=headers).json()

    paid = client.post(f"/invoices/{first['id']}/mark-paid", headers=headers).json()
    assert paid["status"] == "paid"
    assert paid["paid_date"] is not None
    assert client.post(f"/invoices/{first['id']}/cancel", headers=headers).status_code == 400

    cancelled = client.post(f"/invoices/{second['id']}/cancel", headers=headers).json()
    assert cancelled["status"] == "cancelled"
    assert client.post(f"/invoices/{second['id']}/mark-paid", headers=headers).status_code == 400


def test_invoice_stats():
    client = TestClient(app)
    token = register_and_login(client, "istats@example.com", "secret")
    headers = {"Authorization": f"Bearer {token}"}
    client_id = setup_client(client, headers)
    for amount, status in (("100", "paid"), ("40", "overdue"), ("10", "draft")):
        client.post("/invoices/", json={"client_id": client_id, "amount": amount, "status": status}, headers=headers)
    data = client.get("/invoices/stats", headers=headers).json()
    assert data["total_invoices"] == 3
    assert float(data["paid_amount"]) == 100
    assert float(data["unpaid_amount"]) == 50
    assert float(data["overdue_amount"]) == 40


def test_send_invoice_marks_sent_and_logs_email():
    transport = FakeTransport()
    app.dependency_overrides[get_email_transport] = lambda: transport
    client = TestClient(app)
    token = register_and_login(client, "send@example.com", "secret")
    headers = {"Authorization": f"Bearer {token}"}
    client_id = setup_client(client, headers)
    invoice = client.post("/invoices/", json={"client_id": client_id, "amount": "99"}, headers=headers).json()

    response = client.post(f"/invoices/{invoice['id']}/send", headers=headers)
    assert response.status_code == 200
    assert response.json()["status"] == "sent"
    assert transport.batches[0][0].to_email == "jo@acme.test"

    db = SessionLocal()
    try:
        sent = db.query(SentEmail).filter(SentEmail.invoice_id == invoice["id"]).one()
        assert sent.status == "sent"
        assert sent.provider_id == "msg-1-0"
    finally:
        db.close()


def test_send_invoice_failure_keeps_draft():
    app.dependency_overrides[get_email_transport] = lambda: FakeTransport(fail=True)
    client = TestClient(app)
    token = register_and_login(client, "sendfail@example.com", "secret")
    headers = {"Authorization": f"Bearer {token}"}
    client_id = setup_client(client, headers)
    invoice = client.post("/invoices/", json={"client_id": client_id, "amount": "99"}, headers=headers).json()

    response = client.post(f"/invoices/{invoice['id']}/send", headers=headers)
    assert response.status_code == 502
    assert client.get(f"/invoices/{invoice['id']}", headers=headers).json()["status"] == "draft"


def test_send_bulk_reports_per_invoice_results():
    transport = FakeTransport()
    app.dependency_overrides[get_email_transport] = lambda: transport
    client = TestClient(app)
    token = register_and_login(client, "bulkinv@example.com", "secret")
    headers = {"Authorization": f"Bearer {token}"}
    with_contact = setup_client(client, headers)
    org_id = client.post("/organisations/", json={"name": "Silent"}, headers=headers).json()["id"]
    without_contact = client.post("/clients/", json={"organisation_id": org_id}, headers=headers).json()["id"]

    ok = client.post("/invoices/", json={"client_id": with_contact, "amount": "10"}, headers=headers).json()
    unreachable = client.post("/invoices/", json={"client_id": without_contact, "amount": "10"}, headers=headers).json()
    paid = client.post(
        "/invoices/", json={"client_id": with_contact, "amount": "10", "status": "paid"}, headers=headers
    ).json()

    response = client.post(
        "/invoices/send-bulk", json={"invoice_ids": [ok["id"], unreachable["id"], paid["id"], 999]}, headers=headers
    )
    assert response.status_code == 200
    data = response.json()
    assert data["total"] == 4
    assert data["sent_count"] == 1
    assert data["failed_count"] == 3
    results = {row["invoice_id"]: row for row in data["results"]}
    assert results[ok["id"]]["success"] is True
    assert results[unreachable["id"]]["error"] == "No contact email for client"
    assert results[999]["error"] == "Invoice not found"
    assert len(transport.batches) == 1
