import pytest
from fastapi.testclient import TestClient

from crm_portal.app.db.base import Base
from crm_portal.app.db.session import engine
from crm_portal.app.main import app


@pytest.fixture(autouse=True)
def setup_db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


def register_and_login(client: TestClient, email: str, password: str) -> str:
    client.post("/auth/register", json={"email": email, "password": password})
    response = client.post("/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200
    return response.json()["access_token"]


def setup_client_with_invoice(client: TestClient, headers: dict, name: str = "Acme"):
    org_id = client.post("/organisations/", json={"name": name}, headers=headers).json()["id"]
    client_id = client.post("/clients/", json={"organisation_id": org_id}, headers=headers).json()["id"]
    invoice = client.post(
        "/invoices/", json={"client_id": client_id, "amount": "500", "status": "sent"}, headers=headers
    ).json()
    return client_id, invoice


def test_full_payment_does_not_mark_invoice_paid():
    client = TestClient(app)
    token = register_and_login(client, "pay@example.com", "secret")
    headers = {"Authorization": f"Bearer {token}"}
    client_id, invoice = setup_client_with_invoice(client, headers)

    response = client.post(
        "/payments/",
        json={"client_id": client_id, "invoice_id": invoice["id"], "amount": "500", "payment_method": "credit_card"},
        headers=headers,
    )
    assert response.status_code == 201
    assert response.json()["payment_method"] == "credit_card"
    assert client.get(f"/invoices/{invoice['id']}", headers=headers).json()["status"] == "sent"


def test_payment_amount_must_be_positive():
    client = TestClient(app)
    token = register_and_login(client, "zero@example.com", "secret")
    headers = {"Authorization": f"Bearer {token}"}
    client_id, _ = setup_client_with_invoice(client, headers)
    response = client.post("/payments/", json={"client_id": client_id, "amount": "0"}, headers=headers)
    assert response.status_code == 422


def test_payment_invoice_must_belong_to_client():
    client = TestClient(app)
    token = register_and_login(client, "mismatch@example.com", "secret")
    headers = {"Authorization": f"Bearer {token}"}
    client_a, _ = setup_client_with_invoice(client, headers, name="A")
    _, invoice_b = setup_client_with_invoice(client, headers, name="B")
    response = client.post(
        "/payments/", json={"client_id": client_a, "invoice_id": invoice_b["id"], "amount": "10"}, headers=headers
    )
    assert response.status_code == 400


def test_unlinked_payment_and_stats():
    client = TestClient(app)
    token = register_and_login(client, "pstats@example.com", "secret")
    headers = {"Authorization": f"Bearer {token}"}
    client_id, _ = setup_client_with_invoice(client, headers)
    client.post("/payments/", json={"client_id": client_id, "amount": "120.50"}, headers=headers)
    client.post("/payments/", json={"client_id": client_id, "amount": "79.50"}, headers=headers)

    payments = client.get("/payments/", params={"client_id": client_id}, headers=headers).json()
    assert len(payments) == 2
    assert all(p["invoice_id"] is None for p in payments)

    stats = client.get("/payments/stats", headers=headers).json()
    assert stats["total_payments"] == 2
    assert float(stats["total_amount"]) == 200


def test_update_and_delete_payment():
    client = TestClient(app)
    token = register_and_login(client, "pupdate@example.com", "secret")
    headers = {"Authorization": f"Bearer {token}"}
    client_id, _ = setup_client_with_invoice(client, headers)
    payment = client.post("/payments/", json={"client_id": client_id, "amount": "10"}, headers=headers).json()

    updated = client.put(f"/payments/{payment['id']}", json={"reference": "EFT-991"}, headers=headers).json()
    assert updated["reference"] == "EFT-991"
    assert float(updated["amount"]) == 10

    assert client.delete(f"/payments/{payment['id']}", headers=headers).status_code == 200
    assert client.get(f"/payments/{payment['id']}", headers=headers).status_code == 404
