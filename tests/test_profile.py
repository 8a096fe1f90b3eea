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
    resp = client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200
    return resp.json()["access_token"]


def test_signature_requires_auth():
    client = TestClient(app)
    resp = client.get("/profile/signature")
    assert resp.status_code == 401


def test_signature_defaults_to_empty():
    client = TestClient(app)
    token = register_and_login(client, "sig@example.com", "secret")
    resp = client.get("/profile/signature", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 200
    assert resp.json() == {"signature_html": ""}


def test_signature_persists_across_sessions():
    client = TestClient(app)
    token = register_and_login(client, "sig2@example.com", "secret")
    signature = "<p>Kind regards,<br>Sam</p>"
    resp = client.put(
        "/profile/signature",
        json={"signature_html": signature},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert resp.status_code == 200
    assert resp.json()["signature_html"] == signature

    client.post("/auth/logout", headers={"Authorization": f"Bearer {token}"})
    second = client.post("/auth/login", json={"email": "sig2@example.com", "password": "secret"}).json()
    resp_get = client.get(
        "/profile/signature", headers={"Authorization": f"Bearer {second['access_token']}"}
    )
    assert resp_get.json()["signature_html"] == signature
