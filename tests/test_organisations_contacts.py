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


def test_organisation_crud():
    client = TestClient(app)
    token = register_and_login(client, "org@example.com", "secret")
    headers = {"Authorization": f"Bearer {token}"}

    created = client.post("/organisations/", json={"name": "Acme", "industry": "Defence"}, headers=headers)
    assert created.status_code == 201
    org = created.json()
    assert org["status"] == "prospect"
    assert org["created_by"] == "org@example.com"

    updated = client.put(f"/organisations/{org['id']}", json={"status": "active"}, headers=headers)
    assert updated.json()["status"] == "active"
    assert updated.json()["industry"] == "Defence"

    found = client.get("/organisations/", params={"search": "defence"}, headers=headers).json()
    assert [o["id"] for o in found] == [org["id"]]

    assert client.delete(f"/organisations/{org['id']}", headers=headers).status_code == 200
    assert client.get(f"/organisations/{org['id']}", headers=headers).status_code == 404


def test_organisation_with_client_cannot_be_deleted():
    client = TestClient(app)
    token = register_and_login(client, "orgclient@example.com", "secret")
    headers = {"Authorization": f"Bearer {token}"}
    org_id = client.post("/organisations/", json={"name": "Signed"}, headers=headers).json()["id"]
    client.post("/clients/", json={"organisation_id": org_id}, headers=headers)
    response = client.delete(f"/organisations/{org_id}", headers=headers)
    assert response.status_code == 400


def test_invalid_organisation_status_rejected():
    client = TestClient(app)
    token = register_and_login(client, "orgstatus@example.com", "secret")
    response = client.post(
        "/organisations/", json={"name": "Odd", "status": "friendly"}, headers={"Authorization": f"Bearer {token}"}
    )
    assert response.status_code == 422


def test_contact_crud_and_filters():
    client = TestClient(app)
    token = register_and_login(client, "contact@example.com", "secret")
    headers = {"Authorization": f"Bearer {token}"}
    org_id = client.post("/organisations/", json={"name": "Acme"}, headers=headers).json()["id"]

    created = client.post(
        "/contacts/",
        json={"first_name": "Jo", "last_name": "Smith", "email": "jo@acme.test", "organisation_id": org_id},
        headers=headers,
    )
    assert created.status_code == 201
    contact = created.json()
    assert contact["status"] == "new"
    client.post("/contacts/", json={"first_name": "Alex", "last_name": "Free"}, headers=headers)

    by_org = client.get("/contacts/", params={"organisation_id": org_id}, headers=headers).json()
    assert [c["id"] for c in by_org] == [contact["id"]]
    by_search = client.get("/contacts/", params={"search": "jo smith"}, headers=headers).json()
    assert [c["id"] for c in by_search] == [contact["id"]]

    updated = client.put(f"/contacts/{contact['id']}", json={"status": "client"}, headers=headers)
    assert updated.json()["status"] == "client"

    assert client.delete(f"/contacts/{contact['id']}", headers=headers).status_code == 200
    assert client.get(f"/contacts/{contact['id']}", headers=headers).status_code == 404


def test_contact_with_unknown_organisation_rejected():
    client = TestClient(app)
    token = register_and_login(client, "orphan@example.com", "secret")
    response = client.post(
        "/contacts/",
        json={"first_name": "No", "last_name": "Org", "organisation_id": 42},
        headers={"Authorization": f"Bearer {token}"},
    )
    assert response.status_code == 400


def test_contact_activities_track_creation_and_changes():
    client = TestClient(app)
    token = register_and_login(client, "history@example.com", "secret")
    headers = {"Authorization": f"Bearer {token}"}
    contact_id = client.post(
        "/contacts/", json={"first_name": "Jo", "last_name": "Smith", "phone": "111"}, headers=headers
    ).json()["id"]
    other_id = client.post("/contacts/", json={"first_name": "Alex", "last_name": "Free"}, headers=headers).json()["id"]

    client.put(f"/contacts/{contact_id}", json={"phone": "222", "status": "client", "notes": "met"}, headers=headers)

    activities = client.get(f"/contacts/{contact_id}/activities", headers=headers).json()
    assert len(activities) == 3
    assert {a["contact_id"] for a in activities} == {contact_id}
    assert activities[-1]["type"] == "contact_created"
    subjects = {a["subject"] for a in activities}
    assert "Phone changed from '111' to '222'" in subjects
    assert "Status changed from 'new' to 'client'" in subjects
    assert {a["type"] for a in activities[:2]} == {"contact_updated", "contact_status_change"}

    others = client.get(f"/contacts/{other_id}/activities", headers=headers).json()
    assert [a["type"] for a in others] == ["contact_created"]


def test_contact_activities_for_unknown_contact():
    client = TestClient(app)
    token = register_and_login(client, "nohistory@example.com", "secret")
    response = client.get("/contacts/999/activities", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 404
