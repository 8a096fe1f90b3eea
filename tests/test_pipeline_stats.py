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


def test_pipeline_stages_vocabulary():
    client = TestClient(app)
    response = client.get("/pipeline/stages")
    assert response.status_code == 200
    stages = response.json()
    assert len(stages) == 10
    assert stages[0] == {"stage": "New Lead", "rank": 0, "outcome": "active", "default_probability": 10}
    assert stages[7]["stage"] == "Closed Won" and stages[7]["outcome"] == "won"
    assert stages[9]["stage"] == "On Hold" and stages[9]["outcome"] == "active"


def test_dashboard_stats_scenario():
    client = TestClient(app)
    token = register_and_login(client, "stats@example.com", "secret")
    headers = {"Authorization": f"Bearer {token}"}
    client.post("/organisations/", json={"name": "Acme"}, headers=headers)
    for stage, value in (("New Lead", 1000), ("Closed Won", 5000), ("Closed Lost", 2000)):
        client.post("/leads/", json={"name": stage, "stage": stage, "expected_value": value}, headers=headers)

    response = client.get("/stats/", headers=headers)
    assert response.status_code == 200
    data = response.json()
    assert data["total_leads"] == 3
    assert data["active_leads"] == 1
    assert data["total_organisations"] == 1
    assert float(data["pipeline_value"]) == 1000
    assert float(data["closed_won_value"]) == 5000
    assert float(data["conversion_rate"]) == 50.0
    assert float(data["avg_deal_size"]) == 5000


def test_dashboard_stats_with_no_data():
    client = TestClient(app)
    token = register_and_login(client, "empty@example.com", "secret")
    data = client.get("/stats/", headers={"Authorization": f"Bearer {token}"}).json()
    assert data["total_leads"] == 0
    assert float(data["conversion_rate"]) == 0
    assert float(data["avg_deal_size"]) == 0


def test_pipeline_summary():
    client = TestClient(app)
    token = register_and_login(client, "summary@example.com", "secret")
    headers = {"Authorization": f"Bearer {token}"}
    client.post("/leads/", json={"name": "A", "expected_value": 1000, "probability": 50}, headers=headers)
    client.post(
        "/leads/", json={"name": "B", "stage": "Closed Won", "expected_value": 200, "probability": 100}, headers=headers
    )
    data = client.get("/pipeline/summary", headers=headers).json()
    assert float(data["total_value"]) == 1200
    assert float(data["weighted_value"]) == 700
    assert data["active_leads"] == 1
    assert data["closed_won"] == 1
    assert [bucket["stage"] for bucket in data["stages"]][:2] == ["New Lead", "Qualified Lead"]


def test_recent_activities_limit():
    client = TestClient(app)
    token = register_and_login(client, "activity@example.com", "secret")
    headers = {"Authorization": f"Bearer {token}"}
    for i in range(5):
        client.post("/leads/", json={"name": f"Lead {i}"}, headers=headers)
    data = client.get("/stats/activities", params={"limit": 3}, headers=headers).json()
    assert len(data) == 3
    assert all(a["type"] == "lead_created" for a in data)
