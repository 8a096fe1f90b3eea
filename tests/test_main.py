import inspect

from fastapi.testclient import TestClient
from crm_portal.app.main import app

client = TestClient(app)


def test_read_root():
    response = client.get("/")
    assert response.status_code == 200
    assert response.json() == {"app": "Fourtify CRM backend", "status": "ok"}


def test_health_check():
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_sending_routes_run_in_threadpool():
    sending = {
        ("POST", "/email/send"),
        ("POST", "/email/bulk-send"),
        ("POST", "/invoices/send-bulk"),
        ("POST", "/invoices/{invoice_id}/send"),
    }
    found = set()
    for route in app.routes:
        for method in getattr(route, "methods", None) or ():
            if (method, route.path) in sending:
                found.add((method, route.path))
                assert not inspect.iscoroutinefunction(route.endpoint)
    assert found == sending
