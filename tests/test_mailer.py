import json

import httpx
import pytest

from crm_portal.app.services import mailer
from crm_portal.app.services.mailer import EmailTransport, MailTransportError, OutboundEmail, ResendTransport


def _transport(api_key="re_test"):
    return ResendTransport(
        api_key=api_key,
        from_email="noreply@example.com",
        from_name="Sales",
        base_url="https://api.resend.test/",
    )


def _patch_http(monkeypatch, handler):
    real_client = httpx.Client

    def client_factory(*args, **kwargs):
        return real_client(transport=httpx.MockTransport(handler), timeout=kwargs.get("timeout"))

    monkeypatch.setattr(mailer.httpx, "Client", client_factory)


def test_send_batch_posts_to_batch_endpoint(monkeypatch):
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"data": [{"id": "a1"}, {"id": "a2"}]})

    _patch_http(monkeypatch, handler)
    emails = [
        OutboundEmail(to_email="one@example.com", to_name="One", subject="Hi", body="text", html_body="<p>x</p>"),
        OutboundEmail(to_email="two@example.com", subject="Hi"),
    ]
    assert _transport().send_batch(emails) == ["a1", "a2"]
    assert seen["url"] == "https://api.resend.test/emails/batch"
    assert seen["auth"] == "Bearer re_test"
    assert seen["body"][0]["from"] == "Sales <noreply@example.com>"
    assert seen["body"][0]["to"] == ["One <one@example.com>"]
    assert seen["body"][0]["html"] == "<p>x</p>"
    assert seen["body"][1]["to"] == ["two@example.com"]
    assert "html" not in seen["body"][1]


def test_send_batch_raises_on_provider_error(monkeypatch):
    _patch_http(monkeypatch, lambda request: httpx.Response(429, text="rate limited"))
    with pytest.raises(MailTransportError):
        _transport().send_batch([OutboundEmail(to_email="a@example.com", subject="s")])


def test_send_batch_requires_api_key():
    with pytest.raises(MailTransportError):
        _transport(api_key="").send_batch([OutboundEmail(to_email="a@example.com", subject="s")])


def test_transport_without_send_batch_cannot_be_created():
    class Incomplete(EmailTransport):
        from_email = "noop@example.com"

    with pytest.raises(TypeError):
        Incomplete()
