"""Tests for the welcome mailer's HTTP drivers and driver dispatch."""

import json

import httpx

from retailhub.provisioning.mail import WelcomeMailer, WelcomeMessage
from retailhub.settings.resolver import MailConfig


def make_config(driver="sendgrid", **overrides) -> MailConfig:
    values = {
        "driver": driver,
        "host": "",
        "port": 0,
        "from_address": "noreply@example.com",
        "from_name": "RetailHub",
        "api_key": "test-key",
    }
    values.update(overrides)
    return MailConfig(**values)


MESSAGE = WelcomeMessage(
    email="owner@acme.example.com",
    name="Jane",
    password="secret123",
    subdomain="acme",
    company_name="Acme",
    superadmin_company_name="RetailHub Cloud",
    superadmin_email="support@example.com",
)


class TestSendGrid:
    async def test_accepted(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(202)

        mailer = WelcomeMailer(make_config(), transport=httpx.MockTransport(handler))
        assert await mailer.send_welcome(MESSAGE) is True

        request = seen[0]
        assert request.url.path == "/v3/mail/send"
        assert request.headers["Authorization"] == "Bearer test-key"
        payload = json.loads(request.content)
        assert payload["personalizations"][0]["to"][0]["email"] == "owner@acme.example.com"
        assert payload["subject"] == "Welcome to RetailHub Cloud"
        assert "secret123" in payload["content"][0]["value"]

    async def test_rejected(self):
        mailer = WelcomeMailer(
            make_config(), transport=httpx.MockTransport(lambda r: httpx.Response(401))
        )
        assert await mailer.send_welcome(MESSAGE) is False


class TestResend:
    async def test_created(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"id": "abc"})

        mailer = WelcomeMailer(make_config("resend"), transport=httpx.MockTransport(handler))
        assert await mailer.send_welcome(MESSAGE) is True
        payload = json.loads(seen[0].content)
        assert payload["to"] == ["owner@acme.example.com"]
        assert payload["from"] == "RetailHub <noreply@example.com>"


class TestDispatch:
    async def test_unknown_driver(self):
        assert await WelcomeMailer(make_config("mailgun")).send_welcome(MESSAGE) is False

    async def test_smtp_unreachable_returns_false(self):
        config = make_config("smtp", host="127.0.0.1", port=1, encryption=None)
        mailer = WelcomeMailer(config, timeout=1.0)
        assert await mailer.send_welcome(MESSAGE) is False
