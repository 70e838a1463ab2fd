import base64

import pytest

import emailer
from emailer import EmailDeliveryError, build_message, send_email

ATTACHMENT = ("qr-code.png", b"\x89PNG-data", "image/png")


class _FakeResponse:
    def __init__(self, status_code=202, text=""):
        self.status_code = status_code
        self.text = text


@pytest.fixture
def smtp_env(monkeypatch):
    monkeypatch.setenv("MAIL_FROM", "noreply@hackabhigna.in")
    monkeypatch.setenv("SMTP_PRIMARY_HOST", "smtp.primary.test")
    monkeypatch.setenv("SMTP_PRIMARY_PORT", "587")
    monkeypatch.setenv("SMTP_SECONDARY_HOST", "smtp.secondary.test")
    monkeypatch.setenv("SMTP_SECONDARY_PORT", "2525")


def test_build_message_carries_text_html_and_attachments():
    message = build_message("noreply@hackabhigna.in", "lead@example.com", "Hello", "<p>Hi</p>", "Hi", [ATTACHMENT])
    assert message["To"] == "lead@example.com"
    assert message["Subject"] == "Hello"
    attachments = list(message.iter_attachments())
    assert len(attachments) == 1
    assert attachments[0].get_filename() == "qr-code.png"
    assert attachments[0].get_content_type() == "image/png"
    assert attachments[0].get_content() == b"\x89PNG-data"


def test_send_email_without_transport_raises():
    with pytest.raises(EmailDeliveryError):
        send_email("lead@example.com", "Hello", "<p>Hi</p>", "Hi")


def test_secondary_smtp_used_when_primary_fails(smtp_env, monkeypatch):
    used = []

    def _fake_send(config, message):
        used.append(config.host)
        if config.host == "smtp.primary.test":
            raise OSError("connection refused")

    monkeypatch.setattr(emailer, "_send_via_config", _fake_send)
    send_email("lead@example.com", "Hello", "<p>Hi</p>", "Hi", attachments=[ATTACHMENT])
    assert used == ["smtp.primary.test", "smtp.secondary.test"]


def test_sendgrid_used_after_smtp_failures(smtp_env, monkeypatch):
    posted = []

    def _failing_smtp(config, message):
        raise OSError("connection refused")

    def _fake_post(url, json=None, headers=None, timeout=None):
        posted.append({"url": url, "json": json, "headers": headers})
        return _FakeResponse()

    monkeypatch.setenv("SENDGRID_API_KEY", "SG.test-key")
    monkeypatch.setattr(emailer, "_send_via_config", _failing_smtp)
    monkeypatch.setattr(emailer.requests, "post", _fake_post)

    send_email("lead@example.com", "Hello", "<p>Hi</p>", "Hi", attachments=[ATTACHMENT])

    assert len(posted) == 1
    payload = posted[0]["json"]
    assert posted[0]["headers"]["Authorization"] == "Bearer SG.test-key"
    assert payload["from"] == {"email": "noreply@hackabhigna.in"}
    assert payload["personalizations"][0]["to"] == [{"email": "lead@example.com"}]
    assert payload["attachments"][0]["filename"] == "qr-code.png"
    assert base64.b64decode(payload["attachments"][0]["content"]) == b"\x89PNG-data"


def test_all_transports_failing_raises(smtp_env, monkeypatch):
    def _failing_smtp(config, message):
        raise OSError("connection refused")

    monkeypatch.setenv("SENDGRID_API_KEY", "SG.test-key")
    monkeypatch.setattr(emailer, "_send_via_config", _failing_smtp)
    monkeypatch.setattr(emailer.requests, "post", lambda *args, **kwargs: _FakeResponse(500, "boom"))

    with pytest.raises(EmailDeliveryError) as excinfo:
        send_email("lead@example.com", "Hello", "<p>Hi</p>", "Hi")
    message = str(excinfo.value)
    assert "SMTP_PRIMARY" in message
    assert "SMTP_SECONDARY" in message
    assert "SENDGRID" in message


def test_invalid_smtp_port_is_reported(monkeypatch):
    monkeypatch.setenv("MAIL_FROM", "noreply@hackabhigna.in")
    monkeypatch.setenv("SMTP_PRIMARY_HOST", "smtp.primary.test")
    monkeypatch.setenv("SMTP_PRIMARY_PORT", "not-a-port")
    with pytest.raises(RuntimeError):
        send_email("lead@example.com", "Hello", "<p>Hi</p>", "Hi")
