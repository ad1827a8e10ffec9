import smtplib

import pytest

from errors import MailDeliveryError
from mail_service import (
    Recording,
    SMTPMailer,
    build_attachments,
    compose_message,
    escape_html,
    render_html_body,
)
from tests.conftest import make_settings


def test_escape_html():
    assert escape_html("<a href=\"x\">Tom & Jerry's</a>") == (
        "&lt;a href=&quot;x&quot;&gt;Tom &amp; Jerry&#x27;s&lt;/a&gt;"
    )
    assert escape_html("") == ""
    assert escape_html(None) == ""


def test_render_html_body_placeholders():
    body = render_html_body("", "", has_recording=False)

    assert "No summary provided." in body
    assert "No transcript provided." in body
    assert "and recording" not in body


def test_build_attachments_recording_defaults():
    attachments = build_attachments("t", "s", Recording(content=b"\x1aE\xdf\xa3"))

    first = attachments[0]
    assert (first.filename, first.content_type, first.content) == ("recording.webm", "audio/webm", b"\x1aE\xdf\xa3")
    assert [a.filename for a in attachments[1:]] == ["summary.txt", "transcript.txt"]


def test_build_attachments_skips_empty_recording():
    attachments = build_attachments("t", "s", Recording(content=b"", filename="empty.webm"))

    assert [a.filename for a in attachments] == ["summary.txt", "transcript.txt"]


def test_build_attachments_keep_raw_text():
    attachments = build_attachments("a < b", "<b>x</b>")

    assert attachments[0].content == b"<b>x</b>"
    assert attachments[1].content == b"a < b"


class FakeSMTP:
    instances = []

    def __init__(self, host, port, context=None):
        self.host = host
        self.port = port
        self.calls = []
        self.extensions = {"starttls"}
        FakeSMTP.instances.append(self)

    def __enter__(self):
        return self

    def __exit__(self, *a):
        self.calls.append("quit")
        return False

    def ehlo(self):
        self.calls.append("ehlo")

    def has_extn(self, name):
        return name in self.extensions

    def starttls(self, context=None):
        self.calls.append("starttls")

    def login(self, user, password):
        self.calls.append(("login", user, password))

    def send_message(self, msg):
        self.calls.append(("send", msg["To"]))


class RejectingSMTP(FakeSMTP):
    def login(self, user, password):
        raise smtplib.SMTPAuthenticationError(535, b"Authentication failed")


@pytest.fixture(autouse=True)
def reset_fake_smtp():
    FakeSMTP.instances.clear()


def make_message():
    return compose_message(
        "t", "s", None, from_addr="agent@example.com", to_addr="loans@example.com", subject="Call"
    )


def test_mailer_secure_uses_smtp_ssl(monkeypatch):
    monkeypatch.setattr("smtplib.SMTP_SSL", FakeSMTP)
    msg = make_message()

    message_id = SMTPMailer(make_settings(SMTP_PORT=465, SMTP_SECURE=True)).send(msg)

    server = FakeSMTP.instances[0]
    assert message_id == msg["Message-ID"]
    assert (server.host, server.port) == ("smtp.example.com", 465)
    assert "starttls" not in server.calls
    assert ("login", "relay@example.com", "secret") in server.calls
    assert ("send", "loans@example.com") in server.calls
    assert server.calls[-1] == "quit"


def test_mailer_plain_upgrades_with_starttls(monkeypatch):
    monkeypatch.setattr("smtplib.SMTP", FakeSMTP)

    SMTPMailer(make_settings(SMTP_PORT=587, SMTP_SECURE=False)).send(make_message())

    server = FakeSMTP.instances[0]
    assert server.port == 587
    assert server.calls.index("starttls") < server.calls.index(("login", "relay@example.com", "secret"))


def test_mailer_auth_failure(monkeypatch):
    monkeypatch.setattr("smtplib.SMTP_SSL", RejectingSMTP)

    with pytest.raises(MailDeliveryError) as excinfo:
        SMTPMailer(make_settings()).send(make_message())

    assert excinfo.value.status_code == 500
    assert "Authentication failed" in excinfo.value.message


def test_mailer_connection_refused(monkeypatch):
    def refuse(host, port, context=None):
        raise ConnectionRefusedError(111, "Connection refused")

    monkeypatch.setattr("smtplib.SMTP_SSL", refuse)

    with pytest.raises(MailDeliveryError) as excinfo:
        SMTPMailer(make_settings()).send(make_message())

    assert "Connection refused" in excinfo.value.message
