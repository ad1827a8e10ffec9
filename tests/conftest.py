import httpx
import pytest
from fastapi import Depends
from fastapi.testclient import TestClient

from config import Settings, get_settings
from llm_service import XAIChatClient
from main import app, get_chat_client, get_mailer

SMTP_VALUES = {
    "SMTP_HOST": "smtp.example.com",
    "SMTP_USER": "relay@example.com",
    "SMTP_PASS": "secret",
    "EMAIL_FROM": "agent@example.com",
    "EMAIL_TO": "loans@example.com",
}


def make_settings(**overrides) -> Settings:
    values = {
        "XAI_API_KEY": "test-key",
        "SYSTEM_PROMPT": "You are a test persona.",
        "SUMMARY_PROMPT": "Summarize this call.",
        **SMTP_VALUES,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def completion(content):
    return {
        "id": "cmpl-1",
        "model": "grok-3-beta",
        "choices": [{"index": 0, "message": {"role": "assistant", "content": content}, "finish_reason": "stop"}],
    }


class Upstream:
    """Records requests sent to the provider and answers with a canned response."""

    def __init__(self):
        self.requests = []
        self.response = httpx.Response(200, json=completion("ok"))
        self.exception = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exception is not None:
            raise self.exception
        return httpx.Response(
            self.response.status_code, headers=self.response.headers, content=self.response.content
        )


class MailerStub:
    def __init__(self):
        self.sent = []
        self.exception = None

    def send(self, msg):
        self.sent.append(msg)
        if self.exception is not None:
            raise self.exception
        return msg["Message-ID"]


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def upstream():
    return Upstream()


@pytest.fixture
def mailer():
    return MailerStub()


@pytest.fixture
def client(settings, upstream, mailer):
    app.dependency_overrides[get_settings] = lambda: settings

    def chat_client(current: Settings = Depends(get_settings)):
        return XAIChatClient(current, transport=httpx.MockTransport(upstream.handler))

    app.dependency_overrides[get_chat_client] = chat_client
    app.dependency_overrides[get_mailer] = lambda: mailer
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
