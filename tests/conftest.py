"""Shared fixtures: the FastAPI app with scripted Dime.Scheduler and email collaborators."""

import json

import httpx
import pytest
from fastapi.testclient import TestClient

from app.domain.scheduler.client import SchedulerClient
from app.domain.scheduler.router import get_optional_scheduler_client
from app.email_service import get_email_service
from app.main import app
from app.schemas import EmailResult

SCHEDULER_BASE_URL = "https://scheduler.test/api"


class FakeEmailService:
    """Records outgoing emails instead of calling Resend."""

    configured = True
    default_sender = "Dime.Scheduler Webhook API <noreply@example.com>"

    def __init__(self):
        self.sent = []
        self.result = EmailResult(
            success=True, message="Email sent successfully", messageId="msg_123"
        )

    async def send_email(self, email):
        self.sent.append(email)
        return self.result


class RecordingHandler:
    """MockTransport handler returning scripted responses and keeping every request."""

    def __init__(self, responses=None):
        self.requests = []
        self.responses = list(responses or [])

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self.responses:
            return httpx.Response(200, text="OK")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def json_bodies(self):
        return [json.loads(r.content) if r.content else None for r in self.requests]


def make_scheduler_client(handler, **kwargs) -> SchedulerClient:
    return SchedulerClient(
        base_url=SCHEDULER_BASE_URL,
        api_key="test-key",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


@pytest.fixture
def email_service():
    return FakeEmailService()


@pytest.fixture
def client(email_service):
    app.dependency_overrides[get_email_service] = lambda: email_service
    app.dependency_overrides[get_optional_scheduler_client] = lambda: None
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def use_scheduler(client):
    """Install a SchedulerClient backed by a RecordingHandler for the current test."""

    def install(*responses) -> RecordingHandler:
        handler = RecordingHandler(responses)
        scheduler = make_scheduler_client(handler)
        app.dependency_overrides[get_optional_scheduler_client] = lambda: scheduler
        return handler

    return install


@pytest.fixture
def scripted_scheduler():
    """Build a standalone SchedulerClient answering with the given responses in order."""

    def build(*responses, **kwargs):
        handler = RecordingHandler(responses)
        return make_scheduler_client(handler, **kwargs), handler

    return build
