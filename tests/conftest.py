"""
Shared fixtures: settings, a fake identity service + completion API behind
one httpx.MockTransport, and a TestClient wired to both.
"""

import json
import os

# app.main loads settings at import; give it something to load.
os.environ.setdefault("DEEPSEEK_API_KEY", "test-deepseek-key")
os.environ.setdefault("SUPABASE_URL", "https://identity.test")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")

import httpx
import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.main import create_app

COMPLETION_URL = "https://llm.test/v1/chat/completions"
VALID_TOKEN = "valid-token"

PHOTOSYNTHESIS_MAP = {
    "nodes": [
        {"id": "1", "label": "Photosynthesis"},
        {"id": "2", "label": "Light Reactions"},
        {"id": "3", "label": "Calvin Cycle"},
        {"id": "4", "label": "Chlorophyll"},
        {"id": "5", "label": "Glucose"},
        {"id": "6", "label": "Oxygen"},
    ],
    "edges": [
        {"id": "e1", "source": "1", "target": "2"},
        {"id": "e2", "source": "1", "target": "3"},
        {"id": "e3", "source": "2", "target": "4"},
        {"id": "e4", "source": "3", "target": "5"},
        {"id": "e5", "source": "2", "target": "6"},
    ],
}


def completion_reply(content: str) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class FakeUpstream:
    """Plays both the Supabase auth API and the chat-completions API."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.user: dict | None = {"id": "user-1", "email": "student@example.com"}
        self.auth_status = 200
        self.auth_exception: Exception | None = None
        self.completion_status = 200
        self.completion_body: dict | str = completion_reply(json.dumps(PHOTOSYNTHESIS_MAP))

    @property
    def auth_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if r.url.path == "/auth/v1/user"]

    @property
    def completion_requests(self) -> list[httpx.Request]:
        return [r for r in self.requests if str(r.url) == COMPLETION_URL]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.url.path == "/auth/v1/user":
            if self.auth_exception is not None:
                raise self.auth_exception
            token = request.headers.get("authorization", "").removeprefix("Bearer ")
            if self.auth_status != 200 or token != VALID_TOKEN or self.user is None:
                status = self.auth_status if self.auth_status != 200 else 401
                return httpx.Response(status, json={"msg": "invalid JWT"})
            return httpx.Response(200, json=self.user)

        if str(request.url) == COMPLETION_URL:
            if isinstance(self.completion_body, str):
                return httpx.Response(self.completion_status, text=self.completion_body)
            return httpx.Response(self.completion_status, json=self.completion_body)

        return httpx.Response(404, text="unexpected request")

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        DEEPSEEK_API_KEY="test-deepseek-key",
        DEEPSEEK_API_URL=COMPLETION_URL,
        SUPABASE_URL="https://identity.test",
        SUPABASE_ANON_KEY="test-anon-key",
    )


@pytest.fixture
def upstream() -> FakeUpstream:
    return FakeUpstream()


@pytest.fixture
def relay_app(settings, upstream):
    return create_app(settings, transport=upstream.transport)


@pytest.fixture
def client(relay_app) -> TestClient:
    return TestClient(relay_app)


@pytest.fixture
def auth_headers() -> dict:
    return {"Authorization": f"Bearer {VALID_TOKEN}"}
