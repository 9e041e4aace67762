"""Tests for the FastAPI shell around the lesson engine."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from lingoraft.api import EngineGateway, app, get_gateway
from lingoraft.config import Settings
from lingoraft.storage import InMemorySessionStore
from lingoraft.system import LingoRaftSystem


@pytest.fixture
def client(mini_catalog):
    """TestClient whose gateway wraps an in-memory system over the mini lesson."""
    settings = Settings.model_validate({"lessons": {"default_lesson_id": "mini"}})
    system = LingoRaftSystem(settings, catalog=mini_catalog, session_store=InMemorySessionStore())
    gateway = EngineGateway(system)
    app.dependency_overrides[get_gateway] = lambda: gateway
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def test_health(client):
    assert client.get("/health").json() == {"status": "ok"}


def test_boot_and_lesson_flow(client):
    boot = client.get("/session").json()
    assert boot["mode"] == "chat"
    assert boot["messages"][0].startswith("Hello!")

    started = client.post("/messages", json={"text": "/start mini"}).json()
    assert started["mode"] == "lesson"
    assert started["prompt_card"]["target_text"] == "f j"

    answered = client.post("/messages", json={"text": "f j"}).json()
    assert answered["feedback_card"]["status"] == "success"
    assert answered["current_lesson_info"]["prompt_number"] == 2


def test_reset_endpoint(client):
    client.post("/messages", json={"text": "/start mini"})
    response = client.post("/session/reset").json()

    assert response["messages"][0] == "Session reset."
    assert response["mode"] == "chat"


def test_lessons_endpoint(client):
    lessons = client.get("/lessons").json()
    assert [item["id"] for item in lessons] == ["mini"]
    assert lessons[0]["completed"] is False


def test_message_requires_text(client):
    assert client.post("/messages", json={}).status_code == 422
