"""Tests for the FastAPI host."""
from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app import create_app
from core.config import settings


@pytest.fixture
def client() -> TestClient:
    return TestClient(create_app())


def test_health(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_render_and_restore(client: TestClient) -> None:
    markup = r"<p>Area $\pi r^2$ and $\invalidcommand{x}$</p>"

    rendered = client.post("/render", json={"html": markup}).json()

    assert rendered["enabled"] is True
    assert "pagemath-processed" in rendered["html"]
    assert "<math" in rendered["html"]
    assert rendered["stats"]["total_attempts"] == 2
    assert rendered["diagnostics"]
    assert rendered["diagnostics"][0]["tex"] == r"\invalidcommand{x}"

    restored = client.post("/restore", json={"html": rendered["html"]}).json()
    assert restored == {"html": markup, "restored": 2}


def test_stats_accumulate(client: TestClient) -> None:
    client.post("/render", json={"html": "<p>$a$</p>"})
    client.post("/render", json={"html": "<p>$b$ $c$</p>"})
    assert client.get("/stats").json()["total_attempts"] == 3


def test_disallowed_domain_is_left_alone(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "allowed_domains", frozenset({"wikipedia.org"}))
    markup = "<p>$x$</p>"

    response = client.post("/render", json={"html": markup, "url": "https://example.net/a"}).json()

    assert response["enabled"] is False
    assert response["html"] == markup
    assert response["stats"]["total_attempts"] == 0


def test_allowed_domain_is_rendered(client: TestClient, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "allowed_domains", frozenset({"wikipedia.org"}))

    response = client.post(
        "/render", json={"html": "<p>$x$</p>", "url": "https://en.wikipedia.org/wiki/X"}
    ).json()

    assert response["enabled"] is True
    assert "pagemath-processed" in response["html"]
