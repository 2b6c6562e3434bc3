"""Unit tests for the FastAPI endpoints."""

import asyncio

import pytest

pytest.importorskip("fastapi")

from fastapi import FastAPI
from fastapi.testclient import TestClient

from ai_gateway.http import create_router
from tests.helpers.fakes import provider_error

pytestmark = pytest.mark.unit


def mark_unhealthy(gateway, *provider_ids):
    async def _probe_failures():
        for provider_id in provider_ids:
            provider = gateway.registry.get(provider_id)
            for _ in range(4):
                await gateway.health_monitor.record_probe(provider, False, 10.0, RuntimeError("down"))

    asyncio.run(_probe_failures())


@pytest.fixture
def client(gateway):
    app = FastAPI()
    app.include_router(create_router(gateway))
    with TestClient(app) as test_client:
        yield test_client


def submit(client, prompt="Tell me a story about a castle", **fields):
    return client.post("/requests", json={"type": "narrative", "prompt": prompt, **fields})


def test_submit_request(client, fake_client):
    response = submit(client)

    assert response.status_code == 200
    body = response.json()
    assert body["provider_id"] == "primary"
    assert body["content"] == "primary: Tell me a story about a castle"
    assert body["cached"] is False
    assert fake_client.calls_for("primary") == 1


def test_repeated_request_served_from_cache(client):
    submit(client)
    body = submit(client).json()

    assert body["cached"] is True
    assert body["cost"] == 0.0


def test_invalid_body_rejected(client):
    assert client.post("/requests", json={"type": "poetry", "prompt": "x"}).status_code == 422
    assert client.post("/requests", json={"type": "logic", "prompt": ""}).status_code == 422


def test_no_healthy_provider_is_503(client, gateway):
    mark_unhealthy(gateway, "primary", "secondary")

    response = submit(client)

    assert response.status_code == 503
    assert response.json()["detail"] == "No healthy AI provider available"


def test_cost_limit_is_402(client, gateway):
    primary = gateway.registry.get("primary")
    primary.cost_limit.max_daily_cost = 0.0
    primary.input_cost_per_1k_tokens = 1.0

    response = submit(client, priority="critical")

    assert response.status_code == 402


def test_provider_status_code_passed_through(client, fake_client):
    fake_client.failures["primary"] = provider_error("primary", status_code=429)
    assert submit(client).status_code == 429


def test_provider_error_without_status_is_502(client, fake_client):
    fake_client.failures["primary"] = provider_error("primary", status_code=None)
    assert submit(client).status_code == 502


def test_timeout_is_504(client, fake_client):
    fake_client.delays["primary"] = 1.0
    assert submit(client, timeout=0.01).status_code == 504


def test_stats(client):
    submit(client)
    stats = client.get("/stats").json()

    assert stats["total_requests"] == 1
    assert stats["successful_requests"] == 1
    assert stats["cache"]["size"] == 1


def test_status(client):
    status = client.get("/status").json()

    assert [p["id"] for p in status["providers"]] == ["primary", "secondary"]
    assert status["active_requests"] == []
