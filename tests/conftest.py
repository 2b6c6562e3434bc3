"""Shared pytest fixtures for AI gateway tests."""

import pytest

from ai_gateway.api.gateway import create_gateway
from ai_gateway.config.settings import CacheConfig, GatewayConfig, SimilarityConfig
from ai_gateway.models.providers import CostLimit
from ai_gateway.models.requests import RequestPriority
from ai_gateway.observability.sinks import InMemoryEventSink
from tests.helpers.factories import make_provider, make_request
from tests.helpers.fakes import FakeClock, FakeProviderClient


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests with no I/O")
    config.addinivalue_line("markers", "integration: tests exercising the assembled gateway")
    config.addinivalue_line("markers", "slow: tests that wait on real timers")


@pytest.fixture
def clock():
    """Manually advanced clock shared by cache, ledger and health monitor."""
    return FakeClock()


@pytest.fixture
def fake_client():
    return FakeProviderClient()


@pytest.fixture
def event_sink():
    return InMemoryEventSink()


@pytest.fixture
def providers():
    """Two routable providers; ``primary`` fits narrative requests better."""
    return [
        make_provider(
            "primary",
            capabilities={"creation": 90, "logic": 85, "narrative": 95, "analysis": 80},
            cost_limit=CostLimit(max_daily_cost=1.0, max_monthly_cost=5.0),
        ),
        make_provider(
            "secondary",
            vendor="anthropic",
            capabilities={"creation": 80, "logic": 90, "narrative": 70, "analysis": 85},
        ),
    ]


@pytest.fixture
def gateway_config(providers):
    return GatewayConfig(
        cache=CacheConfig(max_size=100, default_ttl=3600),
        similarity=SimilarityConfig(threshold=0.85),
        providers=providers,
        health_check_interval=30,
        queue_tick_interval=0.01,
        max_in_flight=2,
    )


@pytest.fixture
def gateway(gateway_config, fake_client, event_sink, clock):
    """Gateway wired entirely from fakes; background tasks are not started."""
    return create_gateway(gateway_config, client=fake_client, event_sink=event_sink, clock=clock)


@pytest.fixture
def critical_request():
    return make_request(priority=RequestPriority.CRITICAL)
