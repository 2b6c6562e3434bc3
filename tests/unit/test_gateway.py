"""Unit tests for the gateway facade."""

import asyncio

import pytest

from ai_gateway.api.gateway import create_gateway
from ai_gateway.config.settings import CacheConfig, GatewayConfig
from ai_gateway.errors import CostLimitExceeded, GatewayStopped, NoHealthyProvider
from ai_gateway.models.providers import CostLimit
from ai_gateway.observability.events import EventType
from ai_gateway.providers.base import ProviderInvocationError
from tests.helpers.factories import make_provider, make_request
from tests.helpers.fakes import RecordingPersistence, provider_error

pytestmark = pytest.mark.unit


async def make_unhealthy(gateway, provider_id):
    provider = gateway.registry.get(provider_id)
    for _ in range(4):
        await gateway.health_monitor.record_probe(provider, False, 10.0, RuntimeError("down"))


class TestSendRequest:

    @pytest.mark.asyncio
    async def test_routes_to_best_provider(self, gateway, fake_client):
        response = await gateway.send_request(make_request())

        assert response.provider_id == "primary"
        assert response.cached is False
        assert fake_client.calls_for("primary") == 1

        stats = gateway.get_stats()
        assert stats["total_requests"] == 1
        assert stats["successful_requests"] == 1
        assert stats["cache_misses"] == 1
        assert stats["cache_hits"] == 0
        assert stats["average_latency_ms"] == pytest.approx(12.0)

    @pytest.mark.asyncio
    async def test_success_records_spend_and_caches(self, gateway_config, fake_client, event_sink, clock):
        gateway_config.providers[0].input_cost_per_1k_tokens = 0.01
        gateway_config.providers[0].output_cost_per_1k_tokens = 0.03
        gateway = create_gateway(gateway_config, client=fake_client, event_sink=event_sink, clock=clock)

        response = await gateway.send_request(make_request())

        assert response.cost > 0
        assert gateway.cost_ledger.get_spend("primary").daily == pytest.approx(response.cost)
        assert gateway.get_stats()["total_cost"] == pytest.approx(response.cost)
        assert len(gateway.cache) == 1

    @pytest.mark.asyncio
    async def test_cache_hit_skips_provider_and_ledger(self, gateway, fake_client):
        first = await gateway.send_request(make_request())
        ledger_before = gateway.cost_ledger.snapshot()
        calls_before = len(fake_client.calls)

        second = await gateway.send_request(make_request())

        assert second.cached is True
        assert second.content == first.content
        assert second.cost == 0.0
        assert len(fake_client.calls) == calls_before
        assert gateway.cost_ledger.snapshot() == ledger_before

        stats = gateway.get_stats()
        assert stats["cache_hits"] == 1
        assert stats["successful_requests"] == 1
        assert stats["total_requests"] == 2

    @pytest.mark.asyncio
    async def test_semantic_hit_served_from_cache(self, gateway, fake_client):
        await gateway.send_request(make_request("Tell me a story about a castle."))
        response = await gateway.send_request(make_request("tell me a STORY about a castle"))

        assert response.cached is True
        assert response.metadata["similarity"] == 1.0
        assert len(fake_client.calls) == 1

    @pytest.mark.asyncio
    async def test_unhealthy_best_provider_falls_back(self, gateway, fake_client):
        await make_unhealthy(gateway, "primary")

        response = await gateway.send_request(make_request())

        assert response.provider_id == "secondary"

    @pytest.mark.asyncio
    async def test_no_healthy_provider(self, gateway, fake_client, event_sink):
        await make_unhealthy(gateway, "primary")
        await make_unhealthy(gateway, "secondary")
        request = make_request()

        with pytest.raises(NoHealthyProvider) as exc_info:
            await gateway.send_request(request)

        assert exc_info.value.request_id == request.id
        assert fake_client.calls == []
        assert gateway.get_stats()["failed_requests"] == 1
        assert event_sink.get_events(EventType.REQUEST_FAILED)[0].error is exc_info.value

    @pytest.mark.asyncio
    async def test_cost_limit_rejects_without_fallback(self, gateway_config, fake_client, event_sink, clock):
        gateway_config.providers[0].cost_limit = CostLimit(max_daily_cost=0.001, max_monthly_cost=1.0)
        gateway_config.providers[0].input_cost_per_1k_tokens = 1.0
        gateway = create_gateway(gateway_config, client=fake_client, event_sink=event_sink, clock=clock)
        # primary stays the top choice despite the cost penalty
        request = make_request("x" * 40, priority="critical")

        with pytest.raises(CostLimitExceeded) as exc_info:
            await gateway.send_request(request)

        error = exc_info.value
        assert error.provider_id == "primary"
        assert error.estimated_cost == pytest.approx(0.01)
        assert error.max_daily_cost == 0.001
        assert fake_client.calls == []
        assert gateway.cost_ledger.total_cost == 0

    @pytest.mark.asyncio
    async def test_provider_error_propagates_unmodified(self, gateway, fake_client, event_sink):
        error = provider_error("primary", status_code=429)
        fake_client.failures["primary"] = error

        with pytest.raises(ProviderInvocationError) as exc_info:
            await gateway.send_request(make_request())

        assert exc_info.value is error
        assert gateway.get_stats()["failed_requests"] == 1
        assert len(gateway.cache) == 0
        assert gateway.cost_ledger.total_cost == 0

    @pytest.mark.asyncio
    async def test_request_timeout_overrides_provider_timeout(self, gateway, fake_client):
        fake_client.delays["primary"] = 1.0

        with pytest.raises(asyncio.TimeoutError):
            await gateway.send_request(make_request(timeout=0.01))

        assert gateway.get_stats()["failed_requests"] == 1

    @pytest.mark.asyncio
    async def test_active_count_returns_to_zero_on_every_path(self, gateway, fake_client):
        await gateway.send_request(make_request("success"))
        assert gateway.active_count() == 0

        fake_client.failures["primary"] = provider_error("primary")
        with pytest.raises(ProviderInvocationError):
            await gateway.send_request(make_request("provider error"))
        assert gateway.active_count() == 0
        del fake_client.failures["primary"]

        gateway.registry.get("primary").cost_limit.max_daily_cost = 0.0
        gateway.registry.get("primary").input_cost_per_1k_tokens = 1.0
        with pytest.raises(CostLimitExceeded):
            await gateway.send_request(make_request("cost limit", priority="critical"))
        assert gateway.active_count() == 0

        await make_unhealthy(gateway, "primary")
        await make_unhealthy(gateway, "secondary")
        with pytest.raises(NoHealthyProvider):
            await gateway.send_request(make_request("no provider"))
        assert gateway.active_count() == 0

    @pytest.mark.asyncio
    async def test_request_counted_active_during_call(self, gateway, fake_client):
        observed = []
        fake_client.on_invoke = lambda provider, request: observed.append(
            (gateway.active_count(), gateway.active_count(request.type))
        )

        await gateway.send_request(make_request())

        assert observed == [(1, 1)]

    @pytest.mark.asyncio
    async def test_requests_sharing_an_id_tracked_separately(self, gateway, fake_client):
        fake_client.delays["primary"] = 0.05
        fake_client.delays["secondary"] = 0.05
        observed = []
        fake_client.on_invoke = lambda provider, request: observed.append(gateway.active_count())

        first = asyncio.create_task(gateway.send_request(make_request("first prompt", id="dup")))
        second = asyncio.create_task(gateway.send_request(make_request("second prompt", id="dup")))
        await asyncio.sleep(0.02)
        assert gateway.active_count() == 2
        assert len(gateway.get_service_status()["active_requests"]) == 2

        await asyncio.gather(first, second)

        assert observed[-1] == 2
        assert gateway.active_count() == 0


class TestEvents:

    @pytest.mark.asyncio
    async def test_completed_event_emitted(self, gateway, event_sink):
        request = make_request()
        response = await gateway.send_request(request)

        events = event_sink.events
        assert len(events) == 1
        assert events[0].event_type == EventType.REQUEST_COMPLETED
        assert events[0].request is request
        assert events[0].response is response

    @pytest.mark.asyncio
    async def test_failed_event_carries_error(self, gateway, fake_client, event_sink):
        fake_client.failures["primary"] = provider_error("primary")

        with pytest.raises(ProviderInvocationError):
            await gateway.send_request(make_request())

        failed = event_sink.get_events(EventType.REQUEST_FAILED)
        assert len(failed) == 1
        assert failed[0].error is fake_client.failures["primary"]
        assert failed[0].latency_ms >= 0

    @pytest.mark.asyncio
    async def test_sink_failure_does_not_fail_request(self, gateway, event_sink):
        async def broken_emit(event):
            raise RuntimeError("sink down")

        event_sink.emit = broken_emit

        response = await gateway.send_request(make_request())
        assert response.provider_id == "primary"


class TestQueue:

    @pytest.mark.asyncio
    async def test_queued_request_resolves_through_dispatcher(self, gateway):
        future = await gateway.queue_request(make_request())
        assert gateway.get_stats()["queued_requests"] == 1

        gateway.start_dispatcher()
        response = await asyncio.wait_for(future, timeout=2)
        await gateway.stop_dispatcher()

        assert response.provider_id == "primary"
        assert gateway.get_stats()["queued_requests"] == 0

    @pytest.mark.asyncio
    async def test_queued_failure_resolves_future_with_error(self, gateway):
        await make_unhealthy(gateway, "primary")
        await make_unhealthy(gateway, "secondary")

        future = await gateway.queue_request(make_request())
        gateway.start_dispatcher()
        with pytest.raises(NoHealthyProvider):
            await asyncio.wait_for(future, timeout=2)
        await gateway.stop_dispatcher()

    @pytest.mark.asyncio
    async def test_stop_fails_requests_left_in_queue(self, gateway, fake_client):
        fake_client.delays["primary"] = 0.2
        fake_client.delays["secondary"] = 0.2
        futures = [await gateway.queue_request(make_request(f"chapter {i}")) for i in range(5)]

        gateway.start_dispatcher()
        await asyncio.sleep(0.05)
        await asyncio.wait_for(gateway.stop(), timeout=2)

        assert all(f.done() for f in futures)
        outcomes = [f.exception() for f in futures]
        assert sum(1 for e in outcomes if e is None) == 2
        assert sum(1 for e in outcomes if isinstance(e, GatewayStopped)) == 3
        assert len(gateway.queue) == 0


class TestQuerySurface:

    @pytest.mark.asyncio
    async def test_service_status(self, gateway):
        await gateway.health_monitor.check_all()

        status = gateway.get_service_status()

        assert [p["id"] for p in status["providers"]] == ["primary", "secondary"]
        assert {h["status"] for h in status["health"]} == {"healthy"}
        assert status["active_requests"] == []
        assert status["cost"] == {}

    def test_stats_include_cache_block(self, gateway):
        stats = gateway.get_stats()
        assert stats["cache"]["max_size"] == 100
        assert stats["active_requests"] == 0
        assert stats["average_latency_ms"] == 0.0


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_start_and_stop_all_tasks(self, gateway):
        await gateway.start()
        assert gateway.running == {
            "health_monitoring": True,
            "cache_sweeper": True,
            "dispatcher": True,
        }

        await gateway.stop()
        assert not any(gateway.running.values())

    @pytest.mark.asyncio
    async def test_tasks_controlled_independently(self, gateway):
        gateway.start_cache_sweeper()
        assert gateway.running["cache_sweeper"]
        assert not gateway.running["health_monitoring"]

        await gateway.stop_cache_sweeper()
        assert not gateway.running["cache_sweeper"]

    @pytest.mark.asyncio
    async def test_context_manager_closes_owned_client_only(self, gateway_config, fake_client, clock):
        async with create_gateway(gateway_config, client=fake_client, clock=clock) as gateway:
            assert gateway.running["dispatcher"]
        assert not gateway.running["dispatcher"]
        assert fake_client.closed is False

    @pytest.mark.asyncio
    async def test_aclose_closes_persistence_built_from_config(self, gateway_config, fake_client,
                                                               clock, monkeypatch):
        backend = RecordingPersistence()
        monkeypatch.setattr("ai_gateway.api.gateway.create_persistence_backend",
                            lambda config: backend)

        async with create_gateway(gateway_config, client=fake_client, clock=clock):
            assert backend.closed is False
        assert backend.closed is True

    @pytest.mark.asyncio
    async def test_aclose_leaves_supplied_persistence_open(self, gateway_config, fake_client, clock):
        backend = RecordingPersistence()

        async with create_gateway(gateway_config, client=fake_client, clock=clock,
                                  persistence=backend):
            pass
        assert backend.closed is False


class TestCreateGateway:

    def test_default_catalog_when_no_providers_configured(self, fake_client):
        gateway = create_gateway(GatewayConfig(), client=fake_client)
        assert [p.id for p in gateway.registry] == ["openai-gpt4", "anthropic-claude", "local-llama"]

    def test_explicit_providers_override_config(self, gateway_config, fake_client):
        gateway = create_gateway(gateway_config, client=fake_client,
                                 providers=[make_provider("only")])
        assert [p.id for p in gateway.registry] == ["only"]

    def test_disabled_providers_skipped(self, fake_client):
        config = GatewayConfig(providers=[make_provider("on"), make_provider("off", enabled=False)])
        gateway = create_gateway(config, client=fake_client)
        assert [p.id for p in gateway.registry] == ["on"]

    def test_cache_configured_from_config(self, fake_client):
        config = GatewayConfig(cache=CacheConfig(max_size=7), providers=[])
        gateway = create_gateway(config, client=fake_client)
        assert gateway.cache.config.max_size == 7
        assert len(gateway.registry) == 0
