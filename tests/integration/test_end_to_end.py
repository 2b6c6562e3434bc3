"""End-to-end tests for an assembled gateway."""

import asyncio

import pytest

from ai_gateway import CostLimitExceeded, create_gateway
from ai_gateway.cache.persistence import FilePersistence
from ai_gateway.models.health import HealthStatus
from ai_gateway.models.providers import CostLimit
from ai_gateway.models.requests import RequestPriority
from ai_gateway.observability.events import EventType
from tests.helpers.factories import make_request
from tests.helpers.fakes import provider_error


@pytest.mark.integration
class TestEndToEnd:
    """Full request flows through a started gateway."""

    @pytest.mark.asyncio
    async def test_cache_survives_restart(self, gateway_config, fake_client, clock, tmp_path):
        cache_file = tmp_path / "cache" / "ai-cache.json"

        async with create_gateway(gateway_config, client=fake_client, clock=clock,
                                  persistence=FilePersistence(cache_file)) as first:
            original = await first.send_request(make_request("Describe the harbour at dawn"))
        assert cache_file.exists()

        clock.advance(60)
        async with create_gateway(gateway_config, client=fake_client, clock=clock,
                                  persistence=FilePersistence(cache_file)) as second:
            assert len(second.cache) == 1
            replay = await second.send_request(make_request("describe the harbour at dawn!"))

        assert replay.cached is True
        assert replay.content == original.content
        assert replay.metadata["original_cost"] == original.cost
        assert fake_client.calls_for("primary") == 1

    @pytest.mark.asyncio
    async def test_expired_entries_not_restored(self, gateway_config, fake_client, clock, tmp_path):
        persistence = FilePersistence(tmp_path / "ai-cache.json")

        async with create_gateway(gateway_config, client=fake_client, clock=clock,
                                  persistence=persistence) as first:
            await first.send_request(make_request())

        clock.advance(gateway_config.cache.default_ttl + 1)
        async with create_gateway(gateway_config, client=fake_client, clock=clock,
                                  persistence=persistence) as second:
            assert len(second.cache) == 0
            response = await second.send_request(make_request())

        assert response.cached is False

    @pytest.mark.asyncio
    async def test_queued_requests_all_resolve(self, gateway_config, fake_client, event_sink, clock):
        async with create_gateway(gateway_config, client=fake_client, event_sink=event_sink,
                                  clock=clock) as gateway:
            futures = [await gateway.queue_request(make_request(f"chapter {i}")) for i in range(6)]
            responses = await asyncio.wait_for(asyncio.gather(*futures), timeout=5)

        assert [r.content for r in responses] == [f"primary: chapter {i}" for i in range(6)]
        completed = event_sink.get_events(EventType.REQUEST_COMPLETED)
        assert len(completed) == 6
        assert gateway.get_stats()["successful_requests"] == 6

    @pytest.mark.asyncio
    async def test_background_probes_drive_routing(self, gateway_config, fake_client, clock):
        gateway_config.health_check_interval = 0.01
        gateway = create_gateway(gateway_config, client=fake_client, clock=clock)
        fake_client.failures["primary"] = provider_error("primary", status_code=503)

        gateway.start_health_monitoring()
        try:
            for _ in range(200):
                if gateway.health_monitor.status("primary") == HealthStatus.UNHEALTHY:
                    break
                await asyncio.sleep(0.01)
            assert gateway.health_monitor.status("primary") == HealthStatus.UNHEALTHY
            assert gateway.health_monitor.status("secondary") == HealthStatus.HEALTHY

            rerouted = await gateway.send_request(make_request("First prompt"))
            assert rerouted.provider_id == "secondary"

            del fake_client.failures["primary"]
            for _ in range(200):
                if gateway.health_monitor.status("primary") == HealthStatus.HEALTHY:
                    break
                await asyncio.sleep(0.01)

            recovered = await gateway.send_request(make_request("Second prompt"))
            assert recovered.provider_id == "primary"
        finally:
            await gateway.stop_health_monitoring()

        health = gateway.health_monitor.get("primary")
        assert health.failed_probes >= 4
        assert health.last_error is None

    @pytest.mark.asyncio
    async def test_daily_cap_rolls_over(self, gateway_config, fake_client, clock):
        primary = gateway_config.providers[0]
        primary.input_cost_per_1k_tokens = 1.0
        primary.output_cost_per_1k_tokens = 1.0
        primary.cost_limit = CostLimit(max_daily_cost=0.2, max_monthly_cost=5.0)
        gateway = create_gateway(gateway_config, client=fake_client, clock=clock)

        # 400 chars: estimated 0.1, billed 0.12 for 100 prompt + 20 completion tokens
        first = await gateway.send_request(make_request("a" * 400, priority=RequestPriority.CRITICAL))
        assert first.cost == pytest.approx(0.12)

        with pytest.raises(CostLimitExceeded) as exc_info:
            await gateway.send_request(make_request("b" * 400, priority=RequestPriority.CRITICAL))
        assert exc_info.value.daily_spend == pytest.approx(0.12)

        clock.advance(24 * 60 * 60)
        third = await gateway.send_request(make_request("c" * 400, priority=RequestPriority.CRITICAL))

        assert third.provider_id == "primary"
        spend = gateway.cost_ledger.get_spend("primary")
        assert spend.daily == pytest.approx(0.12)
        assert spend.monthly == pytest.approx(0.24)
