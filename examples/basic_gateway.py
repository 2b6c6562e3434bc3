"""
Example: Routing, caching and spend tracking

Sends a few requests through a gateway built from the default provider
catalog. Set OPENAI_API_KEY / ANTHROPIC_API_KEY (or run a local
OpenAI-compatible server on :8000) before running.
"""

import asyncio

from ai_gateway import GatewayConfig, GatewayRequest, RequestPriority, RequestType, create_gateway


async def main():
    config = GatewayConfig.from_dict({
        "cache.maxSize": 1000,
        "cache.defaultTTL": 60 * 60 * 1000,
        "similarity.threshold": 0.9,
    })

    async with create_gateway(config) as gateway:
        print("=== Routed request ===\n")
        story = GatewayRequest(
            type=RequestType.NARRATIVE,
            prompt="Write the opening line of a mystery set in a lighthouse.",
        )
        response = await gateway.send_request(story)
        print(f"{response.provider_id} ({response.model}): {response.content}")
        print(f"Cost: ${response.cost:.6f}  Latency: {response.latency_ms:.0f}ms")

        print("\n=== Similar prompt served from cache ===\n")
        again = GatewayRequest(
            type=RequestType.NARRATIVE,
            prompt="write the opening line of a mystery set in a lighthouse",
        )
        cached = await gateway.send_request(again)
        print(f"cached={cached.cached} similarity={cached.metadata.get('similarity')}")

        print("\n=== Queued requests ===\n")
        futures = [
            await gateway.queue_request(GatewayRequest(
                type=RequestType.LOGIC,
                prompt=f"Is {n} a prime number? Answer yes or no.",
                priority=RequestPriority.LOW,
            ))
            for n in (7, 12, 31)
        ]
        for result in await asyncio.gather(*futures, return_exceptions=True):
            if isinstance(result, Exception):
                print(f"failed: {type(result).__name__}: {result}")
            else:
                print(f"{result.provider_id}: {result.content.strip()}")

        stats = gateway.get_stats()
        print(f"\nRequests: {stats['total_requests']}  "
              f"Cache hits: {stats['cache_hits']}  "
              f"Spend: ${stats['total_cost']:.6f}")


if __name__ == "__main__":
    asyncio.run(main())
