"""CLI entry point for the AI gateway."""

import argparse
import asyncio
import json
import logging

from .api.gateway import create_gateway
from .config.settings import GatewayConfig
from .config.providers import get_default_providers
from .models.requests import GatewayRequest, RequestPriority, RequestType


def list_providers():
    """Print the default provider catalog."""
    print("Configured Providers:")
    print("-" * 50)
    for provider in get_default_providers():
        print(f"{provider.id} ({provider.vendor.value}: {provider.model})")
        if provider.description:
            print(f"   {provider.description}")
        scores = ", ".join(f"{t.value}={s:g}" for t, s in provider.capabilities.items())
        print(f"   Capabilities: {scores}")
        print(f"   Cost: ${provider.input_cost_per_1k_tokens}/1k input tokens, "
              f"caps ${provider.cost_limit.max_daily_cost}/day "
              f"${provider.cost_limit.max_monthly_cost}/month")
        print()


async def send_prompt(prompt: str, request_type: str, priority: str, as_json: bool = False):
    """Send one request through a gateway configured from the environment."""
    config = GatewayConfig.from_env()
    request = GatewayRequest(
        type=RequestType(request_type),
        prompt=prompt,
        priority=RequestPriority(priority),
        session_id="cli",
    )

    gateway = create_gateway(config)
    try:
        response = await gateway.send_request(request)
    except Exception as e:
        print(f"Error: {type(e).__name__}: {e}")
        return 1
    finally:
        await gateway.aclose()

    if as_json:
        print(json.dumps(response.model_dump(mode="json"), indent=2))
    else:
        print(f"Response from {response.provider_id} ({response.model}):\n")
        print(response.content)
        print(f"\nTokens used: {response.usage.total_tokens}  Cost: ${response.cost:.6f}")
    return 0


def main():
    """Main CLI function."""
    parser = argparse.ArgumentParser(description="AI gateway CLI")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("providers", help="List the default provider catalog")

    send_parser = subparsers.add_parser("send", help="Send one prompt through the gateway")
    send_parser.add_argument("prompt", help="Text prompt")
    send_parser.add_argument("--type", dest="request_type", default=RequestType.ANALYSIS.value,
                             choices=[t.value for t in RequestType], help="Request type")
    send_parser.add_argument("--priority", default=RequestPriority.MEDIUM.value,
                             choices=[p.value for p in RequestPriority], help="Request priority")
    send_parser.add_argument("--json", action="store_true", help="Print the raw response as JSON")

    args = parser.parse_args()
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)

    if args.command == "providers":
        list_providers()
    elif args.command == "send":
        return asyncio.run(send_prompt(args.prompt, args.request_type, args.priority, args.json))
    else:
        parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
