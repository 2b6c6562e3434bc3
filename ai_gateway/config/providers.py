# Default provider catalog. Capability scores are 0-100 per request type.
from typing import Dict, List

from ..models.providers import ProviderConfig

PROVIDER_CONFIGS: Dict[str, Dict] = {
    "openai-gpt4": {
        "id": "openai-gpt4",
        "vendor": "openai",
        "model": "gpt-4-turbo-preview",
        "description": "OpenAI GPT-4 Turbo, strongest on creative generation",
        "api_key_env": "OPENAI_API_KEY",
        "timeout": 30.0,
        "retry_attempts": 3,
        "capabilities": {"creation": 95, "logic": 90, "narrative": 85, "analysis": 80},
        "rate_limit": {"requests_per_minute": 50, "tokens_per_minute": 10000},
        "cost_limit": {"max_daily_cost": 10.0, "max_monthly_cost": 200.0},
        "input_cost_per_1k_tokens": 0.03,
        "output_cost_per_1k_tokens": 0.06,
    },

    "anthropic-claude": {
        "id": "anthropic-claude",
        "vendor": "anthropic",
        "model": "claude-3-opus-20240229",
        "description": "Anthropic Claude 3 Opus, strongest on logic and narrative",
        "api_key_env": "ANTHROPIC_API_KEY",
        "timeout": 45.0,
        "retry_attempts": 3,
        "capabilities": {"creation": 85, "logic": 95, "narrative": 90, "analysis": 85},
        "rate_limit": {"requests_per_minute": 50, "tokens_per_minute": 20000},
        "cost_limit": {"max_daily_cost": 15.0, "max_monthly_cost": 300.0},
        "input_cost_per_1k_tokens": 0.015,
        "output_cost_per_1k_tokens": 0.075,
    },

    # Self-hosted fallback behind an OpenAI-compatible endpoint
    "local-llama": {
        "id": "local-llama",
        "vendor": "local",
        "model": "llama-2-70b-chat",
        "description": "Self-hosted Llama 2 70B chat",
        "base_url": "http://localhost:8000",
        "timeout": 60.0,
        "retry_attempts": 2,
        "capabilities": {"creation": 75, "logic": 80, "narrative": 70, "analysis": 75},
        "rate_limit": {"requests_per_minute": 10, "tokens_per_minute": 5000},
        "cost_limit": {"max_daily_cost": 0.0, "max_monthly_cost": 0.0},
    },
}


def get_default_providers() -> List[ProviderConfig]:
    """Return the enabled catalog entries as ProviderConfig objects, in catalog order."""
    configs = [ProviderConfig(**raw) for raw in PROVIDER_CONFIGS.values()]
    return [config for config in configs if config.enabled]
