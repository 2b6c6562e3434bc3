"""Unit tests for the command line interface."""

import json
from unittest.mock import patch

import pytest

from ai_gateway import cli
from ai_gateway.api.gateway import create_gateway
from tests.helpers.fakes import FakeProviderClient, provider_error

pytestmark = pytest.mark.unit


def fake_gateway_factory(client):
    def factory(config):
        return create_gateway(config, client=client)
    return factory


def test_list_providers(capsys):
    cli.list_providers()
    out = capsys.readouterr().out

    assert "openai-gpt4 (openai: gpt-4-turbo-preview)" in out
    assert "anthropic-claude (anthropic: claude-3-opus-20240229)" in out
    assert "narrative=90" in out


@pytest.mark.asyncio
async def test_send_prompt_prints_response(capsys, monkeypatch):
    monkeypatch.delenv("AI_GATEWAY_CACHE_BACKEND", raising=False)
    client = FakeProviderClient()
    with patch.object(cli, "create_gateway", fake_gateway_factory(client)):
        code = await cli.send_prompt("Summarise the report", "analysis", "medium")

    out = capsys.readouterr().out
    assert code == 0
    # anthropic-claude rates analysis highest in the default catalog
    assert "Response from anthropic-claude" in out
    assert "anthropic-claude: Summarise the report" in out


@pytest.mark.asyncio
async def test_send_prompt_json_output(capsys, monkeypatch):
    monkeypatch.delenv("AI_GATEWAY_CACHE_BACKEND", raising=False)
    with patch.object(cli, "create_gateway", fake_gateway_factory(FakeProviderClient())):
        await cli.send_prompt("Plot twist", "creation", "high", as_json=True)

    body = json.loads(capsys.readouterr().out)
    assert body["provider_id"] == "openai-gpt4"
    assert body["cached"] is False


@pytest.mark.asyncio
async def test_send_prompt_reports_errors(capsys, monkeypatch):
    monkeypatch.delenv("AI_GATEWAY_CACHE_BACKEND", raising=False)
    client = FakeProviderClient()
    client.failures["openai-gpt4"] = provider_error("openai-gpt4", status_code=401)
    with patch.object(cli, "create_gateway", fake_gateway_factory(client)):
        code = await cli.send_prompt("Plot twist", "creation", "high")

    assert code == 1
    assert "Error: ProviderInvocationError: openai-gpt4 exploded" in capsys.readouterr().out


def test_main_without_command_prints_help(capsys, monkeypatch):
    monkeypatch.setattr("sys.argv", ["ai-gateway"])
    assert cli.main() == 0
    assert "providers" in capsys.readouterr().out
