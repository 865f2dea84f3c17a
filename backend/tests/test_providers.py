"""
Tests for provider adapters, pricing and the registry.
"""

import json

import httpx
import pytest
from structlog.testing import capture_logs

from careroute.core.config import Settings
from careroute.core.exceptions import ProviderError
from careroute.models.config import RouterConfig, TokenPrice
from careroute.models.routing import ModelOptions, ModelRequest
from careroute.providers.anthropic import AnthropicAdapter
from careroute.providers.local import LocalAdapter
from careroute.providers.openai import OpenAIAdapter
from careroute.providers.pricing import PriceTable
from careroute.providers.registry import ProviderRegistry
from conftest import FakeAdapter, make_config


class TestPriceTable:
    def test_cost_per_million_tokens(self):
        prices = PriceTable({"claude-3-5-sonnet": TokenPrice(input=3.0, output=15.0)})
        assert prices.cost("claude-3-5-sonnet", 1_000_000, 0) == pytest.approx(3.0)
        assert prices.cost("claude-3-5-sonnet", 2000, 1000) == pytest.approx(0.021)

    def test_unpriced_model_is_free(self):
        assert PriceTable().cost("mystery", 5000, 5000) == 0.0

    def test_from_config(self):
        config = make_config()
        assert PriceTable.from_config(config.cost).cost("gpt-4o", 100, 100) == 0.0


class TestLocalAdapter:
    def _adapter(self, handler) -> LocalAdapter:
        client = httpx.AsyncClient(
            base_url="http://ollama.test", transport=httpx.MockTransport(handler)
        )
        prices = PriceTable({"llama3": TokenPrice(input=1.0, output=2.0)})
        return LocalAdapter(base_url="http://ollama.test", prices=prices, client=client)

    async def test_invoke(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["payload"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={
                    "message": {"role": "assistant", "content": "Install grab bars."},
                    "prompt_eval_count": 1000,
                    "eval_count": 500,
                },
            )

        adapter = self._adapter(handler)
        request = ModelRequest(
            model="llama3",
            input="How do I prevent falls?",
            options=ModelOptions(temperature=0.1, max_tokens=128, system_prompt="Be safe", tools=["risk_analysis"]),
        )

        response = await adapter.invoke(request)

        assert seen["path"] == "/api/chat"
        assert seen["payload"]["messages"] == [
            {"role": "system", "content": "Be safe"},
            {"role": "user", "content": "How do I prevent falls?"},
        ]
        assert seen["payload"]["options"] == {"temperature": 0.1, "num_predict": 128}
        assert seen["payload"]["tools"][0]["function"]["name"] == "risk_analysis"
        assert response.output == "Install grab bars."
        assert response.provider == "local"
        assert response.usage.total_tokens == 1500
        assert response.usage.cost == pytest.approx(0.002)

    async def test_http_error_wrapped(self):
        adapter = self._adapter(lambda request: httpx.Response(503, json={"error": "loading"}))

        with capture_logs() as logs, pytest.raises(ProviderError) as exc_info:
            await adapter.invoke(ModelRequest(model="llama3", input="hi"))

        assert exc_info.value.provider == "local"
        assert exc_info.value.original_status == 503
        assert logs[-1]["event"] == "provider_call_failed"
        assert logs[-1]["log_level"] == "warning"
        assert logs[-1]["provider"] == "local"
        assert logs[-1]["model"] == "llama3"
        assert logs[-1]["status"] == 503

    async def test_transport_error_wrapped(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        adapter = self._adapter(handler)

        with capture_logs() as logs, pytest.raises(ProviderError) as exc_info:
            await adapter.invoke(ModelRequest(model="llama3", input="hi"))

        assert exc_info.value.original_status == 0
        assert logs[-1]["event"] == "provider_call_failed"
        assert logs[-1]["error_type"] == "ConnectError"

    async def test_health_check(self):
        adapter = self._adapter(lambda request: httpx.Response(200, json={"models": []}))
        assert await adapter.health_check() is True


class TestProviderRegistry:
    def test_builds_adapters_from_settings(self):
        settings = Settings(anthropic_api_key="sk-ant-test", openai_api_key="sk-test", _env_file=None)
        registry = ProviderRegistry(make_config(), settings)

        assert isinstance(registry.get("anthropic"), AnthropicAdapter)
        assert isinstance(registry.get("openai"), OpenAIAdapter)
        assert isinstance(registry.get("local"), LocalAdapter)

    def test_keyless_providers_skipped(self):
        settings = Settings(anthropic_api_key="", openai_api_key="", _env_file=None)
        registry = ProviderRegistry(make_config(), settings)
        assert registry.available_providers() == ["local"]

    def test_openai_compatible_adapters(self):
        config = RouterConfig.model_validate(
            {
                "llm": {
                    "default_provider": "vllm",
                    "default_model": "meditron-7b",
                    "adapters": {
                        "vllm": {"endpoint": "http://vllm:8000/v1"},
                        "broken": {"endpoint": ""},
                    },
                }
            }
        )
        settings = Settings(anthropic_api_key="", openai_api_key="", _env_file=None)
        registry = ProviderRegistry(config, settings)

        vllm = registry.get("vllm")
        assert isinstance(vllm, OpenAIAdapter)
        assert vllm.provider_name == "vllm"
        assert registry.get("broken") is None

    async def test_health_check_all(self):
        settings = Settings(_env_file=None)
        adapters = {
            "up": FakeAdapter("up"),
            "down": FakeAdapter("down", fail_with=RuntimeError("x")),
        }
        registry = ProviderRegistry(make_config(), settings, adapters=adapters)
        assert await registry.health_check_all() == {"up": True, "down": False}
