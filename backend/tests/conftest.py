"""
Shared fixtures: in-memory adapters and configuration builders.
"""

import asyncio
from datetime import datetime
from typing import List, Optional

import pytest
import structlog

from careroute.models.config import RouterConfig
from careroute.models.routing import ModelRequest, ModelResponse, Usage
from careroute.providers.base import ProviderAdapter


class FakeAdapter(ProviderAdapter):
    """Adapter double that records requests and returns canned responses."""

    def __init__(
        self,
        provider_name: str,
        cost: float = 0.01,
        fail_with: Optional[Exception] = None,
        delay: float = 0.0,
    ):
        super().__init__()
        self.provider_name = provider_name
        self.cost = cost
        self.fail_with = fail_with
        self.delay = delay
        self.requests: List[ModelRequest] = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def invoke(self, request: ModelRequest) -> ModelResponse:
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_with is not None:
            raise self.fail_with
        return ModelResponse(
            output=f"{self.provider_name}:{request.model}:{request.input}",
            usage=Usage(input_tokens=10, output_tokens=20, total_tokens=30, cost=self.cost),
            latency=999999,
            model=request.model,
            provider="adapter-reported",
        )

    async def health_check(self) -> bool:
        return self.fail_with is None


class FixedClock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def make_config(rules=None, hard_limits=None, temperature=None, flags=None) -> RouterConfig:
    data = {
        "llm": {
            "default_provider": "openai",
            "default_model": "gpt-4o-mini",
        },
        "routing": {"rules": rules or []},
    }
    if temperature is not None:
        data["llm"]["temperature"] = temperature
    if hard_limits is not None:
        data["cost"] = {"hard_limits": hard_limits}
    if flags is not None:
        data["flags"] = flags
    return RouterConfig.model_validate(data)


@pytest.fixture(autouse=True)
def reset_structlog():
    yield
    structlog.reset_defaults()


@pytest.fixture
def adapters():
    return {
        "anthropic": FakeAdapter("anthropic", cost=0.05),
        "openai": FakeAdapter("openai", cost=0.02),
        "local": FakeAdapter("local", cost=0.0),
    }
