import asyncio
from typing import Dict, Mapping, Optional

from careroute.core.config import Settings
from careroute.core.logging import get_logger
from careroute.models.config import AdapterSettings, RouterConfig
from careroute.providers.anthropic import AnthropicAdapter
from careroute.providers.base import ProviderAdapter
from careroute.providers.local import LocalAdapter
from careroute.providers.openai import OpenAIAdapter
from careroute.providers.pricing import PriceTable

logger = get_logger(__name__)


class ProviderRegistry:
    """Factory and registry for the provider adapters handed to the router."""

    def __init__(
        self,
        config: RouterConfig,
        settings: Settings,
        adapters: Optional[Mapping[str, ProviderAdapter]] = None,
    ):
        self._config = config
        self._settings = settings
        self._prices = PriceTable.from_config(config.cost)
        self._providers: Dict[str, ProviderAdapter] = {}
        if adapters is not None:
            self._providers.update(adapters)
        else:
            self._init_providers()

    def _init_providers(self) -> None:
        configured = dict(self._config.llm.adapters)

        anthropic_cfg = configured.pop("anthropic", AdapterSettings())
        anthropic_key = self._settings.anthropic_api_key or anthropic_cfg.api_key
        if anthropic_key:
            self._providers["anthropic"] = AnthropicAdapter(
                api_key=anthropic_key,
                base_url=anthropic_cfg.endpoint or None,
                prices=self._prices,
            )
            logger.info("provider_registered", provider="anthropic")

        openai_cfg = configured.pop("openai", AdapterSettings())
        openai_key = self._settings.openai_api_key or openai_cfg.api_key
        if openai_key:
            self._providers["openai"] = OpenAIAdapter(
                api_key=openai_key,
                base_url=openai_cfg.endpoint or None,
                prices=self._prices,
            )
            logger.info("provider_registered", provider="openai")

        # Local models are always available
        local_cfg = configured.pop("local", AdapterSettings())
        self._providers["local"] = LocalAdapter(
            base_url=local_cfg.endpoint or self._settings.ollama_base_url,
            prices=self._prices,
        )
        logger.info("provider_registered", provider="local")

        # Any other configured adapter speaks the OpenAI-compatible API
        for name, adapter_cfg in configured.items():
            if not adapter_cfg.endpoint:
                logger.warning("provider_skipped_no_endpoint", provider=name)
                continue
            self._providers[name] = OpenAIAdapter(
                api_key=adapter_cfg.api_key or "not-needed",
                base_url=adapter_cfg.endpoint,
                prices=self._prices,
                provider_name=name,
            )
            logger.info("provider_registered", provider=name)

    def get(self, provider_name: str) -> Optional[ProviderAdapter]:
        return self._providers.get(provider_name)

    def adapters(self) -> Dict[str, ProviderAdapter]:
        return dict(self._providers)

    def available_providers(self) -> list[str]:
        return list(self._providers.keys())

    async def health_check_all(self) -> Dict[str, bool]:
        async def _check(name: str, provider: ProviderAdapter) -> tuple[str, bool]:
            try:
                ok = await asyncio.wait_for(provider.health_check(), timeout=3.0)
                return name, ok
            except Exception:
                return name, False

        checks = await asyncio.gather(*[_check(n, p) for n, p in self._providers.items()])
        return dict(checks)
