from typing import Optional

import anthropic

from careroute.core.exceptions import ProviderError
from careroute.core.logging import get_logger
from careroute.models.routing import ModelRequest, ModelResponse
from careroute.providers.base import ProviderAdapter
from careroute.providers.pricing import PriceTable

logger = get_logger(__name__)

DEFAULT_MAX_TOKENS = 4096


class AnthropicAdapter(ProviderAdapter):
    provider_name = "anthropic"

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        prices: Optional[PriceTable] = None,
    ):
        super().__init__(prices)
        self.client = anthropic.AsyncAnthropic(api_key=api_key, base_url=base_url or None)

    async def invoke(self, request: ModelRequest) -> ModelResponse:
        options = request.options
        try:
            kwargs = dict(
                model=request.model,
                messages=[{"role": "user", "content": request.input}],
                max_tokens=options.max_tokens or DEFAULT_MAX_TOKENS,
            )
            if options.system_prompt:
                kwargs["system"] = options.system_prompt
            if options.temperature is not None:
                kwargs["temperature"] = options.temperature
            if options.tools:
                kwargs["tools"] = [
                    {"name": name, "input_schema": {"type": "object", "properties": {}}}
                    for name in options.tools
                ]

            response = await self.client.messages.create(**kwargs)

            output = "".join(
                block.text for block in response.content if getattr(block, "type", "") == "text"
            )
            return self._response(
                request,
                output=output,
                input_tokens=response.usage.input_tokens,
                output_tokens=response.usage.output_tokens,
            )
        except anthropic.APIStatusError as e:
            logger.warning(
                "provider_call_failed",
                provider=self.provider_name,
                model=request.model,
                status=e.status_code,
                error=str(e),
            )
            raise ProviderError(str(e), self.provider_name, e.status_code)
        except Exception as e:
            logger.warning(
                "provider_call_failed",
                provider=self.provider_name,
                model=request.model,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise ProviderError(str(e), self.provider_name)

    async def health_check(self) -> bool:
        try:
            await self.client.models.list()
            return True
        except Exception:
            return False
