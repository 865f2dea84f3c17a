from typing import List, Optional

import openai as openai_lib

from careroute.core.exceptions import ProviderError
from careroute.core.logging import get_logger
from careroute.models.routing import ModelRequest, ModelResponse
from careroute.providers.base import ProviderAdapter
from careroute.providers.pricing import PriceTable

logger = get_logger(__name__)


def _function_tools(names: List[str]) -> list:
    return [
        {
            "type": "function",
            "function": {"name": name, "parameters": {"type": "object", "properties": {}}},
        }
        for name in names
    ]


class OpenAIAdapter(ProviderAdapter):
    provider_name = "openai"

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        prices: Optional[PriceTable] = None,
        provider_name: Optional[str] = None,
    ):
        super().__init__(prices)
        if provider_name:
            # OpenAI-compatible endpoints register under their own name
            self.provider_name = provider_name
        self.client = openai_lib.AsyncOpenAI(
            api_key=api_key,
            base_url=base_url or None,
        )

    async def invoke(self, request: ModelRequest) -> ModelResponse:
        options = request.options
        try:
            kwargs = dict(
                model=request.model,
                messages=self._messages(request),
                stream=False,
            )
            if options.temperature is not None:
                kwargs["temperature"] = options.temperature
            if options.max_tokens is not None:
                kwargs["max_tokens"] = options.max_tokens
            if options.tools:
                kwargs["tools"] = _function_tools(options.tools)

            response = await self.client.chat.completions.create(**kwargs)

            choice = response.choices[0]
            usage = response.usage
            return self._response(
                request,
                output=choice.message.content or "",
                input_tokens=usage.prompt_tokens if usage else 0,
                output_tokens=usage.completion_tokens if usage else 0,
            )
        except openai_lib.APIStatusError as e:
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
