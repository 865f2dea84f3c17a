from abc import ABC, abstractmethod
from typing import Optional

from careroute.models.routing import ModelRequest, ModelResponse, Usage
from careroute.providers.pricing import PriceTable


class ProviderAdapter(ABC):
    """Abstract base class for all LLM provider adapters."""

    provider_name: str = ""

    def __init__(self, prices: Optional[PriceTable] = None):
        self.prices = prices or PriceTable()

    @abstractmethod
    async def invoke(self, request: ModelRequest) -> ModelResponse:
        """Run one completion for the request."""
        ...

    @abstractmethod
    async def health_check(self) -> bool:
        """Returns True if the provider is reachable."""
        ...

    def _messages(self, request: ModelRequest) -> list:
        messages = []
        if request.options.system_prompt:
            messages.append({"role": "system", "content": request.options.system_prompt})
        messages.append({"role": "user", "content": request.input})
        return messages

    def _response(
        self, request: ModelRequest, output: str, input_tokens: int, output_tokens: int
    ) -> ModelResponse:
        return ModelResponse(
            output=output,
            usage=Usage(
                input_tokens=input_tokens,
                output_tokens=output_tokens,
                total_tokens=input_tokens + output_tokens,
                cost=self.prices.cost(request.model, input_tokens, output_tokens),
            ),
            model=request.model,
            provider=self.provider_name,
        )
