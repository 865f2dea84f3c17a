from typing import Optional

import httpx

from careroute.core.exceptions import ProviderError
from careroute.core.logging import get_logger
from careroute.models.routing import ModelRequest, ModelResponse
from careroute.providers.base import ProviderAdapter
from careroute.providers.pricing import PriceTable

logger = get_logger(__name__)


class LocalAdapter(ProviderAdapter):
    """Self-hosted models served by Ollama's chat API."""

    provider_name = "local"

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        prices: Optional[PriceTable] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        super().__init__(prices)
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.AsyncClient(base_url=self.base_url, timeout=120.0)

    async def invoke(self, request: ModelRequest) -> ModelResponse:
        options = request.options
        try:
            payload = {
                "model": request.model,
                "messages": self._messages(request),
                "stream": False,
            }
            model_options = {}
            if options.temperature is not None:
                model_options["temperature"] = options.temperature
            if options.max_tokens is not None:
                model_options["num_predict"] = options.max_tokens
            if model_options:
                payload["options"] = model_options
            if options.tools:
                payload["tools"] = [
                    {"type": "function", "function": {"name": name, "parameters": {"type": "object", "properties": {}}}}
                    for name in options.tools
                ]

            response = await self.client.post("/api/chat", json=payload)
            response.raise_for_status()
            data = response.json()

            return self._response(
                request,
                output=data.get("message", {}).get("content", ""),
                input_tokens=int(data.get("prompt_eval_count", 0)),
                output_tokens=int(data.get("eval_count", 0)),
            )
        except httpx.HTTPStatusError as e:
            logger.warning(
                "provider_call_failed",
                provider=self.provider_name,
                model=request.model,
                status=e.response.status_code,
                error=str(e),
            )
            raise ProviderError(str(e), self.provider_name, e.response.status_code)
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
            response = await self.client.get("/api/tags")
            return response.status_code == 200
        except Exception:
            return False
