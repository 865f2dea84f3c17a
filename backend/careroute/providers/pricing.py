from typing import Dict, Optional

from careroute.core.logging import get_logger
from careroute.models.config import CostConfig, TokenPrice

logger = get_logger(__name__)


class PriceTable:
    """Per-model token prices in USD per million tokens."""

    def __init__(self, prices: Optional[Dict[str, TokenPrice]] = None):
        self._prices: Dict[str, TokenPrice] = dict(prices or {})

    @classmethod
    def from_config(cls, cost: Optional[CostConfig]) -> "PriceTable":
        table = cls(cost.token_prices if cost else None)
        logger.info("token_prices_loaded", count=len(table._prices))
        return table

    def cost(self, model: str, input_tokens: int, output_tokens: int) -> float:
        price = self._prices.get(model)
        if not price:
            return 0.0
        input_cost = (input_tokens / 1_000_000) * price.input
        output_cost = (output_tokens / 1_000_000) * price.output
        return round(input_cost + output_cost, 6)
