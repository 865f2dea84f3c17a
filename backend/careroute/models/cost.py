from datetime import datetime
from typing import Dict, Optional

from pydantic import BaseModel, ConfigDict


class CallRecord(BaseModel):
    timestamp: datetime
    provider: str
    model: str
    cost: float
    tenant: Optional[str] = None
    input_tokens: int = 0
    output_tokens: int = 0

    model_config = ConfigDict(frozen=True)


class ProviderStats(BaseModel):
    calls: int = 0
    cost: float = 0.0


class RouterStats(BaseModel):
    total_calls: int
    total_cost: float
    avg_cost: float
    provider_stats: Dict[str, ProviderStats]
    daily_spend: float
    monthly_spend: float
