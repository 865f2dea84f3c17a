from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class RouteContext(BaseModel):
    topic: str
    tenant: Optional[str] = None
    risk: Optional[RiskLevel] = None
    user_id: Optional[str] = None
    emergency: bool = False


class ModelOptions(BaseModel):
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    max_tokens: Optional[int] = Field(default=None, gt=0)
    tools: Optional[List[str]] = None
    system_prompt: Optional[str] = None


class ModelRequest(BaseModel):
    model: str
    input: str
    options: ModelOptions = Field(default_factory=ModelOptions)


class Usage(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    cost: float = 0.0


class ModelResponse(BaseModel):
    output: str
    usage: Usage = Field(default_factory=Usage)
    latency: int = 0  # milliseconds, measured by the router
    model: str
    provider: str
