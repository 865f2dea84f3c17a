"""
Configuration models for the router.

The loaded configuration is frozen: the router treats it as read-only for
its whole lifetime.
"""

from typing import Dict, Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class RouteBudget(_Frozen):
    max_cost_usd: Optional[float] = Field(default=None, ge=0)
    max_latency_ms: Optional[int] = Field(default=None, gt=0)


class RouteCandidate(_Frozen):
    provider: str
    model: str
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)


class RouteRule(_Frozen):
    name: str
    match: str = "*"
    provider: Optional[str] = None
    model: Optional[str] = None
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    strategy: Literal["default", "fallback"] = "default"
    budget: Optional[RouteBudget] = None
    candidates: Tuple[RouteCandidate, ...] = ()

    @model_validator(mode="after")
    def _fallback_needs_candidates(self) -> "RouteRule":
        if self.strategy == "fallback" and not self.candidates:
            raise ValueError(f"rule '{self.name}' uses the fallback strategy without candidates")
        return self


class AdapterSettings(_Frozen):
    endpoint: str = ""
    api_key: str = ""


class LLMConfig(_Frozen):
    default_provider: str
    default_model: str
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    max_tokens: Optional[int] = Field(default=None, gt=0)
    adapters: Dict[str, AdapterSettings] = Field(default_factory=dict)


class RoutingConfig(_Frozen):
    rules: Tuple[RouteRule, ...] = ()

    @model_validator(mode="after")
    def _unique_rule_names(self) -> "RoutingConfig":
        seen = set()
        for rule in self.rules:
            if rule.name in seen:
                raise ValueError(f"duplicate rule name '{rule.name}'")
            seen.add(rule.name)
        return self


class TokenPrice(_Frozen):
    input: float = Field(default=0.0, ge=0)    # USD per million input tokens
    output: float = Field(default=0.0, ge=0)   # USD per million output tokens


class HardLimits(_Frozen):
    daily: Optional[float] = Field(default=None, ge=0)
    monthly: Optional[float] = Field(default=None, ge=0)
    per_tenant: Optional[float] = Field(default=None, ge=0)


class CostConfig(_Frozen):
    currency: str = "USD"
    token_prices: Dict[str, TokenPrice] = Field(default_factory=dict)
    hard_limits: Optional[HardLimits] = None


class FlagsConfig(_Frozen):
    flags: Dict[str, bool] = Field(default_factory=dict)
    rollout: Dict[str, float] = Field(default_factory=dict)


class AppConfig(_Frozen):
    name: str = "careroute"
    env: str = "development"
    log_level: Literal["debug", "info", "warn", "error"] = "info"


class RouterConfig(BaseModel):
    """Root configuration. Sections owned by other platform services are ignored."""

    app: AppConfig = Field(default_factory=AppConfig)
    llm: LLMConfig
    routing: RoutingConfig = Field(default_factory=RoutingConfig)
    cost: Optional[CostConfig] = None
    flags: FlagsConfig = Field(default_factory=FlagsConfig)

    model_config = ConfigDict(frozen=True, extra="ignore")
