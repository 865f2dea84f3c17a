"""
Model Router - resolves a request topic to a provider/model route, runs the
call (single route or fallback chain) and governs spend through the cost
ledger.
"""

import time
from typing import Mapping, Optional, Sequence, Union

from careroute.core.config_loader import FeatureFlags
from careroute.core.exceptions import (
    AdapterNotFoundError,
    BudgetExceededError,
    FallbackExhaustedError,
)
from careroute.core.logging import get_logger
from careroute.models.config import RouteBudget, RouteCandidate, RouteRule, RouterConfig
from careroute.models.cost import RouterStats
from careroute.models.routing import ModelOptions, ModelRequest, ModelResponse, RouteContext
from careroute.providers.base import ProviderAdapter
from careroute.routing.patterns import RuleMatcher
from careroute.storage.cost_tracker import CostTracker

logger = get_logger(__name__)

DEFAULT_TEMPERATURE = 0.2

# Share of callers whose fallback rules run the full candidate chain. The rest
# only try the first candidate. Absent from config means everyone.
FALLBACK_ROLLOUT = "fallback_routing"

# Emergencies always go to the highest-quality model, whatever the rules say.
EMERGENCY_ROUTE = RouteRule(
    name="emergency_override",
    match="*",
    provider="anthropic",
    model="claude-3-5-sonnet",
    temperature=0.0,
    budget=RouteBudget(max_cost_usd=1.0, max_latency_ms=10000),
)

Target = Union[RouteRule, RouteCandidate]


class ModelRouter:
    """
    Routes model calls per declarative rules and enforces cost ceilings.

    The adapter mapping and the cost ledger are owned by the instance; the
    configuration is read-only for its lifetime.
    """

    def __init__(
        self,
        config: RouterConfig,
        adapters: Mapping[str, ProviderAdapter],
        cost_tracker: Optional[CostTracker] = None,
    ):
        self._config = config
        self._adapters = dict(adapters)
        self._matcher = RuleMatcher(config.routing.rules)
        self._flags = FeatureFlags(config)
        self.cost_tracker = cost_tracker or CostTracker()

        llm = config.llm
        self._default_route = RouteRule(
            name="system_default",
            match="*",
            provider=llm.default_provider,
            model=llm.default_model,
            temperature=llm.temperature if llm.temperature is not None else DEFAULT_TEMPERATURE,
        )
        logger.info(
            "model_router_ready",
            rules=len(self._matcher),
            providers=sorted(self._adapters),
            default_provider=llm.default_provider,
            default_model=llm.default_model,
        )

    def select_route(self, context: RouteContext) -> RouteRule:
        """Emergency override first, then the first matching rule, then the system default."""
        if context.emergency:
            return EMERGENCY_ROUTE

        rule = self._matcher.first_match(context.topic)
        if rule is None:
            return self._default_route
        return rule

    async def call(
        self,
        context: RouteContext,
        input: str,
        options: Optional[ModelOptions] = None,
    ) -> ModelResponse:
        options = options or ModelOptions()
        route = self.select_route(context)
        logger.info(
            "route_selected",
            topic=context.topic,
            rule=route.name,
            strategy=route.strategy,
            provider=route.provider,
            model=route.model,
            tenant=context.tenant,
        )

        await self.check_budget_constraints(context, route)

        if route.strategy == "fallback" and route.candidates:
            candidates = route.candidates
            if not self._flags.should_rollout(FALLBACK_ROLLOUT, context.user_id, default=100):
                logger.info("fallback_rollout_held_back", rule=route.name, user_id=context.user_id)
                candidates = candidates[:1]
            response = await self._execute_fallback(route, candidates, input, options)
        else:
            response = await self._execute_route(route, route.budget, input, options)

        self.cost_tracker.record_call(response, tenant=context.tenant)
        return response

    async def _execute_fallback(
        self,
        route: RouteRule,
        candidates: Sequence[RouteCandidate],
        input: str,
        options: ModelOptions,
    ) -> ModelResponse:
        last_error: Optional[Exception] = None
        for idx, candidate in enumerate(candidates):
            try:
                if idx > 0:
                    logger.info(
                        "fallback_attempt",
                        rule=route.name,
                        provider=candidate.provider,
                        model=candidate.model,
                    )
                return await self._execute_route(candidate, route.budget, input, options)
            except Exception as e:
                last_error = e
                logger.warning(
                    "fallback_candidate_failed",
                    rule=route.name,
                    provider=candidate.provider,
                    model=candidate.model,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                continue

        logger.error("fallback_exhausted", rule=route.name, attempts=len(candidates))
        raise FallbackExhaustedError(last_error, attempts=len(candidates))

    async def _execute_route(
        self,
        target: Target,
        budget: Optional[RouteBudget],
        input: str,
        options: ModelOptions,
    ) -> ModelResponse:
        provider = target.provider or self._config.llm.default_provider
        model = target.model or self._config.llm.default_model

        adapter = self._adapters.get(provider)
        if adapter is None:
            raise AdapterNotFoundError(provider)

        request = ModelRequest(
            model=model,
            input=input,
            options=ModelOptions(
                temperature=target.temperature if target.temperature is not None else options.temperature,
                max_tokens=options.max_tokens,
                tools=options.tools,
                system_prompt=options.system_prompt,
            ),
        )

        start = time.perf_counter()
        response = await adapter.invoke(request)
        latency_ms = int((time.perf_counter() - start) * 1000)

        if budget and budget.max_latency_ms and latency_ms > budget.max_latency_ms:
            logger.warning(
                "latency_budget_exceeded",
                provider=provider,
                model=model,
                latency_ms=latency_ms,
                max_latency_ms=budget.max_latency_ms,
            )
        if budget and budget.max_cost_usd is not None and response.usage.cost > budget.max_cost_usd:
            logger.warning(
                "cost_budget_exceeded",
                provider=provider,
                model=model,
                cost=response.usage.cost,
                max_cost_usd=budget.max_cost_usd,
            )

        return response.model_copy(update={"latency": latency_ms, "provider": provider})

    async def check_budget_constraints(self, context: RouteContext, route: RouteRule) -> None:
        """
        Fail fast when a configured spend ceiling is already reached.

        Daily and monthly spend are scoped to ``context.tenant`` when set.
        The check is best-effort: calls still in flight are not counted.
        """
        limits = self._config.cost.hard_limits if self._config.cost else None
        if not limits:
            return

        if limits.daily is not None:
            daily_spend = await self.cost_tracker.get_daily_spend(context.tenant)
            if daily_spend >= limits.daily:
                self._log_budget_block("daily", context, route, daily_spend, limits.daily)
                raise BudgetExceededError("daily", daily_spend, limits.daily)

        if limits.monthly is not None:
            monthly_spend = await self.cost_tracker.get_monthly_spend(context.tenant)
            if monthly_spend >= limits.monthly:
                self._log_budget_block("monthly", context, route, monthly_spend, limits.monthly)
                raise BudgetExceededError("monthly", monthly_spend, limits.monthly)

        if limits.per_tenant is not None and context.tenant:
            tenant_spend = await self.cost_tracker.get_tenant_spend(context.tenant)
            if tenant_spend >= limits.per_tenant:
                self._log_budget_block("tenant", context, route, tenant_spend, limits.per_tenant)
                raise BudgetExceededError("tenant", tenant_spend, limits.per_tenant)

    def _log_budget_block(
        self, scope: str, context: RouteContext, route: RouteRule, current: float, limit: float
    ) -> None:
        logger.warning(
            "budget_exceeded",
            scope=scope,
            tenant=context.tenant,
            rule=route.name,
            current=current,
            limit=limit,
        )

    async def get_stats(self) -> RouterStats:
        return await self.cost_tracker.get_stats()

    def rule_patterns(self) -> dict:
        return self._matcher.patterns()
