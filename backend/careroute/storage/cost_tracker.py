from __future__ import annotations

import threading
from datetime import datetime
from typing import Callable, Dict, List, Optional

from careroute.core.logging import get_logger
from careroute.models.cost import CallRecord, ProviderStats, RouterStats
from careroute.models.routing import ModelResponse

logger = get_logger(__name__)


class CostTracker:
    """
    Append-only, in-process ledger of completed model calls.

    Every aggregate is a full scan over the ledger. Day and month windows use
    local wall-clock boundaries. Appends and snapshots are taken under a lock,
    so the ledger stays consistent even when routers are shared across threads.
    """

    def __init__(self, clock: Callable[[], datetime] = datetime.now):
        self._clock = clock
        self._calls: List[CallRecord] = []
        self._lock = threading.Lock()

    def record_call(self, response: ModelResponse, tenant: Optional[str] = None) -> CallRecord:
        record = CallRecord(
            timestamp=self._clock(),
            provider=response.provider,
            model=response.model,
            cost=response.usage.cost,
            tenant=tenant,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )
        with self._lock:
            self._calls.append(record)
        logger.debug(
            "call_recorded",
            provider=record.provider,
            model=record.model,
            cost=record.cost,
            tenant=tenant,
        )
        return record

    def records(self) -> List[CallRecord]:
        with self._lock:
            return list(self._calls)

    def _day_start(self) -> datetime:
        return self._clock().replace(hour=0, minute=0, second=0, microsecond=0)

    def _month_start(self) -> datetime:
        return self._day_start().replace(day=1)

    def _sum(
        self,
        since: Optional[datetime] = None,
        tenant: Optional[str] = None,
        calls: Optional[List[CallRecord]] = None,
    ) -> float:
        return sum(
            call.cost
            for call in (self.records() if calls is None else calls)
            if (since is None or call.timestamp >= since)
            and (tenant is None or call.tenant == tenant)
        )

    async def get_daily_spend(self, tenant: Optional[str] = None) -> float:
        return self._sum(since=self._day_start(), tenant=tenant)

    async def get_monthly_spend(self, tenant: Optional[str] = None) -> float:
        return self._sum(since=self._month_start(), tenant=tenant)

    async def get_tenant_spend(self, tenant: str) -> float:
        """All-time spend attributed to a tenant."""
        return sum(call.cost for call in self.records() if call.tenant == tenant)

    async def get_stats(self) -> RouterStats:
        """Every aggregate is computed from one snapshot and one clock reading."""
        calls = self.records()
        day_start = self._day_start()
        month_start = day_start.replace(day=1)
        total_cost = sum(call.cost for call in calls)

        provider_stats: Dict[str, ProviderStats] = {}
        for call in calls:
            stats = provider_stats.setdefault(call.provider, ProviderStats())
            stats.calls += 1
            stats.cost += call.cost

        return RouterStats(
            total_calls=len(calls),
            total_cost=total_cost,
            avg_cost=total_cost / len(calls) if calls else 0.0,
            provider_stats=provider_stats,
            daily_spend=self._sum(since=day_start, calls=calls),
            monthly_spend=self._sum(since=month_start, calls=calls),
        )
