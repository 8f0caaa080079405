"""
Interval Dashboard
==================

One queue's interval operations view for a business day: upstream fetch,
aggregation, KPI summary and customer recovery analysis, plus the periodic
refresh loop that keeps it current.

Data Flow:
    GenesysClient -> snapshot(day) -> DashboardSnapshot -> to_payload()
                         ^
    watch(stop) ---------+ every DashboardConfig.polling_interval_seconds,
                           committed through a RefreshCoordinator
"""

import asyncio
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from datetime import date, datetime, timezone
from typing import Any

import structlog

from ..config import DashboardConfig
from ..log import get_logger
from .aggregator import IntervalReport, KpiSummary, aggregate_conversations, summarize
from .business_time import resolve, shift_window
from .client import GenesysClient
from .customers import CustomerAnalysis, analyze_customers, extract_customer_conversations
from .refresh import RefreshCoordinator

log = get_logger(__name__)


def current_business_day(now: datetime | None = None) -> date:
    """The business day the clock is in (before 03:00 local it is yesterday)."""
    now = now or datetime.now(timezone.utc)
    return date.fromisoformat(resolve(now).business_day)


@dataclass
class DashboardSnapshot:
    """Everything the interval dashboard shows for one business day."""
    queue_id: str
    day: date
    report: IntervalReport
    kpis: KpiSummary
    customers: CustomerAnalysis
    refreshed_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_payload(self) -> dict[str, Any]:
        return {
            "queueId": self.queue_id,
            "day": self.day,
            "refreshedAt": self.refreshed_at,
            "history": [asdict(row) for row in self.report.history],
            "agents": [asdict(agent) for agent in self.report.agents],
            "wrapUps": [asdict(r) for r in self.report.wrap_ups],
            "topCallers": [asdict(c) for c in self.report.top_callers],
            "kpis": asdict(self.kpis),
            "customers": {
                "summary": [asdict(s) for s in self.customers.summary],
                "details": [asdict(d) for d in self.customers.details],
            },
        }


class IntervalDashboard:
    """Builds and refreshes the interval view of a single queue.

    Example:
        >>> dashboard = IntervalDashboard(client, "Super Chicken")
        >>> dashboard.snapshot(date(2025, 4, 15)).kpis.summary.sl
    """

    def __init__(
        self,
        client: GenesysClient,
        queue_name: str,
        config: DashboardConfig | None = None,
    ) -> None:
        self.client = client
        self.queue_name = queue_name
        self.config = config or DashboardConfig()
        self.coordinator: RefreshCoordinator[DashboardSnapshot] = RefreshCoordinator()
        self._queue_id: str | None = None

    @property
    def queue_id(self) -> str:
        if self._queue_id is None:
            self._queue_id = self.client.find_queue_id(self.queue_name)
        return self._queue_id

    def snapshot(self, day: date) -> DashboardSnapshot:
        """Fetch and aggregate one business day.

        Raises:
            UpstreamQueryError: If the queue lookup or any query fails.
        """
        with structlog.contextvars.bound_contextvars(queue=self.queue_name):
            start, end = shift_window(day)
            records = self.client.query_conversations(self.queue_id, start, end)
            names = self.client.fetch_user_names()

            report = aggregate_conversations(
                records,
                agent_names=names,
                sl_threshold_ms=self.config.sl_threshold_ms,
                top_callers_limit=self.config.top_callers_limit,
            )
            customers = sorted(extract_customer_conversations(records), key=lambda c: c.start_time)
            snapshot = DashboardSnapshot(
                queue_id=self.queue_id,
                day=day,
                report=report,
                kpis=summarize(report.history, report.agents),
                customers=analyze_customers(customers),
            )
            log.info("dashboard_snapshot_built", day=day.isoformat(),
                     buckets=len(report.history), conversations=len(records))
        return snapshot

    async def watch(
        self,
        stop: asyncio.Event,
        on_update: Callable[[DashboardSnapshot], None],
        day: date | None = None,
    ) -> None:
        """Refresh until `stop` is set, calling `on_update` with each result.

        Without a fixed `day` every refresh follows the current business day.
        The blocking upstream calls run in a worker thread.
        """
        async def fetch() -> DashboardSnapshot:
            return await asyncio.to_thread(self.snapshot, day or current_business_day())

        await self.coordinator.run_periodic(
            fetch,
            stop,
            interval=self.config.polling_interval_seconds,
            on_update=on_update,
        )
