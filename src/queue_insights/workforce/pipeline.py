"""
Pipeline Module (Rolling Forecast)
==================================

Orchestrates the lightweight rolling forecast served without a workbook
upload: Query -> Aggregate -> Staff.

Connects the upstream aggregate query, the Historical Demand Aggregator and
the rolling staffing formula into one end-to-end call.
"""

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone

from ..config import PlannerConfig
from ..log import get_logger
from ..telemetry.client import GenesysClient
from .demand import aggregate_history
from .staffing import ForecastInterval, rolling_required_agents

log = get_logger(__name__)


def round_half_up(value: float, digits: int = 0) -> float:
    scale = 10 ** digits
    return math.floor(value * scale + 0.5) / scale


@dataclass
class ForecastResponse:
    """Complete result of one rolling-forecast run.

    Attributes:
        intervals: 126 cells, day-major, operating hours in display order.
        generated_at: When the forecast was produced (UTC).
    """
    intervals: list[ForecastInterval]
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_payload(self) -> dict:
        return {
            "intervals": [i.to_payload() for i in self.intervals],
            "generatedAt": self.generated_at.isoformat().replace("+00:00", "Z"),
        }


class ForecastPipeline:
    """Builds the rolling forecast from the last `lookback_days` of history.

    Uses Dependency Injection: takes a pre-configured client so the pipeline
    logic is decoupled from transport and credentials.

    Workflow (run method):
        1. Query hourly nAnswered/tHandle aggregates for the lookback window
        2. Fold them into the (day_of_week, hour) demand table
        3. Apply the rolling staffing formula to every cell
    """

    def __init__(self, client: GenesysClient, config: PlannerConfig | None = None) -> None:
        self.client = client
        self.config = config or PlannerConfig()

    def run(self, now: datetime | None = None) -> ForecastResponse:
        """Execute query -> aggregate -> staff.

        Raises:
            UpstreamQueryError: If the aggregate query fails.
        """
        now = now or datetime.now(timezone.utc)
        start = now - timedelta(days=self.config.lookback_days)

        # Step 1: Pull hourly history
        response = self.client.query_aggregates(start, now)

        # Step 2: Average per weekday/hour slot
        demand = aggregate_history(response, comparable_days=self.config.comparable_days)

        # Step 3: Staff every slot
        intervals = [
            ForecastInterval(
                hour=int(row.hour),
                day_of_week=int(row.day_of_week),
                required_agents=rolling_required_agents(
                    row.avg_calls, row.avg_aht, self.config.rolling_multiplier
                ),
                avg_calls=round_half_up(row.avg_calls, 1),
                avg_aht=int(round_half_up(row.avg_aht)),
            )
            for row in demand.itertuples(index=False)
        ]
        log.info("rolling_forecast_built", cells=len(intervals),
                 peak=max(i.required_agents for i in intervals))
        return ForecastResponse(intervals=intervals, generated_at=now)
