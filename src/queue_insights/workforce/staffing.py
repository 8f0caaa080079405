"""
Staffing Model
==============

Converts hourly demand (calls per hour, average handle time) into a
required-agent count.

Mathematical Context:
    Traffic intensity A = calls_per_hour * AHT / 3600   (Erlangs)
    Baseline headcount  = ceil(A / utilization / availability)
    Rolling headcount   = ceil(A * 1.3)

The baseline model (planner workbooks) divides by target utilization and
then by availability to cover breaks and shrinkage. The rolling 14-day
forecast uses a single 1.3 buffer instead. Both floor at 2 agents so every
operating hour keeps minimum coverage even without historical signal.
"""

import math
from dataclasses import dataclass

import pandas as pd

from ..telemetry.business_time import OPERATING_HOURS

UTILIZATION_FACTOR = 0.75
AVAILABILITY_FACTOR = 0.875
ROLLING_MULTIPLIER = 1.3
MIN_AGENTS = 2

TABLE_COLUMNS = ["hour", "day_of_week", "required_agents", "avg_calls", "avg_aht"]


def traffic_intensity(calls_per_hour: float, aht: float) -> float:
    """Offered load in Erlangs (call-hours per hour)."""
    return calls_per_hour * aht / 3600


def required_agents(
    calls_per_hour: float,
    aht: float,
    utilization: float = UTILIZATION_FACTOR,
    availability: float = AVAILABILITY_FACTOR,
) -> int:
    """Baseline agents needed for an hour of demand.

    Args:
        calls_per_hour: Expected answered calls in the hour.
        aht: Average handle time in seconds.
        utilization: Target occupancy of a logged-in agent.
        availability: Share of paid time agents are available.

    Returns:
        Required agents, never fewer than 2.
    """
    if calls_per_hour <= 0 or aht <= 0:
        return MIN_AGENTS
    agents_floor = traffic_intensity(calls_per_hour, aht) / utilization
    return max(math.ceil(agents_floor / availability), MIN_AGENTS)


def rolling_required_agents(
    calls_per_hour: float,
    aht: float,
    multiplier: float = ROLLING_MULTIPLIER,
) -> int:
    """Agents needed under the rolling-forecast single-factor buffer."""
    required = math.ceil(traffic_intensity(calls_per_hour, aht) * multiplier)
    return max(required, MIN_AGENTS)


@dataclass
class ForecastInterval:
    """One (hour, day-of-week) cell of a staffing table.

    Attributes:
        hour: Business-local hour (one of the 18 operating hours).
        day_of_week: 0=Sunday .. 6=Saturday.
        required_agents: Baseline demand headcount (>= 2).
        avg_calls: Average answered calls in the hour.
        avg_aht: Average handle time in seconds.
        scheduled_agents: Headcount after a scenario cap, if one was applied.
        capacity: Calls the scheduled headcount can handle, if applied.
    """
    hour: int
    day_of_week: int
    required_agents: int
    avg_calls: float
    avg_aht: float
    scheduled_agents: int | None = None
    capacity: int | None = None

    def to_payload(self) -> dict:
        payload = {
            "hour": self.hour,
            "dayOfWeek": self.day_of_week,
            "requiredAgents": self.required_agents,
            "avgCalls": self.avg_calls,
            "avgAht": self.avg_aht,
        }
        if self.scheduled_agents is not None:
            payload["scheduledAgents"] = self.scheduled_agents
        if self.capacity is not None:
            payload["capacity"] = self.capacity
        return payload


def operating_grid() -> pd.DataFrame:
    """The 126 (day_of_week, hour) cells of a week, in display order."""
    return pd.DataFrame(
        [(dow, hour) for dow in range(7) for hour in OPERATING_HOURS],
        columns=["day_of_week", "hour"],
    )


def build_baseline(
    cells: pd.DataFrame,
    utilization: float = UTILIZATION_FACTOR,
    availability: float = AVAILABILITY_FACTOR,
) -> pd.DataFrame:
    """Attach baseline required agents to a demand table.

    Args:
        cells: DataFrame with day_of_week, hour, avg_calls, avg_aht columns.

    Returns:
        Staffing table with TABLE_COLUMNS.
    """
    table = cells.copy()
    table["required_agents"] = [
        required_agents(calls, aht, utilization, availability)
        for calls, aht in zip(table["avg_calls"], table["avg_aht"])
    ]
    return table[TABLE_COLUMNS].reset_index(drop=True)


def table_to_intervals(table: pd.DataFrame) -> list[ForecastInterval]:
    """Convert a staffing table into ForecastInterval records."""
    intervals = []
    for row in table.to_dict("records"):
        scheduled = row.get("scheduled_agents")
        capacity = row.get("capacity")
        intervals.append(ForecastInterval(
            hour=int(row["hour"]),
            day_of_week=int(row["day_of_week"]),
            required_agents=int(row["required_agents"]),
            avg_calls=float(row["avg_calls"]),
            avg_aht=float(row["avg_aht"]),
            scheduled_agents=None if pd.isna(scheduled) else int(scheduled),
            capacity=None if pd.isna(capacity) else int(capacity),
        ))
    return intervals
