"""
Scenario Redistribution Engine
==============================

Rescales a baseline staffing table under an operator-chosen cap on
concurrent agents and derives the call capacity of the resulting schedule.

The scaling is one global linear multiplier, max_concurrent / peak_required,
applied to every cell in a single pass. Cells are not re-optimized
individually, so hours far from the peak can end up over- or
under-provisioned relative to their own demand.
"""

from dataclasses import dataclass
from enum import Enum
from numbers import Integral

import numpy as np
import pandas as pd

from ..exceptions import InvalidScenarioError
from .staffing import UTILIZATION_FACTOR

DEFAULT_AHT_SECONDS = 300.0
MIN_CONCURRENT = 1
MAX_CONCURRENT = 250


class PlannerView(str, Enum):
    BASELINE = "baseline"
    SCHEDULED = "scheduled"
    CAPACITY = "capacity"

    @property
    def column(self) -> str:
        return {
            PlannerView.BASELINE: "required_agents",
            PlannerView.SCHEDULED: "scheduled_agents",
            PlannerView.CAPACITY: "capacity",
        }[self]


@dataclass(frozen=True)
class ViewStats:
    """Min/max of the active view, used to normalize the heat map."""
    min: int
    max: int


def validate_cap(
    max_concurrent: int,
    lower: int = MIN_CONCURRENT,
    upper: int = MAX_CONCURRENT,
) -> int:
    if isinstance(max_concurrent, bool) or not isinstance(max_concurrent, Integral):
        raise InvalidScenarioError(
            "Max concurrent agents must be an integer",
            details={"max_concurrent": repr(max_concurrent)},
        )
    if not lower <= max_concurrent <= upper:
        raise InvalidScenarioError(
            f"Max concurrent agents must be between {lower} and {upper}",
            details={"max_concurrent": int(max_concurrent)},
        )
    return int(max_concurrent)


def apply_scenario(
    table: pd.DataFrame,
    max_concurrent: int,
    utilization: float = UTILIZATION_FACTOR,
    default_aht: float = DEFAULT_AHT_SECONDS,
) -> pd.DataFrame:
    """Scale the baseline table to a concurrency cap.

    For every cell:
        scheduled_agents = ceil(required_agents * max_concurrent / peak)
        capacity = floor(scheduled_agents * 3600 * utilization / aht)
    where aht falls back to default_aht, and capacity is 0 for cells with
    no handle-time signal.

    Args:
        table: Baseline staffing table (required_agents, avg_aht columns).
        max_concurrent: Operator cap on concurrent agents (1-250).
        utilization: Target occupancy used for capacity.
        default_aht: Handle time assumed where a cell has none.

    Returns:
        A copy of the table with scheduled_agents and capacity columns; an
        unchanged copy if the peak requirement is 0.

    Raises:
        InvalidScenarioError: If max_concurrent is not an int in range.
    """
    max_concurrent = validate_cap(max_concurrent)
    result = table.copy()
    peak = peak_required(result)
    if peak == 0:
        return result

    multiplier = max_concurrent / peak
    scheduled = np.ceil(result["required_agents"] * multiplier).astype(int)

    aht = result["avg_aht"].fillna(0)
    max_calls_per_agent = (3600 * utilization) / aht.where(aht > 0, default_aht)
    capacity = np.where(aht > 0, np.floor(scheduled * max_calls_per_agent), 0)

    result["scheduled_agents"] = scheduled
    result["capacity"] = capacity.astype(int)
    return result


def view_values(table: pd.DataFrame, view: PlannerView) -> pd.Series:
    """Values of a view; missing scenario columns read as 0."""
    view = PlannerView(view)
    if view.column not in table.columns:
        return pd.Series(0, index=table.index, dtype=int)
    return table[view.column].fillna(0).astype(int)


def view_stats(table: pd.DataFrame, view: PlannerView) -> ViewStats:
    values = view_values(table, view)
    if values.empty:
        return ViewStats(min=0, max=0)
    return ViewStats(min=int(values.min()), max=int(values.max()))


def day_totals(table: pd.DataFrame, view: PlannerView) -> list[int]:
    """Sum of the view per day of week, Sunday first."""
    values = view_values(table, view)
    totals = values.groupby(table["day_of_week"]).sum() if not values.empty else pd.Series(dtype=int)
    return [int(totals.get(dow, 0)) for dow in range(7)]


def heat_ratio(value: float, stats: ViewStats) -> float:
    """Position of a value between the view's min and max, clamped to [0, 1]."""
    if stats.max == stats.min:
        return 0.0
    ratio = (value - stats.min) / (stats.max - stats.min)
    return max(0.0, min(1.0, ratio))


def peak_required(table: pd.DataFrame) -> int:
    if table.empty:
        return 0
    return int(table["required_agents"].max())
