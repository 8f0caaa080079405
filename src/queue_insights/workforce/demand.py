"""
Historical Demand Aggregator
============================

Folds hourly aggregate-query results over the lookback window into a
canonical hour-of-day x day-of-week demand table.

Phase 1 approach (same as the averages-by-slot forecaster): sum answered
calls and handle time per (day_of_week, hour) slot, then average over the
number of same-weekday samples the window is expected to contain.

Data Flow:
    AggregateQueryResponse -> aggregate_history() -> demand table (126 cells)
                                                          |
                                  build_rolling_forecast() / build_baseline()
"""

from typing import Any

import numpy as np
import pandas as pd

from ..telemetry.business_time import resolve
from ..telemetry.schemas import AggregateQueryResponse, parse_aggregates
from .staffing import operating_grid

COMPARABLE_DAYS = 2


def collect_samples(response: AggregateQueryResponse) -> pd.DataFrame:
    """One row per hourly bucket inside operating hours.

    Columns: day_of_week, hour, answered, handle_sum, handle_count.
    """
    rows = []
    for group in response.results:
        for bucket in group.data:
            biz = resolve(bucket.start)
            if not biz.is_operating:
                continue
            rows.append({
                "day_of_week": biz.day_of_week,
                "hour": biz.hour,
                "answered": bucket.stat("nAnswered", "count"),
                "handle_sum": bucket.stat("tHandle", "sum"),
                "handle_count": bucket.stat("tHandle", "count"),
            })
    samples = pd.DataFrame(
        rows, columns=["day_of_week", "hour", "answered", "handle_sum", "handle_count"]
    )
    return samples.astype({
        "day_of_week": "int64",
        "hour": "int64",
        "answered": "float64",
        "handle_sum": "float64",
        "handle_count": "float64",
    })


def aggregate_history(
    response: AggregateQueryResponse | dict[str, Any],
    comparable_days: int = COMPARABLE_DAYS,
) -> pd.DataFrame:
    """Average demand per (day_of_week, hour) over the lookback window.

    Args:
        response: Parsed aggregate response, or the raw JSON payload.
        comparable_days: Same-weekday samples expected in the window
            (2 for the 14-day comparable window of a 15-day lookback).

    Returns:
        DataFrame with day_of_week, hour, avg_calls, avg_aht (seconds) for
        all 126 operating cells; cells without data are 0.

    Raises:
        ValueError: If comparable_days is not positive.
    """
    if comparable_days <= 0:
        raise ValueError("comparable_days must be positive")
    if isinstance(response, dict):
        response = parse_aggregates(response)

    samples = collect_samples(response)
    totals = (
        samples.groupby(["day_of_week", "hour"])[["answered", "handle_sum", "handle_count"]]
        .sum()
        .reset_index()
    )
    table = operating_grid().merge(totals, on=["day_of_week", "hour"], how="left")
    table[["answered", "handle_sum", "handle_count"]] = (
        table[["answered", "handle_sum", "handle_count"]].fillna(0)
    )

    table["avg_calls"] = table["answered"] / comparable_days
    has_samples = table["handle_count"] > 0
    table["avg_aht"] = np.where(
        has_samples,
        table["handle_sum"] / table["handle_count"].where(has_samples, 1) / 1000,
        0.0,
    )
    return table[["day_of_week", "hour", "avg_calls", "avg_aht"]]
