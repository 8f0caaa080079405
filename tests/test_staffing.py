"""Tests for the staffing model."""

import pandas as pd
import pytest

from queue_insights.telemetry.business_time import OPERATING_HOURS
from queue_insights.workforce.staffing import (
    MIN_AGENTS,
    TABLE_COLUMNS,
    ForecastInterval,
    build_baseline,
    operating_grid,
    required_agents,
    rolling_required_agents,
    table_to_intervals,
    traffic_intensity,
)


class TestFormulas:
    """Tests for the per-hour headcount formulas."""

    def test_traffic_intensity(self):
        assert traffic_intensity(60, 300) == pytest.approx(5.0)

    @pytest.mark.parametrize("calls,aht", [(0, 240), (10, 0), (-1, 240)])
    def test_no_demand_keeps_minimum(self, calls, aht):
        assert required_agents(calls, aht) == MIN_AGENTS
        assert rolling_required_agents(calls, aht) == MIN_AGENTS

    @pytest.mark.parametrize("calls,expected", [(10, 2), (40, 5), (100, 11)])
    def test_baseline(self, calls, expected):
        assert required_agents(calls, 240) == expected

    @pytest.mark.parametrize("calls,expected", [(10, 2), (40, 4), (100, 9)])
    def test_rolling(self, calls, expected):
        assert rolling_required_agents(calls, 240) == expected

    def test_rolling_buffer_differs_from_baseline(self):
        assert rolling_required_agents(40, 240) != required_agents(40, 240)

    def test_custom_factors(self):
        # A = 2.0 Erlangs, divided by 0.5 and 1.0
        assert required_agents(30, 240, utilization=0.5, availability=1.0) == 4


class TestTables:
    """Tests for grid and table construction."""

    def test_operating_grid(self):
        grid = operating_grid()
        assert len(grid) == 126
        assert list(grid.columns) == ["day_of_week", "hour"]
        assert list(grid["hour"][:18]) == list(OPERATING_HOURS)
        assert set(grid["day_of_week"]) == set(range(7))
        assert not grid["hour"].isin(range(3, 9)).any()

    def test_build_baseline(self, demand_table):
        table = build_baseline(demand_table)
        assert list(table.columns) == TABLE_COLUMNS
        assert len(table) == 126
        assert table["required_agents"].min() >= MIN_AGENTS
        friday_peak = table[(table["day_of_week"] == 5) & (table["hour"] == 21)]
        assert friday_peak["required_agents"].iloc[0] == 11

    def test_build_baseline_does_not_mutate_input(self, demand_table):
        before = demand_table.copy()
        build_baseline(demand_table)
        pd.testing.assert_frame_equal(demand_table, before)

    def test_table_to_intervals_without_scenario(self, demand_table):
        intervals = table_to_intervals(build_baseline(demand_table))
        assert len(intervals) == 126
        first = intervals[0]
        assert (first.day_of_week, first.hour) == (0, 9)
        assert first.scheduled_agents is None
        assert first.capacity is None


class TestForecastInterval:
    """Tests for the JSON payload shape."""

    def test_payload_without_scenario(self):
        payload = ForecastInterval(21, 5, 11, 100.0, 240.0).to_payload()
        assert payload == {
            "hour": 21,
            "dayOfWeek": 5,
            "requiredAgents": 11,
            "avgCalls": 100.0,
            "avgAht": 240.0,
        }

    def test_payload_with_scenario(self):
        payload = ForecastInterval(21, 5, 11, 100.0, 240.0, scheduled_agents=22, capacity=247).to_payload()
        assert payload["scheduledAgents"] == 22
        assert payload["capacity"] == 247
