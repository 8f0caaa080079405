"""Tests for the planner workflow state machine."""

from io import BytesIO

import pandas as pd
import pytest

from queue_insights.config import PlannerConfig
from queue_insights.exceptions import InvalidScenarioError, MissingSheetError, PlannerStateError
from queue_insights.workforce.planner import Planner, PlannerState
from queue_insights.workforce.scenario import PlannerView, ViewStats
from queue_insights.workforce.workbook import write_demand_workbook


@pytest.fixture
def planner(demand_table):
    planner = Planner()
    planner.load_table(demand_table)
    return planner


class TestEmptyPlanner:
    """Operations that need a loaded forecast."""

    def test_initial_state(self):
        planner = Planner()
        assert planner.state is PlannerState.EMPTY
        assert planner.view is PlannerView.BASELINE

    def test_table_requires_load(self):
        with pytest.raises(PlannerStateError):
            Planner().table

    def test_generate_requires_load(self):
        with pytest.raises(PlannerStateError) as exc_info:
            Planner().generate_scenarios(20)
        assert exc_info.value.status_code == 409

    def test_set_view_requires_load(self):
        with pytest.raises(PlannerStateError):
            Planner().set_view("baseline")


class TestLoaded:
    """Behaviour after a workbook is loaded."""

    def test_load_workbook(self, demand_table):
        buffer = BytesIO()
        write_demand_workbook(demand_table, buffer)
        buffer.seek(0)
        planner = Planner()
        table = planner.load_workbook(buffer)
        assert planner.state is PlannerState.LOADED
        assert len(table) == 126
        assert planner.stats == ViewStats(min=2, max=11)

    def test_scenario_views_need_scenario(self, planner):
        with pytest.raises(PlannerStateError):
            planner.set_view(PlannerView.SCHEDULED)
        with pytest.raises(PlannerStateError):
            planner.set_view("capacity")
        assert planner.view is PlannerView.BASELINE

    def test_day_totals(self, planner):
        assert planner.day_totals == [42, 42, 42, 42, 42, 48, 42]

    def test_intervals_have_no_scenario(self, planner):
        assert all(i.scheduled_agents is None for i in planner.intervals)

    def test_config_factors_used(self, demand_table):
        planner = Planner(PlannerConfig(utilization=1.0, availability=1.0))
        planner.load_table(demand_table)
        # 100 calls * 240 s = 6.67 Erlangs
        assert planner.stats.max == 7

    def test_failed_load_keeps_state(self, planner):
        buffer = BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            pd.DataFrame({"Hour": [9]}).to_excel(writer, sheet_name="Calls", index=False)
        buffer.seek(0)
        with pytest.raises(MissingSheetError):
            planner.load_workbook(buffer)
        assert planner.state is PlannerState.LOADED
        assert len(planner.table) == 126


class TestScenario:
    """Behaviour once a concurrency cap is applied."""

    def test_generate_switches_to_scheduled(self, planner):
        planner.generate_scenarios(22)
        assert planner.state is PlannerState.SCENARIO_APPLIED
        assert planner.view is PlannerView.SCHEDULED
        assert planner.max_concurrent == 22
        assert planner.stats == ViewStats(min=4, max=22)

    def test_capacity_view(self, planner):
        planner.generate_scenarios(22)
        planner.set_view("capacity")
        assert planner.stats == ViewStats(min=45, max=247)
        planner.set_view(PlannerView.BASELINE)
        assert planner.stats == ViewStats(min=2, max=11)

    def test_regenerate_replaces_scenario(self, planner):
        planner.generate_scenarios(22)
        planner.generate_scenarios(11)
        table = planner.table
        assert (table["scheduled_agents"] == table["required_agents"]).all()
        assert planner.max_concurrent == 11

    def test_invalid_cap_keeps_state(self, planner):
        with pytest.raises(InvalidScenarioError):
            planner.generate_scenarios(0)
        assert planner.state is PlannerState.LOADED
        assert "scheduled_agents" not in planner.table.columns

    def test_reload_discards_scenario(self, planner, demand_table):
        planner.generate_scenarios(22)
        planner.set_view("capacity")
        planner.load_table(demand_table)
        assert planner.state is PlannerState.LOADED
        assert planner.view is PlannerView.BASELINE
        assert planner.max_concurrent is None
        assert "scheduled_agents" not in planner.table.columns

    def test_intervals_carry_scenario(self, planner):
        planner.generate_scenarios(22)
        peak = next(i for i in planner.intervals if (i.day_of_week, i.hour) == (5, 21))
        assert peak.required_agents == 11
        assert peak.scheduled_agents == 22
        assert peak.capacity == 247

    def test_export(self, planner):
        planner.generate_scenarios(22)
        buffer = BytesIO()
        planner.export(buffer)
        buffer.seek(0)
        sheets = pd.read_excel(buffer, sheet_name=None, engine="openpyxl")
        assert "Call Capacity" in sheets

    def test_reset(self, planner):
        planner.generate_scenarios(22)
        planner.reset()
        assert planner.state is PlannerState.EMPTY
        with pytest.raises(PlannerStateError):
            planner.table
