"""Tests for demand workbook import and plan workbook export."""

from io import BytesIO

import pandas as pd
import pytest

from queue_insights.exceptions import MissingSheetError, WorkbookFormatError
from queue_insights.telemetry.business_time import DAY_NAMES, OPERATING_HOURS
from queue_insights.workforce.scenario import apply_scenario
from queue_insights.workforce.staffing import build_baseline
from queue_insights.workforce.workbook import (
    DAY_TOTAL_LABEL,
    PLAN_SHEETS,
    plan_grids,
    read_demand_workbook,
    write_demand_workbook,
    write_plan_workbook,
)


def _workbook(sheets: dict[str, pd.DataFrame]) -> BytesIO:
    buffer = BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        for name, frame in sheets.items():
            frame.to_excel(writer, sheet_name=name, index=False)
    buffer.seek(0)
    return buffer


def _grid(week1: float, week2: float, hours=OPERATING_HOURS) -> pd.DataFrame:
    """Hour column plus 14 day columns, week 1 then week 2."""
    rows = [[hour, *([week1] * 7), *([week2] * 7)] for hour in hours]
    return pd.DataFrame(rows, columns=["Hour", *[f"d{i}" for i in range(14)]])


class TestReadDemandWorkbook:
    """Tests for parsing uploaded demand workbooks."""

    def test_round_trip(self, demand_table):
        buffer = BytesIO()
        write_demand_workbook(demand_table, buffer)
        buffer.seek(0)
        table = read_demand_workbook(buffer)
        assert len(table) == 126
        merged = demand_table.merge(table, on=["day_of_week", "hour"], suffixes=("", "_read"))
        assert (merged["avg_calls"] == merged["avg_calls_read"]).all()
        assert (merged["avg_aht"] == merged["avg_aht_read"]).all()

    def test_two_week_mean(self):
        table = read_demand_workbook(_workbook({
            "Calls": _grid(10, 20),
            "AHT": _grid(200, 300),
        }))
        assert set(table["avg_calls"]) == {15.0}
        assert set(table["avg_aht"]) == {250.0}

    def test_unnamed_sheets_by_position(self):
        table = read_demand_workbook(_workbook({
            "Sheet1": _grid(4, 4),
            "Sheet2": _grid(180, 180),
        }))
        assert set(table["avg_calls"]) == {4.0}
        assert set(table["avg_aht"]) == {180.0}

    def test_missing_sheet(self):
        with pytest.raises(MissingSheetError) as exc_info:
            read_demand_workbook(_workbook({"Calls": _grid(10, 10)}))
        assert exc_info.value.status_code == 422

    def test_missing_hour_row_reads_zero(self):
        hours = [h for h in OPERATING_HOURS if h != 2]
        table = read_demand_workbook(_workbook({
            "Calls": _grid(10, 10, hours=hours),
            "AHT": _grid(240, 240),
        }))
        assert len(table) == 126
        assert set(table.loc[table["hour"] == 2, "avg_calls"]) == {0.0}
        assert set(table.loc[table["hour"] == 9, "avg_calls"]) == {10.0}

    def test_blank_cells_read_zero(self):
        calls = _grid(10, 10)
        calls.iloc[0, 1:] = None
        table = read_demand_workbook(_workbook({"Calls": calls, "AHT": _grid(240, 240)}))
        assert table.loc[table["hour"] == 9, "avg_calls"].eq(0.0).all()

    def test_not_a_workbook(self):
        with pytest.raises(WorkbookFormatError):
            read_demand_workbook(BytesIO(b"hour,calls\n9,10\n"))


class TestPlanExport:
    """Tests for the downloadable plan bundle."""

    def test_grids_before_scenario(self, demand_table):
        grids = plan_grids(build_baseline(demand_table))
        assert list(grids) == list(PLAN_SHEETS.values())
        baseline = grids["Baseline Plan"]
        assert list(baseline.columns) == ["Interval", *DAY_NAMES]
        assert list(baseline["Interval"][:2]) == ["09:00", "10:00"]
        assert baseline["Sunday"].iloc[0] == 2
        assert grids["Capped Plan"]["Sunday"].isna().all()

    def test_capacity_sheet_has_day_total(self, demand_table):
        table = apply_scenario(build_baseline(demand_table), 22)
        capacity = plan_grids(table)["Call Capacity"]
        assert len(capacity) == len(OPERATING_HOURS) + 1
        total = capacity.iloc[-1]
        assert total["Interval"] == DAY_TOTAL_LABEL
        expected = int(table.loc[table["day_of_week"] == 5, "capacity"].sum())
        assert total["Friday"] == expected

    def test_write_plan_workbook(self, demand_table):
        table = apply_scenario(build_baseline(demand_table), 22)
        buffer = BytesIO()
        write_plan_workbook(table, buffer)
        buffer.seek(0)
        sheets = pd.read_excel(buffer, sheet_name=None, engine="openpyxl")
        assert list(sheets) == ["Baseline Plan", "Capped Plan", "Call Capacity"]
        capped = sheets["Capped Plan"]
        friday_21 = capped.loc[capped["Interval"] == "21:00", "Friday"].iloc[0]
        assert friday_21 == 22
        assert sheets["Call Capacity"]["Interval"].iloc[-1] == DAY_TOTAL_LABEL
