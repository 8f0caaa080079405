"""
Workbook Import / Export
========================

Reads the two-week demand workbook operators upload to the planner and
writes the plan bundle they download.

Demand workbook layout (sheets "Calls" and "AHT", or the first and second
sheet when unnamed):
    column 0      hour of day (9 .. 23, 0, 1, 2)
    columns 1-7   week 1, Sunday .. Saturday
    columns 8-14  week 2, Sunday .. Saturday

Each cell's demand is the mean of its two same-weekday columns.
"""

import zipfile
from pathlib import Path
from typing import IO, Any

import numpy as np
import pandas as pd

from ..exceptions import MissingSheetError, WorkbookFormatError
from ..log import get_logger
from ..telemetry.business_time import DAY_NAMES, OPERATING_HOURS
from .scenario import PlannerView

log = get_logger(__name__)

CALLS_SHEET = "Calls"
AHT_SHEET = "AHT"
PLAN_SHEETS = {
    PlannerView.BASELINE: "Baseline Plan",
    PlannerView.SCHEDULED: "Capped Plan",
    PlannerView.CAPACITY: "Call Capacity",
}
DAY_TOTAL_LABEL = "DAY TOTAL"

Source = str | Path | IO[bytes]


def _pick_sheet(sheets: dict[str, pd.DataFrame], name: str, position: int) -> pd.DataFrame:
    if name in sheets:
        return sheets[name]
    frames = list(sheets.values())
    if position < len(frames):
        return frames[position]
    raise MissingSheetError(
        f"Workbook is missing the '{name}' sheet",
        details={"sheets": list(sheets)},
    )


def _find_hour_row(grid: pd.DataFrame, hour: int) -> pd.Series | None:
    if grid.empty:
        return None
    hours = pd.to_numeric(grid.iloc[:, 0], errors="coerce")
    matches = grid[hours == hour]
    if matches.empty:
        return None
    return matches.iloc[0]


def _cell(row: pd.Series, column: int) -> float:
    if column >= len(row):
        return np.nan
    return pd.to_numeric(row.iloc[column], errors="coerce")


def _two_week_mean(row: pd.Series | None, dow: int) -> float:
    """Mean of the week-1 and week-2 values for one weekday; 0 if unusable."""
    if row is None:
        return 0.0
    value = (_cell(row, dow + 1) + _cell(row, dow + 8)) / 2
    if pd.isna(value):
        return 0.0
    return float(value)


def read_demand_workbook(source: Source) -> pd.DataFrame:
    """Parse a demand workbook into the 126-cell demand table.

    Args:
        source: Path or binary file-like object of an .xlsx workbook.

    Returns:
        DataFrame with day_of_week, hour, avg_calls, avg_aht.

    Raises:
        MissingSheetError: If the Calls or AHT sheet cannot be found.
        WorkbookFormatError: If the source is not a readable workbook.
    """
    try:
        sheets = pd.read_excel(source, sheet_name=None, header=None, engine="openpyxl")
    except (ValueError, OSError, zipfile.BadZipFile) as e:
        raise WorkbookFormatError("Could not read demand workbook", cause=e) from e
    calls = _pick_sheet(sheets, CALLS_SHEET, 0)
    aht = _pick_sheet(sheets, AHT_SHEET, 1)

    rows = []
    missing_hours = set()
    for dow in range(7):
        for hour in OPERATING_HOURS:
            calls_row = _find_hour_row(calls, hour)
            aht_row = _find_hour_row(aht, hour)
            if calls_row is None or aht_row is None:
                missing_hours.add(hour)
            rows.append({
                "day_of_week": dow,
                "hour": hour,
                "avg_calls": _two_week_mean(calls_row, dow),
                "avg_aht": _two_week_mean(aht_row, dow),
            })

    if missing_hours:
        log.warning("workbook_hours_missing", hours=sorted(missing_hours))
    log.info("demand_workbook_parsed", cells=len(rows))
    return pd.DataFrame(rows, columns=["day_of_week", "hour", "avg_calls", "avg_aht"])


def _view_grid(table: pd.DataFrame, view: PlannerView) -> pd.DataFrame:
    """Rows of {Interval, Sunday..Saturday} for one view."""
    records = []
    for hour in OPERATING_HOURS:
        row: dict[str, Any] = {"Interval": f"{hour:02d}:00"}
        for dow, day in enumerate(DAY_NAMES):
            cell = table[(table["day_of_week"] == dow) & (table["hour"] == hour)]
            value = None
            if not cell.empty and view.column in cell.columns:
                raw = cell.iloc[0][view.column]
                value = None if pd.isna(raw) else int(raw)
            row[day] = value
        records.append(row)

    if view is PlannerView.CAPACITY:
        total: dict[str, Any] = {"Interval": DAY_TOTAL_LABEL}
        for dow, day in enumerate(DAY_NAMES):
            if view.column in table.columns:
                day_cells = table.loc[table["day_of_week"] == dow, view.column]
                total[day] = int(day_cells.fillna(0).sum())
            else:
                total[day] = 0
        records.append(total)
    return pd.DataFrame(records, columns=["Interval", *DAY_NAMES])


def plan_grids(table: pd.DataFrame) -> dict[str, pd.DataFrame]:
    """Sheet name -> grid for the baseline, capped and capacity views."""
    return {name: _view_grid(table, view) for view, name in PLAN_SHEETS.items()}


def write_plan_workbook(table: pd.DataFrame, target: Source) -> None:
    """Write the plan bundle: Baseline Plan, Capped Plan, Call Capacity."""
    with pd.ExcelWriter(target, engine="openpyxl") as writer:
        for name, grid in plan_grids(table).items():
            grid.to_excel(writer, sheet_name=name, index=False)


def write_demand_workbook(table: pd.DataFrame, target: Source) -> None:
    """Write a demand table back out as a Calls/AHT workbook.

    Both weeks carry the table's averages, so reading the workbook back
    reproduces avg_calls and avg_aht.
    """
    week_columns = [f"{day} W{week}" for week in (1, 2) for day in DAY_NAMES]
    with pd.ExcelWriter(target, engine="openpyxl") as writer:
        for sheet, column in ((CALLS_SHEET, "avg_calls"), (AHT_SHEET, "avg_aht")):
            pivot = table.pivot(index="hour", columns="day_of_week", values=column)
            records = []
            for hour in OPERATING_HOURS:
                values = [float(pivot.at[hour, dow]) if hour in pivot.index else 0.0
                          for dow in range(7)]
                records.append([hour, *values, *values])
            frame = pd.DataFrame(records, columns=["Hour", *week_columns])
            frame.to_excel(writer, sheet_name=sheet, index=False)
