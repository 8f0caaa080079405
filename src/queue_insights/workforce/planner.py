"""
Planner Workflow
================

State machine behind the staffing planner:

    EMPTY --load_workbook()--> LOADED --generate_scenarios()--> SCENARIO_APPLIED
                                  ^                                   |
                                  +---------- load_workbook() --------+

Loading a workbook always resets to LOADED (scenario columns cleared, view
back to baseline). Only reset() returns to EMPTY.
"""

from enum import Enum

import pandas as pd

from ..config import PlannerConfig
from ..exceptions import PlannerStateError
from ..log import get_logger
from .scenario import (
    PlannerView,
    ViewStats,
    apply_scenario,
    day_totals,
    validate_cap,
    view_stats,
)
from .staffing import ForecastInterval, build_baseline, table_to_intervals
from .workbook import Source, read_demand_workbook, write_plan_workbook

log = get_logger(__name__)


class PlannerState(str, Enum):
    EMPTY = "empty"
    LOADED = "loaded"
    SCENARIO_APPLIED = "scenario_applied"


class Planner:
    """Holds the active staffing table and the selected view.

    Example:
        >>> planner = Planner()
        >>> planner.load_workbook("two_weeks.xlsx")
        >>> planner.generate_scenarios(max_concurrent=20)
        >>> planner.stats
        ViewStats(min=1, max=20)
    """

    def __init__(self, config: PlannerConfig | None = None) -> None:
        self.config = config or PlannerConfig()
        self.state = PlannerState.EMPTY
        self.view = PlannerView.BASELINE
        self.max_concurrent: int | None = None
        self._table: pd.DataFrame | None = None

    @property
    def table(self) -> pd.DataFrame:
        if self._table is None:
            raise PlannerStateError("No forecast loaded. Upload a demand workbook first.")
        return self._table

    @property
    def intervals(self) -> list[ForecastInterval]:
        return table_to_intervals(self.table)

    def load_table(self, demand: pd.DataFrame) -> pd.DataFrame:
        """Compute the baseline from a demand table and enter LOADED."""
        self._table = build_baseline(
            demand,
            utilization=self.config.utilization,
            availability=self.config.availability,
        )
        self.state = PlannerState.LOADED
        self.view = PlannerView.BASELINE
        self.max_concurrent = None
        log.info("planner_loaded", cells=len(self._table))
        return self._table

    def load_workbook(self, source: Source) -> pd.DataFrame:
        """Parse an uploaded workbook; any scenario in place is discarded.

        Raises:
            MissingSheetError: If a required sheet is absent. The planner
                keeps its previous state in that case.
        """
        demand = read_demand_workbook(source)
        return self.load_table(demand)

    def generate_scenarios(self, max_concurrent: int) -> pd.DataFrame:
        """Apply a concurrency cap and switch to the scheduled view.

        Raises:
            PlannerStateError: If no table is loaded.
            InvalidScenarioError: If the cap is out of range.
        """
        if self.state is PlannerState.EMPTY:
            raise PlannerStateError("Load a forecast before generating scenarios.")
        max_concurrent = validate_cap(
            max_concurrent, self.config.min_concurrent, self.config.max_concurrent
        )
        baseline = self.table.drop(columns=["scheduled_agents", "capacity"], errors="ignore")
        scaled = apply_scenario(
            baseline,
            max_concurrent,
            utilization=self.config.utilization,
            default_aht=self.config.default_aht,
        )
        if "scheduled_agents" not in scaled.columns:
            log.warning("scenario_skipped_zero_peak")
            return self.table
        self._table = scaled
        self.state = PlannerState.SCENARIO_APPLIED
        self.view = PlannerView.SCHEDULED
        self.max_concurrent = max_concurrent
        log.info("scenario_applied", max_concurrent=max_concurrent)
        return self._table

    def set_view(self, view: PlannerView | str) -> None:
        view = PlannerView(view)
        if self.state is PlannerState.EMPTY:
            raise PlannerStateError("No forecast loaded.")
        if view is not PlannerView.BASELINE and self.state is not PlannerState.SCENARIO_APPLIED:
            raise PlannerStateError(f"The {view.value} view needs a generated scenario.")
        self.view = view

    @property
    def stats(self) -> ViewStats:
        """Min/max of the active view, recomputed on every access."""
        return view_stats(self.table, self.view)

    @property
    def day_totals(self) -> list[int]:
        return day_totals(self.table, self.view)

    def export(self, target: Source) -> None:
        write_plan_workbook(self.table, target)

    def reset(self) -> None:
        self._table = None
        self.state = PlannerState.EMPTY
        self.view = PlannerView.BASELINE
        self.max_concurrent = None
