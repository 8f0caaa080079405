"""
Workforce Planning
==================

Core components for contact center staffing:

1. demand - folds hourly history into a weekday x hour demand table
2. staffing - traffic-intensity staffing model (baseline and rolling)
3. scenario - scales the baseline to a concurrency cap, derives capacity
4. workbook - demand workbook import, plan bundle export
5. planner - Empty -> Loaded -> Scenario-Applied workflow
6. pipeline - rolling 14-day forecast (query -> aggregate -> staff)

Data Flow:
    demand workbook -> read_demand_workbook() -> build_baseline()
                                                      |
                                                      v
                              apply_scenario(table, max_concurrent)
                                                      |
                                                      v
                                        write_plan_workbook()
"""

from .demand import aggregate_history
from .pipeline import ForecastPipeline, ForecastResponse
from .planner import Planner, PlannerState
from .scenario import PlannerView, ViewStats, apply_scenario, day_totals, view_stats
from .staffing import (
    ForecastInterval,
    build_baseline,
    required_agents,
    rolling_required_agents,
)
from .workbook import read_demand_workbook, write_demand_workbook, write_plan_workbook

__all__ = [
    "aggregate_history",
    "ForecastPipeline",
    "ForecastResponse",
    "Planner",
    "PlannerState",
    "PlannerView",
    "ViewStats",
    "apply_scenario",
    "day_totals",
    "view_stats",
    "ForecastInterval",
    "build_baseline",
    "required_agents",
    "rolling_required_agents",
    "read_demand_workbook",
    "write_demand_workbook",
    "write_plan_workbook",
]
