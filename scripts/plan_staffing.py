"""
Staffing planner from a two-week demand workbook.

Usage:
    python plan_staffing.py --workbook demand.xlsx --max-concurrent 20 --export plan.xlsx
"""

import argparse
import sys
from pathlib import Path

_SRC = Path(__file__).resolve().parent.parent / "src"
sys.path.insert(0, str(_SRC))

from queue_insights.log import setup_logging
from queue_insights.telemetry.business_time import DAY_NAMES, OPERATING_HOURS
from queue_insights.workforce import Planner, PlannerView
from queue_insights.workforce.scenario import view_values


def print_view(planner: Planner) -> None:
    table = planner.table
    values = view_values(table, planner.view)
    grid = {
        (int(dow), int(hour)): int(v)
        for dow, hour, v in zip(table["day_of_week"], table["hour"], values)
    }
    stats = planner.stats

    print(f"\n{'='*70}")
    print(f"  {planner.view.value.upper()} VIEW  (min {stats.min}, max {stats.max})")
    print(f"{'='*70}")
    print(f"{'Hour':<8}" + "".join(f"{day[:3]:>7}" for day in DAY_NAMES))
    print("-" * 58)
    for hour in OPERATING_HOURS:
        print(f"{hour:02d}:00   " + "".join(f"{grid.get((dow, hour), 0):>7}" for dow in range(7)))
    print("-" * 58)
    print(f"{'Total':<8}" + "".join(f"{t:>7}" for t in planner.day_totals))


def main():
    parser = argparse.ArgumentParser(
        description="Build a staffing plan from a Calls/AHT demand workbook"
    )
    parser.add_argument(
        "--workbook",
        type=str,
        required=True,
        help="Path to the two-week demand workbook (.xlsx)",
    )
    parser.add_argument(
        "--max-concurrent",
        type=int,
        default=None,
        help="Cap on concurrent agents (1-250); enables scheduled/capacity views",
    )
    parser.add_argument(
        "--view",
        type=str,
        default=None,
        choices=[v.value for v in PlannerView],
        help="View to print (defaults to scheduled when a cap is given)",
    )
    parser.add_argument(
        "--export",
        type=str,
        default=None,
        help="Write the Baseline/Capped/Capacity bundle to this .xlsx path",
    )

    args = parser.parse_args()
    setup_logging("WARNING")

    planner = Planner()
    planner.load_workbook(args.workbook)
    if args.max_concurrent is not None:
        planner.generate_scenarios(args.max_concurrent)
    if args.view:
        planner.set_view(args.view)

    print_view(planner)

    if args.export:
        planner.export(args.export)
        print(f"\nPlan bundle saved to {args.export}")


if __name__ == "__main__":
    main()
