"""
Interval operations report for one business day (09:00 - 03:00 Baghdad).

Usage:
    python interval_report.py --queue "Super Chicken" --date 2025-04-15
    python interval_report.py --queue "Super Chicken" --watch     # refresh every 5 min
    python interval_report.py --queue "Super Chicken" --recent    # last hour of calls
"""

import argparse
import asyncio
import sys
from datetime import date
from pathlib import Path

_SRC = Path(__file__).resolve().parent.parent / "src"
sys.path.insert(0, str(_SRC))

from queue_insights.config import DashboardConfig, GenesysSettings
from queue_insights.log import setup_logging
from queue_insights.telemetry import DashboardSnapshot, IntervalDashboard, current_business_day
from queue_insights.telemetry.business_time import format_clock
from queue_insights.telemetry.client import GenesysClient


def _fmt(value, spec=".1f", empty="N/A"):
    return empty if value is None else format(value, spec)


def print_snapshot(snapshot: DashboardSnapshot, config: DashboardConfig, queue: str) -> None:
    report = snapshot.report

    print(f"\n{'='*80}")
    print(f"INTERVAL REPORT: {queue} on {snapshot.day}  "
          f"(refreshed {format_clock(snapshot.refreshed_at)})")
    print(f"{'='*80}")
    print(f"\n{'Interval':<18} {'Offered':<9} {'Answered':<9} {'Abandoned':<10} {'SL%':<7} {'MOS':<6} {'AHT(s)':<7}")
    print("-" * 72)
    for row in report.history:
        flag = " !" if row.mos is not None and row.mos < config.mos_threshold else ""
        print(
            f"{row.timestamp:<18} {row.offered:<9} {row.answered:<9} {row.abandoned:<10} "
            f"{_fmt(row.sl_percent):<7} {_fmt(row.mos, '.2f'):<6} {_fmt(row.aht, '.0f'):<7}{flag}"
        )

    s = snapshot.kpis.summary
    print(f"\n  Offered {s.offered} | Answered {s.answered} | "
          f"Abandoned {s.abandoned} ({s.abandon_percent:.1f}%)")
    print(f"  SL {s.sl:.1f}% | MOS {_fmt(s.mos, '.2f')} | AHT {s.aht:.0f}s | "
          f"Agents {s.agents} | Calls/Agent {s.calls_per_agent:.1f}")

    print("\nAGENTS")
    for agent in sorted(report.agents, key=lambda a: -a.answered):
        print(f"  {agent.name:<24} answered {agent.answered:<4} missed {agent.missed:<4} "
              f"handle {agent.handle_time_ms / 1000:.0f}s")

    print("\nCALL REASONS")
    for reason in sorted(report.wrap_ups, key=lambda r: -r.count):
        print(f"  {reason.name:<36} {reason.count}")

    print("\nTOP CALLERS")
    for caller in report.top_callers:
        print(f"  {caller.number:<20} {caller.count}")

    print("\nCUSTOMERS")
    for day in snapshot.customers.summary:
        print(f"  {day.business_day}: unique {day.unique_total}, abandoned {day.unique_abandoned}, "
              f"recovered {day.recovered}, lost {day.lost}")


def print_recent(client: GenesysClient, dashboard: IntervalDashboard) -> None:
    interactions = client.fetch_recent_interactions(dashboard.queue_id)
    print(f"\n{'='*60}")
    print(f"LAST HOUR: {dashboard.queue_name} ({len(interactions)} conversations)")
    print(f"{'='*60}")
    for i in sorted(interactions, key=lambda i: i.start_time, reverse=True):
        print(f"  {format_clock(i.start_time)}  {i.direction:<8} {i.duration_ms / 1000:>6.0f}s  {i.id}")


def main():
    config = DashboardConfig()
    parser = argparse.ArgumentParser(description="Interval metrics for one business day")
    parser.add_argument("--queue", type=str, default=config.queue_name, help="Queue name")
    parser.add_argument(
        "--date",
        type=date.fromisoformat,
        default=None,
        help="Business day (YYYY-MM-DD); defaults to the current business day",
    )
    parser.add_argument(
        "--watch",
        action="store_true",
        help=f"Keep refreshing every {config.polling_interval_seconds:.0f}s until interrupted",
    )
    parser.add_argument("--recent", action="store_true", help="List the last hour of conversations")
    args = parser.parse_args()
    setup_logging("WARNING", queue=args.queue)

    with GenesysClient(GenesysSettings.from_env()) as client:
        dashboard = IntervalDashboard(client, args.queue, config)

        if args.recent:
            print_recent(client, dashboard)
            return

        if not args.watch:
            snapshot = dashboard.snapshot(args.date or current_business_day())
            print_snapshot(snapshot, config, args.queue)
            return

        stop = asyncio.Event()
        try:
            asyncio.run(dashboard.watch(
                stop,
                on_update=lambda snap: print_snapshot(snap, config, args.queue),
                day=args.date,
            ))
        except KeyboardInterrupt:
            print("\nStopped.")


if __name__ == "__main__":
    main()
