"""
Run the rolling staffing forecast:
  1. Query the last 15 days of hourly answered/handle-time aggregates
  2. Fold them into the weekday x hour demand table
  3. Print required agents per operating hour

Usage:
    cd scripts/
    GENESYS_CLIENT_ID=... GENESYS_CLIENT_SECRET=... python run_pipeline.py
"""

import sys
from pathlib import Path

# Add src to the Python path so queue_insights is importable
_SRC = Path(__file__).resolve().parent.parent / "src"
sys.path.insert(0, str(_SRC))

from queue_insights.config import GenesysSettings
from queue_insights.log import setup_logging
from queue_insights.telemetry.business_time import DAY_NAMES, OPERATING_HOURS
from queue_insights.telemetry.client import GenesysClient
from queue_insights.workforce import ForecastPipeline


def main():
    setup_logging("WARNING")

    print("=" * 70)
    print("ROLLING 14-DAY STAFFING FORECAST")
    print("=" * 70)

    with GenesysClient(GenesysSettings.from_env()) as client:
        forecast = ForecastPipeline(client).run()

    cells = {(i.day_of_week, i.hour): i for i in forecast.intervals}

    print(f"\n  Generated at: {forecast.generated_at:%Y-%m-%d %H:%M} UTC")
    print(f"\n{'Hour':<8}" + "".join(f"{day[:3]:>6}" for day in DAY_NAMES))
    print("-" * 50)
    for hour in OPERATING_HOURS:
        row = "".join(f"{cells[(dow, hour)].required_agents:>6}" for dow in range(7))
        print(f"{hour:02d}:00   {row}")

    peak = max(forecast.intervals, key=lambda i: i.required_agents)
    print(f"\n{'='*70}")
    print("  SUMMARY")
    print(f"{'='*70}")
    print(f"  Peak agents needed : {peak.required_agents} "
          f"({DAY_NAMES[peak.day_of_week]} {peak.hour:02d}:00)")
    print(f"  Weekly calls       : {sum(i.avg_calls for i in forecast.intervals):.1f}")


if __name__ == "__main__":
    main()
