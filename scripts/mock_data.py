import numpy as np
import pandas as pd
import sys
from pathlib import Path

_SRC = Path(__file__).resolve().parent.parent / "src"
sys.path.insert(0, str(_SRC))

from queue_insights.telemetry.business_time import OPERATING_HOURS
from queue_insights.workforce.workbook import write_demand_workbook


def generate_two_week_demand(seed=7):
    rng = np.random.default_rng(seed)
    rows = []
    for dow in range(7):
        for hour in OPERATING_HOURS:
            # -- TIME OF DAY LOGIC --
            # Lunch and evening peaks, thin traffic after midnight
            if 12 <= hour <= 15:
                time_weight = 1.0
            elif 19 <= hour <= 22:
                time_weight = 1.3
            elif hour in (0, 1, 2):
                time_weight = 0.3
            else:
                time_weight = 0.6

            # Friday (5) and Saturday (6) are the busy weekend days
            if dow in (5, 6):
                time_weight *= 1.4

            calls = max(0.0, rng.normal(60 * time_weight, 6))
            aht = max(60.0, rng.normal(240, 30))
            rows.append({
                "day_of_week": dow,
                "hour": hour,
                "avg_calls": round(calls, 1),
                "avg_aht": round(aht),
            })
    return pd.DataFrame(rows)


if __name__ == "__main__":
    df_mock = generate_two_week_demand()

    filename = "mock_two_week_demand.xlsx"
    write_demand_workbook(df_mock, filename)
    print(f"Wrote {len(df_mock)} cells to {filename}")
