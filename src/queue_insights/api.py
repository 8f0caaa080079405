"""
HTTP API
========

Serves the rolling staffing forecast, one business day of interval metrics
and the last hour of queue interactions.

Routes receive a client provider rather than a client, and build the client
inside their own error handling, so missing credentials come back as the
route's JSON error body. Tests override get_client_provider.
"""

from collections.abc import Callable
from datetime import date
from functools import lru_cache

from fastapi import Depends, FastAPI, Query
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from .config import DashboardConfig, GenesysSettings, PlannerConfig
from .exceptions import QueueInsightsError
from .log import get_logger
from .telemetry.client import GenesysClient
from .telemetry.dashboard import IntervalDashboard
from .workforce.pipeline import ForecastPipeline

log = get_logger(__name__)

app = FastAPI(
    title="Queue Insights",
    version="1.0.0",
)

ClientProvider = Callable[[], GenesysClient]


@lru_cache
def get_client() -> GenesysClient:
    """Process-wide client built from GENESYS_* environment variables.

    Raises:
        ConfigurationError: If credentials are missing. Failures are not
            cached, so the next call retries.
    """
    return GenesysClient(GenesysSettings.from_env())


def get_client_provider() -> ClientProvider:
    return get_client


def get_planner_config() -> PlannerConfig:
    return PlannerConfig()


def get_dashboard_config() -> DashboardConfig:
    return DashboardConfig()


@app.get("/api/planner/forecast")
def planner_forecast(
    provide_client: ClientProvider = Depends(get_client_provider),
    config: PlannerConfig = Depends(get_planner_config),
):
    try:
        forecast = ForecastPipeline(provide_client(), config).run()
    except Exception as e:
        log.error("forecast_engine_failure", error=str(e))
        return JSONResponse(
            status_code=500,
            content={"error": "Forecast engine failure", "details": str(e)},
        )
    return forecast.to_payload()


@app.get("/api/metrics/interval")
def interval_metrics(
    queue: str = Query(..., min_length=1),
    day: date = Query(..., alias="date"),
    provide_client: ClientProvider = Depends(get_client_provider),
    config: DashboardConfig = Depends(get_dashboard_config),
):
    try:
        dashboard = IntervalDashboard(provide_client(), queue, config)
        snapshot = dashboard.snapshot(day)
    except QueueInsightsError as e:
        log.error("interval_metrics_failed", queue=queue, error=str(e))
        return JSONResponse(status_code=e.status_code, content=e.to_dict())
    return jsonable_encoder(snapshot.to_payload())


@app.get("/api/metrics/recent")
def recent_interactions(
    queue: str = Query(..., min_length=1),
    provide_client: ClientProvider = Depends(get_client_provider),
):
    """Conversations of the last hour on the queue, newest first."""
    try:
        client = provide_client()
        queue_id = client.find_queue_id(queue)
        interactions = client.fetch_recent_interactions(queue_id)
    except QueueInsightsError as e:
        return JSONResponse(status_code=e.status_code, content=e.to_dict())

    interactions.sort(key=lambda i: i.start_time, reverse=True)
    return jsonable_encoder({
        "queueId": queue_id,
        "interactions": [
            {
                "id": i.id,
                "startTime": i.start_time,
                "direction": i.direction,
                "durationMs": i.duration_ms,
            }
            for i in interactions
        ],
    })
