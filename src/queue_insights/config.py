"""
Configuration
=============

Dataclass settings for the upstream connection, the staffing planner and the
interval dashboard. Defaults reflect the production contact center; every
field can be overridden at construction time.
"""

import os
from dataclasses import dataclass

from .exceptions import ConfigurationError


@dataclass
class GenesysSettings:
    """Connection settings for the upstream contact-center API.

    Attributes:
        client_id: OAuth client-credentials id.
        client_secret: OAuth client-credentials secret.
        region: Region domain, e.g. "mypurecloud.ae".
        timeout_seconds: HTTP timeout for every upstream call.
    """
    client_id: str
    client_secret: str
    region: str = "mypurecloud.ae"
    timeout_seconds: float = 30.0

    @property
    def api_base_url(self) -> str:
        return f"https://api.{self.region}"

    @property
    def login_url(self) -> str:
        return f"https://login.{self.region}/oauth/token"

    @classmethod
    def from_env(cls) -> "GenesysSettings":
        """Build settings from GENESYS_* environment variables.

        Raises:
            ConfigurationError: If the client id or secret is missing.
        """
        client_id = os.environ.get("GENESYS_CLIENT_ID", "")
        client_secret = os.environ.get("GENESYS_CLIENT_SECRET", "")
        if not client_id or not client_secret:
            raise ConfigurationError(
                "Genesys credentials not configured. "
                "Set GENESYS_CLIENT_ID and GENESYS_CLIENT_SECRET."
            )
        return cls(
            client_id=client_id,
            client_secret=client_secret,
            region=os.environ.get("GENESYS_REGION", "mypurecloud.ae"),
        )


@dataclass
class PlannerConfig:
    """Constants of the staffing model and scenario engine.

    Attributes:
        utilization: Target agent occupancy used by the baseline model.
        availability: Share of paid time agents are available (shrinkage).
        rolling_multiplier: Single-factor buffer of the rolling forecast.
        default_aht: Fallback handle time (seconds) for capacity math.
        lookback_days: Window of the rolling forecast aggregate query.
        comparable_days: Same-weekday samples expected in the lookback window.
        min_concurrent: Lowest accepted concurrency cap.
        max_concurrent: Highest accepted concurrency cap.
    """
    utilization: float = 0.75
    availability: float = 0.875
    rolling_multiplier: float = 1.3
    default_aht: float = 300.0
    lookback_days: int = 15
    comparable_days: int = 2
    min_concurrent: int = 1
    max_concurrent: int = 250


@dataclass
class DashboardConfig:
    queue_name: str = "Super Chicken"
    polling_interval_seconds: float = 5 * 60
    mos_threshold: float = 4.5
    sl_threshold_ms: int = 10_000
    top_callers_limit: int = 10
