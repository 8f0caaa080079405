"""Contact-center interval telemetry and staffing planner."""

__version__ = "1.0.0"
