"""
Interval Telemetry
==================

Turns raw conversation records into interval operations metrics:

1. business_time - business clock (UTC+3, 09:00-03:00 business day)
2. schemas - typed parse step for upstream payloads
3. aggregator - half-hour buckets, agent summaries, reasons, top callers
4. customers - unique-caller abandonment and recovery analysis
5. client / refresh - upstream queries and refresh coordination
6. dashboard - one queue's interval view, refreshed on a polling loop

Data Flow:
    GenesysClient.query_conversations() -> list[ConversationRecord]
            |                                   |
            v                                   v
    aggregate_conversations()     extract_customer_conversations()
            |                                   |  (sorted by start)
            v                                   v
      IntervalReport                    analyze_customers()
"""

from .aggregator import (
    AgentActivitySummary,
    IntervalReport,
    IntervalRow,
    aggregate_conversations,
    rollup_daily,
    summarize,
)
from .business_time import BusinessTime, resolve, shift_window
from .customers import (
    CustomerAnalysis,
    CustomerConversation,
    analyze_customers,
    extract_customer_conversations,
)
from .dashboard import DashboardSnapshot, IntervalDashboard, current_business_day
from .refresh import RefreshCoordinator
from .schemas import ConversationRecord, parse_aggregates, parse_conversations

__all__ = [
    "AgentActivitySummary",
    "IntervalReport",
    "IntervalRow",
    "aggregate_conversations",
    "rollup_daily",
    "summarize",
    "BusinessTime",
    "resolve",
    "shift_window",
    "CustomerAnalysis",
    "CustomerConversation",
    "analyze_customers",
    "extract_customer_conversations",
    "DashboardSnapshot",
    "IntervalDashboard",
    "current_business_day",
    "RefreshCoordinator",
    "ConversationRecord",
    "parse_aggregates",
    "parse_conversations",
]
