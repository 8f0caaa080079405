"""
Customer Recovery Analyzer
==========================

Tracks unique callers per business day and classifies every caller who
abandoned as recovered (reached an agent later the same business day) or
lost.

Input must already be sorted by ascending start time; the analyzer relies
on that order to pick each caller's first abandonment and first recovery.
"""

from dataclasses import dataclass
from datetime import datetime

from .business_time import format_clock, resolve
from .schemas import ConversationRecord


@dataclass(frozen=True)
class CustomerConversation:
    id: str
    ani: str
    business_day: str
    start_time: datetime
    abandoned: bool


@dataclass(frozen=True)
class CustomerDaySummary:
    """Per-business-day rollup of calls and unique callers."""
    business_day: str
    offered: int
    answered: int
    abandoned: int
    unique_total: int
    unique_answered: int
    unique_abandoned: int
    recovered: int
    lost: int


@dataclass(frozen=True)
class AbandonedCustomerDetail:
    """One caller's first abandonment on a business day and its outcome.

    Attributes:
        abandoned_time: Business-local HH:MM:SS of the first abandoned call.
        recovered_time: Business-local HH:MM:SS of the first later answered
            call, or "" when the caller was lost.
        abandoned_count: Number of abandoned calls from the caller that day.
    """
    business_day: str
    mobile_number: str
    abandoned_time: str
    abandoned_at: datetime
    recovered: bool
    recovered_time: str
    abandoned_count: int


@dataclass(frozen=True)
class CustomerAnalysis:
    summary: list[CustomerDaySummary]
    details: list[AbandonedCustomerDetail]


def extract_customer_conversations(
    conversations: list[ConversationRecord],
) -> list[CustomerConversation]:
    """Derive caller-level conversations from parsed records.

    Records without a caller ANI or starting in the maintenance window
    are dropped. The result keeps input order; sort before analysis.
    """
    result = []
    for conv in conversations:
        ani = conv.caller_ani
        if not ani:
            continue
        biz = resolve(conv.conversation_start)
        if not biz.is_operating:
            continue
        result.append(CustomerConversation(
            id=conv.conversation_id,
            ani=ani,
            business_day=biz.business_day,
            start_time=conv.conversation_start,
            abandoned=not conv.is_answered,
        ))
    return result


def analyze_customers(conversations: list[CustomerConversation]) -> CustomerAnalysis:
    """Classify abandoning callers as recovered or lost, per business day.

    Args:
        conversations: Customer conversations in ascending start-time order.

    Returns:
        CustomerAnalysis with day summaries (newest business day first) and
        abandoned-caller details (latest abandonment first).
    """
    grouped: dict[str, dict[str, list[CustomerConversation]]] = {}
    for conv in conversations:
        grouped.setdefault(conv.business_day, {}).setdefault(conv.ani, []).append(conv)

    summaries: list[CustomerDaySummary] = []
    details: list[AbandonedCustomerDetail] = []

    for day in sorted(grouped):
        callers = grouped[day]
        offered = answered = abandoned = 0
        unique_abandoned = recovered = lost = 0

        for ani, convs in callers.items():
            abandoned_convs = [c for c in convs if c.abandoned]
            offered += len(convs)
            abandoned += len(abandoned_convs)
            answered += len(convs) - len(abandoned_convs)

            if not abandoned_convs:
                continue
            unique_abandoned += 1
            anchor = abandoned_convs[0]
            recovery = next(
                (c for c in convs if not c.abandoned and c.start_time > anchor.start_time),
                None,
            )
            if recovery is not None:
                recovered += 1
            else:
                lost += 1

            details.append(AbandonedCustomerDetail(
                business_day=day,
                mobile_number=ani,
                abandoned_time=format_clock(anchor.start_time),
                abandoned_at=anchor.start_time,
                recovered=recovery is not None,
                recovered_time=format_clock(recovery.start_time) if recovery else "",
                abandoned_count=len(abandoned_convs),
            ))

        summaries.append(CustomerDaySummary(
            business_day=day,
            offered=offered,
            answered=answered,
            abandoned=abandoned,
            unique_total=len(callers),
            unique_answered=len(callers) - unique_abandoned,
            unique_abandoned=unique_abandoned,
            recovered=recovered,
            lost=lost,
        ))

    summaries.sort(key=lambda s: s.business_day, reverse=True)
    details.sort(key=lambda d: d.abandoned_at, reverse=True)
    return CustomerAnalysis(summary=summaries, details=details)
