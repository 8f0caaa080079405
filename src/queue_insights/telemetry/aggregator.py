"""
Conversation Metric Aggregator
==============================

Folds one query interval's conversation records into half-hour operational
metrics and per-agent activity summaries.

Data Flow:
    list[ConversationRecord] -> aggregate_conversations() -> IntervalReport
                                                                  |
                                   rollup_daily(history) <--------+
                                   summarize(history, agents) <---+

Every accumulator is local to a single aggregate_conversations() call, so
the same input always yields the same report regardless of record order.
"""

from collections import Counter
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone

import pandas as pd

from .business_time import resolve, to_utc
from .schemas import ConversationRecord

SL_THRESHOLD_MS = 10_000
TOP_CALLERS_LIMIT = 10


@dataclass
class IntervalBucket:
    """Running totals for one half-hour bucket during an aggregation pass."""
    offered: int = 0
    answered: int = 0
    abandoned: int = 0
    sl_met: int = 0
    mos_sum: float = 0.0
    mos_count: int = 0
    handle_ms: float = 0.0
    handle_count: int = 0
    agent_ids: set[str] = field(default_factory=set)


@dataclass
class AgentActivitySummary:
    """Per-agent activity merged across every conversation in the window."""
    user_id: str
    name: str = "Agent"
    answered: int = 0
    missed: int = 0
    handle_time_ms: float = 0.0
    first_activity: datetime | None = None
    last_activity: datetime | None = None

    def record(self, start: datetime, end: datetime) -> None:
        if self.first_activity is None or start < self.first_activity:
            self.first_activity = start
        if self.last_activity is None or end > self.last_activity:
            self.last_activity = end


@dataclass(frozen=True)
class IntervalRow:
    """Read-only metrics of one bucket (or one day, after rollup).

    Attributes:
        timestamp: Bucket key "YYYY-MM-DD HH:MM" or date "YYYY-MM-DD".
        sl_percent: Share of answered calls that met the SL threshold (0-100).
        mos: Mean opinion score over all voice-quality samples.
        aht: Average handle time in seconds per answered call.
        agents_count: Distinct agents that handled calls in the bucket.
    """
    timestamp: str
    offered: int
    answered: int
    abandoned: int
    sl_met: int
    sl_percent: float | None
    mos: float | None
    mos_samples: int
    aht: float | None
    agents_count: int

    @property
    def conversations_count(self) -> int:
        return self.offered


@dataclass(frozen=True)
class ReasonCount:
    name: str
    count: int


@dataclass(frozen=True)
class CallerCount:
    number: str
    count: int


@dataclass
class IntervalReport:
    """Everything one aggregation pass produces."""
    history: list[IntervalRow]
    agents: list[AgentActivitySummary]
    wrap_ups: list[ReasonCount]
    top_callers: list[CallerCount]

    def history_frame(self) -> pd.DataFrame:
        """History rows as a DataFrame indexed by bucket key."""
        rows = [asdict(row) for row in self.history]
        columns = [f.name for f in fields(IntervalRow)]
        return pd.DataFrame(rows, columns=columns).set_index("timestamp")


def _ratio(numerator: float, denominator: float) -> float | None:
    return numerator / denominator if denominator > 0 else None


def _finish_row(key: str, bucket: IntervalBucket) -> IntervalRow:
    sl_percent = _ratio(bucket.sl_met, bucket.answered)
    aht_ms = _ratio(bucket.handle_ms, bucket.handle_count)
    return IntervalRow(
        timestamp=key,
        offered=bucket.offered,
        answered=bucket.answered,
        abandoned=bucket.abandoned,
        sl_met=bucket.sl_met,
        sl_percent=sl_percent * 100 if sl_percent is not None else None,
        mos=_ratio(bucket.mos_sum, bucket.mos_count),
        mos_samples=bucket.mos_count,
        aht=aht_ms / 1000 if aht_ms is not None else None,
        agents_count=len(bucket.agent_ids),
    )


def aggregate_conversations(
    conversations: list[ConversationRecord],
    agent_names: dict[str, str] | None = None,
    now: datetime | None = None,
    sl_threshold_ms: int = SL_THRESHOLD_MS,
    top_callers_limit: int = TOP_CALLERS_LIMIT,
) -> IntervalReport:
    """Aggregate conversation records into interval and agent metrics.

    A conversation is answered when an agent participant has an interact,
    talk or hold segment; otherwise it is abandoned. Conversations starting
    in the 03:00-09:00 maintenance window are skipped entirely.

    Args:
        conversations: Parsed records for one query interval, in any order.
        agent_names: Optional user id -> display name directory.
        now: Clock used to close segments that have not ended yet.
        sl_threshold_ms: Max delay from conversation start to interaction
            for the service level to count as met.
        top_callers_limit: Number of most frequent callers to keep.

    Returns:
        IntervalReport with sorted history rows, agent summaries, wrap-up
        reason counts and top callers.
    """
    now = to_utc(now) if now else datetime.now(timezone.utc)
    agent_names = agent_names or {}

    buckets: dict[str, IntervalBucket] = {}
    agents: dict[str, AgentActivitySummary] = {}
    wrap_ups: Counter[str] = Counter()
    callers: Counter[str] = Counter()

    for conv in conversations:
        biz = resolve(conv.conversation_start)
        if not biz.is_operating:
            continue

        bucket = buckets.setdefault(biz.bucket_key, IntervalBucket())
        bucket.offered += 1

        ani = conv.caller_ani
        if ani:
            callers[ani] += 1

        for participant in conv.participants:
            for session in participant.sessions:
                for seg in session.segments:
                    if seg.wrap_up_code:
                        wrap_ups[seg.wrap_up_code] += 1
                if session.media_type != "voice":
                    continue
                for stat in session.media_endpoint_stats:
                    score = stat.score
                    if score is not None:
                        bucket.mos_sum += score
                        bucket.mos_count += 1

        answered = False
        sl_met = False
        for participant in conv.agent_participants:
            summary = agents.get(participant.user_id)
            if summary is None:
                summary = AgentActivitySummary(
                    user_id=participant.user_id,
                    name=agent_names.get(participant.user_id, "Agent"),
                )
                agents[participant.user_id] = summary

            handled = False
            for seg in participant.iter_segments():
                seg_end = seg.segment_end or now
                summary.record(seg.segment_start, seg_end)
                if not seg.is_active:
                    continue
                handled = True
                duration_ms = (seg_end - seg.segment_start).total_seconds() * 1000
                bucket.handle_ms += duration_ms
                summary.handle_time_ms += duration_ms
                delay_ms = (seg.segment_start - conv.conversation_start).total_seconds() * 1000
                if seg.segment_type == "interact" and delay_ms <= sl_threshold_ms:
                    sl_met = True

            if handled:
                answered = True
                summary.answered += 1
                bucket.agent_ids.add(participant.user_id)
            else:
                summary.missed += 1

        if answered:
            bucket.answered += 1
            bucket.handle_count += 1
            if sl_met:
                bucket.sl_met += 1
        else:
            bucket.abandoned += 1

    history = [_finish_row(key, buckets[key]) for key in sorted(buckets)]
    return IntervalReport(
        history=history,
        agents=sorted(agents.values(), key=lambda a: a.user_id),
        wrap_ups=[ReasonCount(name, count) for name, count in sorted(wrap_ups.items())],
        top_callers=[
            CallerCount(number, count)
            for number, count in sorted(callers.items(), key=lambda kv: (-kv[1], kv[0]))
        ][:top_callers_limit],
    )


def rollup_daily(history: list[IntervalRow]) -> list[IntervalRow]:
    """Fold half-hour rows into one row per calendar date.

    MOS and AHT are pooled from the underlying samples, SL from the met
    counts, and agents_count is the busiest bucket of the day.
    """
    days: dict[str, dict] = {}
    for row in history:
        day = row.timestamp.split(" ")[0]
        d = days.setdefault(day, {
            "offered": 0, "answered": 0, "abandoned": 0, "sl_met": 0,
            "mos_sum": 0.0, "mos_count": 0, "handle_s": 0.0, "agents_max": 0,
        })
        d["offered"] += row.offered
        d["answered"] += row.answered
        d["abandoned"] += row.abandoned
        d["sl_met"] += row.sl_met
        if row.mos is not None:
            d["mos_sum"] += row.mos * row.mos_samples
            d["mos_count"] += row.mos_samples
        if row.aht is not None:
            d["handle_s"] += row.aht * row.answered
        d["agents_max"] = max(d["agents_max"], row.agents_count)

    rows = []
    for day in sorted(days):
        d = days[day]
        sl = _ratio(d["sl_met"], d["answered"])
        rows.append(IntervalRow(
            timestamp=day,
            offered=d["offered"],
            answered=d["answered"],
            abandoned=d["abandoned"],
            sl_met=d["sl_met"],
            sl_percent=sl * 100 if sl is not None else None,
            mos=_ratio(d["mos_sum"], d["mos_count"]),
            mos_samples=d["mos_count"],
            aht=_ratio(d["handle_s"], d["answered"]),
            agents_count=d["agents_max"],
        ))
    return rows


@dataclass(frozen=True)
class KpiRow:
    mos: float | None
    sl: float
    offered: int
    answered: int
    abandoned: int
    agents: int
    aht: float
    calls_per_agent: float

    @property
    def abandon_percent(self) -> float:
        return self.abandoned / self.offered * 100 if self.offered > 0 else 0.0


@dataclass(frozen=True)
class KpiSummary:
    summary: KpiRow
    max: KpiRow
    min: KpiRow


def summarize(history: list[IntervalRow], agents: list[AgentActivitySummary]) -> KpiSummary:
    """Headline KPIs plus best/worst interval values.

    Minimums of ratio metrics ignore intervals with no reading (zero), and
    every figure falls back to 0 when there is nothing to average.
    """
    total = _bucket_from_rows(history)
    total_row = _finish_row("total", total)
    summary = KpiRow(
        mos=total_row.mos,
        sl=total_row.sl_percent or 0.0,
        offered=total.offered,
        answered=total.answered,
        abandoned=total.abandoned,
        agents=len(agents),
        aht=total_row.aht or 0.0,
        calls_per_agent=total.answered / len(agents) if agents else 0.0,
    )

    per_interval = [
        {
            "mos": r.mos or 0.0,
            "sl": r.sl_percent or 0.0,
            "offered": r.offered,
            "answered": r.answered,
            "abandoned": r.abandoned,
            "agents": r.agents_count,
            "aht": r.aht or 0.0,
            "calls_per_agent": r.answered / r.agents_count if r.agents_count else 0.0,
        }
        for r in history
    ]

    def pick(fn, name: str, skip_zero: bool = False):
        values = [i[name] for i in per_interval if not (skip_zero and i[name] <= 0)]
        return fn(values) if values else 0

    ratios = {"mos", "sl", "aht", "calls_per_agent"}
    maximum = KpiRow(**{k: pick(max, k) for k in per_interval[0]}) if per_interval else _empty_kpi()
    minimum = (
        KpiRow(**{k: pick(min, k, skip_zero=k in ratios) for k in per_interval[0]})
        if per_interval else _empty_kpi()
    )
    return KpiSummary(summary=summary, max=maximum, min=minimum)


def _empty_kpi() -> KpiRow:
    return KpiRow(mos=0.0, sl=0.0, offered=0, answered=0, abandoned=0,
                  agents=0, aht=0.0, calls_per_agent=0.0)


def _bucket_from_row(row: IntervalRow) -> IntervalBucket:
    return IntervalBucket(
        offered=row.offered,
        answered=row.answered,
        abandoned=row.abandoned,
        sl_met=row.sl_met,
        mos_sum=(row.mos or 0.0) * row.mos_samples,
        mos_count=row.mos_samples,
        handle_ms=(row.aht or 0.0) * 1000 * row.answered,
        handle_count=row.answered,
    )


def _bucket_from_rows(rows: list[IntervalRow]) -> IntervalBucket:
    total = IntervalBucket()
    for row in rows:
        part = _bucket_from_row(row)
        total.offered += part.offered
        total.answered += part.answered
        total.abandoned += part.abandoned
        total.sl_met += part.sl_met
        total.mos_sum += part.mos_sum
        total.mos_count += part.mos_count
        total.handle_ms += part.handle_ms
        total.handle_count += part.handle_count
    return total
