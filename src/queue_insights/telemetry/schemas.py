"""
Upstream Schemas
================

Typed models for the upstream analytics payloads. Raw JSON is parsed here,
at the boundary, so the aggregators only ever see validated records and
upstream schema drift stays out of the core logic. Unknown fields are
ignored; only the fields the aggregators read are declared.
"""

from collections.abc import Iterator
from datetime import datetime
from typing import Annotated, Any

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

from .business_time import to_utc

AGENT_PURPOSES = frozenset({"agent", "user"})
CUSTOMER_PURPOSES = frozenset({"external", "customer"})
ACTIVE_SEGMENT_TYPES = frozenset({"interact", "talk", "hold"})

# Timestamps without an offset are UTC; every parsed datetime is aware.
UtcDatetime = Annotated[datetime, AfterValidator(to_utc)]


class UpstreamModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)


class Segment(UpstreamModel):
    segment_type: str = Field(alias="segmentType")
    segment_start: UtcDatetime = Field(alias="segmentStart")
    segment_end: UtcDatetime | None = Field(default=None, alias="segmentEnd")
    wrap_up_code: str | None = Field(default=None, alias="wrapUpCode")

    @property
    def is_active(self) -> bool:
        """Whether the segment counts as agent handling (interact/talk/hold)."""
        return self.segment_type in ACTIVE_SEGMENT_TYPES


class MediaEndpointStat(UpstreamModel):
    mos: float | None = None
    min_mos: float | None = Field(default=None, alias="minMos")

    @property
    def score(self) -> float | None:
        """The MOS reading, falling back to minMos; None if not positive."""
        value = self.mos or self.min_mos
        if value is not None and value > 0:
            return value
        return None


class Session(UpstreamModel):
    media_type: str | None = Field(default=None, alias="mediaType")
    segments: list[Segment] = Field(default_factory=list)
    media_endpoint_stats: list[MediaEndpointStat] = Field(
        default_factory=list, alias="mediaEndpointStats"
    )


class Participant(UpstreamModel):
    purpose: str | None = None
    user_id: str | None = Field(default=None, alias="userId")
    ani: str | None = None
    sessions: list[Session] = Field(default_factory=list)

    @property
    def is_agent(self) -> bool:
        return self.purpose in AGENT_PURPOSES and bool(self.user_id)

    @property
    def is_customer(self) -> bool:
        return self.purpose in CUSTOMER_PURPOSES

    def iter_segments(self) -> Iterator[Segment]:
        for session in self.sessions:
            yield from session.segments


class ConversationRecord(UpstreamModel):
    """One conversation from the details query, scoped to a query interval."""
    conversation_id: str = Field(alias="conversationId")
    conversation_start: UtcDatetime = Field(alias="conversationStart")
    conversation_end: UtcDatetime | None = Field(default=None, alias="conversationEnd")
    participants: list[Participant] = Field(default_factory=list)

    @property
    def caller_ani(self) -> str | None:
        """ANI of the first external/customer participant, if it has one."""
        caller = next((p for p in self.participants if p.is_customer), None)
        return caller.ani if caller else None

    @property
    def agent_participants(self) -> list[Participant]:
        return [p for p in self.participants if p.is_agent]

    @property
    def is_answered(self) -> bool:
        return any(
            seg.is_active
            for p in self.agent_participants
            for seg in p.iter_segments()
        )


class ConversationQueryPage(UpstreamModel):
    conversations: list[ConversationRecord] = Field(default_factory=list)
    total_hits: int | None = Field(default=None, alias="totalHits")


class MetricStats(UpstreamModel):
    count: float | None = None
    sum: float | None = None


class AggregateMetric(UpstreamModel):
    metric: str
    stats: MetricStats = Field(default_factory=MetricStats)


class AggregateBucket(UpstreamModel):
    interval: str
    metrics: list[AggregateMetric] = Field(default_factory=list)

    @property
    def start(self) -> datetime:
        start = self.interval.split("/")[0].replace("Z", "+00:00")
        return to_utc(datetime.fromisoformat(start))

    def stat(self, metric: str, field: str) -> float:
        """A named statistic of a metric, 0 when absent."""
        for m in self.metrics:
            if m.metric == metric:
                return getattr(m.stats, field) or 0
        return 0


class AggregateGroup(UpstreamModel):
    group: dict[str, Any] = Field(default_factory=dict)
    data: list[AggregateBucket] = Field(default_factory=list)


class AggregateQueryResponse(UpstreamModel):
    results: list[AggregateGroup] = Field(default_factory=list)


def parse_conversations(payload: dict[str, Any]) -> list[ConversationRecord]:
    """Parse a details-query payload into typed conversation records."""
    return ConversationQueryPage.model_validate(payload).conversations


def parse_aggregates(payload: dict[str, Any]) -> AggregateQueryResponse:
    """Parse an aggregate-query payload."""
    return AggregateQueryResponse.model_validate(payload)
