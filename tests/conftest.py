"""Pytest configuration and fixtures for queue_insights tests."""

import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pandas as pd
import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from queue_insights.telemetry.business_time import OPERATING_HOURS  # noqa: E402
from queue_insights.telemetry.schemas import parse_conversations  # noqa: E402


def _iso(ts: datetime) -> str:
    return ts.strftime("%Y-%m-%dT%H:%M:%S.000Z")


def _parse_start(start: str) -> datetime:
    return datetime.fromisoformat(start.replace("Z", "+00:00"))


def build_conversation(
    conv_id: str,
    start: str,
    *,
    ani: str | None = "+9647701000001",
    agent_id: str | None = "agent-1",
    answered: bool = True,
    answer_delay: int = 5,
    handle_seconds: int = 120,
    hold_seconds: int = 0,
    mos: tuple = (4.4,),
    wrap_up: str | None = None,
    media_type: str = "voice",
) -> dict:
    """Raw upstream JSON for one inbound conversation.

    The customer leg always exists; the agent leg is alerted after
    `answer_delay` seconds and, when answered, interacts for
    `handle_seconds` and optionally holds for `hold_seconds`.
    """
    start_dt = _parse_start(start)
    customer = {
        "purpose": "customer",
        "sessions": [{
            "mediaType": media_type,
            "segments": [{
                "segmentType": "interact",
                "segmentStart": _iso(start_dt),
                "segmentEnd": _iso(start_dt + timedelta(seconds=answer_delay + handle_seconds)),
            }],
            "mediaEndpointStats": [{"mos": m} for m in mos],
        }],
    }
    if ani:
        customer["ani"] = ani
    participants = [customer]

    if agent_id:
        alert_end = start_dt + timedelta(seconds=answer_delay)
        segments = [{
            "segmentType": "alert",
            "segmentStart": _iso(start_dt),
            "segmentEnd": _iso(alert_end),
        }]
        if answered:
            talk_end = alert_end + timedelta(seconds=handle_seconds)
            segments.append({
                "segmentType": "interact",
                "segmentStart": _iso(alert_end),
                "segmentEnd": _iso(talk_end),
            })
            if hold_seconds:
                hold_end = talk_end + timedelta(seconds=hold_seconds)
                segments.append({
                    "segmentType": "hold",
                    "segmentStart": _iso(talk_end),
                    "segmentEnd": _iso(hold_end),
                })
                talk_end = hold_end
            if wrap_up:
                segments.append({
                    "segmentType": "wrapup",
                    "segmentStart": _iso(talk_end),
                    "segmentEnd": _iso(talk_end + timedelta(seconds=10)),
                    "wrapUpCode": wrap_up,
                })
        participants.append({
            "purpose": "agent",
            "userId": agent_id,
            "sessions": [{"mediaType": media_type, "segments": segments}],
        })

    return {
        "conversationId": conv_id,
        "conversationStart": _iso(start_dt),
        "participants": participants,
    }


@pytest.fixture
def make_conversation():
    """Factory for raw upstream conversation JSON."""
    return build_conversation


@pytest.fixture
def parse():
    """Parse raw conversation dicts into ConversationRecords."""
    def _parse(*raw: dict):
        return parse_conversations({"conversations": list(raw)})
    return _parse


@pytest.fixture
def fixed_now():
    return datetime(2025, 4, 16, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def demand_table():
    """126-cell demand table with a clear Friday-evening peak."""
    rows = []
    for dow in range(7):
        for hour in OPERATING_HOURS:
            calls = 40.0 if hour in (20, 21) else 10.0
            if dow == 5 and hour == 21:
                calls = 100.0
            rows.append({"day_of_week": dow, "hour": hour, "avg_calls": calls, "avg_aht": 240.0})
    return pd.DataFrame(rows)
