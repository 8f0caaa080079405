"""
Upstream Query Client
=====================

Thin synchronous client for the contact-center analytics API: OAuth
client-credentials login with an injectable token cache, the conversation
details query, the aggregate query, queue lookup and the user directory.

Every non-2xx response or transport failure becomes an UpstreamQueryError
carrying the upstream status. Nothing is retried automatically.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx

from ..config import GenesysSettings
from ..exceptions import UpstreamQueryError
from ..log import get_logger
from .business_time import format_interval
from .schemas import (
    AggregateQueryResponse,
    ConversationQueryPage,
    ConversationRecord,
    parse_aggregates,
)

log = get_logger(__name__)

DETAILS_PATH = "/api/v2/analytics/conversations/details/query"
AGGREGATES_PATH = "/api/v2/analytics/conversations/aggregates/query"
QUEUES_PATH = "/api/v2/routing/queues"
USERS_PATH = "/api/v2/users"


@dataclass
class CachedToken:
    value: str
    expires_at: float


class TokenCache:
    """Access-token cache with an injectable clock.

    A token is reused until `refresh_buffer` seconds before it expires.

    Args:
        clock: Returns the current time in epoch seconds.
        refresh_buffer: Seconds before expiry at which a token is stale.
    """

    def __init__(
        self,
        clock: Callable[[], float] = time.time,
        refresh_buffer: float = 60.0,
    ) -> None:
        self.clock = clock
        self.refresh_buffer = refresh_buffer
        self._token: CachedToken | None = None

    def get(self) -> str | None:
        if self._token and self.clock() < self._token.expires_at - self.refresh_buffer:
            return self._token.value
        return None

    def store(self, value: str, expires_in: float) -> str:
        self._token = CachedToken(value=value, expires_at=self.clock() + expires_in)
        return value

    def clear(self) -> None:
        self._token = None


@dataclass(frozen=True)
class InteractionRecord:
    id: str
    start_time: datetime
    direction: str
    duration_ms: float


class GenesysClient:
    """Client for the upstream analytics API.

    Example:
        >>> client = GenesysClient(GenesysSettings.from_env())
        >>> queue_id = client.find_queue_id("Super Chicken")
        >>> records = client.query_conversations(queue_id, start, end)
    """

    def __init__(
        self,
        settings: GenesysSettings,
        http: httpx.Client | None = None,
        token_cache: TokenCache | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            settings: Credentials and region.
            http: Pre-built httpx client (tests pass one with a mock transport).
            token_cache: Shared token cache; a private one is created if omitted.
        """
        self.settings = settings
        self.http = http or httpx.Client(timeout=settings.timeout_seconds)
        self.token_cache = token_cache or TokenCache()

    def close(self) -> None:
        self.http.close()

    def __enter__(self) -> "GenesysClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Transport
    # ------------------------------------------------------------------

    def _token(self) -> str:
        cached = self.token_cache.get()
        if cached:
            return cached

        log.info("upstream_login", region=self.settings.region)
        try:
            response = self.http.post(
                self.settings.login_url,
                auth=(self.settings.client_id, self.settings.client_secret),
                data={"grant_type": "client_credentials"},
            )
        except httpx.HTTPError as e:
            raise UpstreamQueryError(
                f"Connection to Genesys failed ({self.settings.region})",
                cause=e,
            ) from e

        if response.is_error:
            raise UpstreamQueryError(
                f"Genesys authentication failed: {response.status_code}",
                status=response.status_code,
                details={"body": response.text},
            )
        data = response.json()
        return self.token_cache.store(data["access_token"], data.get("expires_in", 0))

    def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        url = f"{self.settings.api_base_url}{path}"
        headers = {
            "Authorization": f"Bearer {self._token()}",
            "Accept": "application/json",
        }
        try:
            response = self.http.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            log.error("upstream_request_failed", path=path, error=str(e))
            raise UpstreamQueryError(f"Request to {path} failed", cause=e) from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if response.is_error:
            message = data.get("message") or f"Genesys API error: {response.status_code}"
            log.error("upstream_error_response", path=path, status=response.status_code)
            raise UpstreamQueryError(message, status=response.status_code, details=data)
        return data

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def find_queue_id(self, queue_name: str) -> str:
        """Resolve a queue name (case-insensitive) to its id.

        Raises:
            UpstreamQueryError: With status 404 if no queue matches.
        """
        name = queue_name.strip()
        data = self._request("GET", QUEUES_PATH, params={"name": name})
        for entity in data.get("entities") or []:
            if entity.get("name", "").lower() == name.lower():
                return entity["id"]
        raise UpstreamQueryError(f"Queue '{name}' not found", status=404)

    def query_conversations(
        self,
        queue_id: str,
        start: datetime,
        end: datetime,
        page_size: int = 100,
    ) -> list[ConversationRecord]:
        """Fetch every conversation touching the queue within [start, end).

        Pages are requested until totalHits records are collected or a page
        comes back empty.
        """
        records: list[ConversationRecord] = []
        page_number = 1
        while True:
            body = {
                "interval": format_interval(start, end),
                "paging": {"pageSize": page_size, "pageNumber": page_number},
                "segmentFilters": _queue_filter(queue_id),
            }
            page = ConversationQueryPage.model_validate(
                self._request("POST", DETAILS_PATH, json=body)
            )
            records.extend(page.conversations)
            total = page.total_hits if page.total_hits is not None else len(records)
            if not page.conversations or len(records) >= total:
                break
            page_number += 1

        log.info("conversations_fetched", queue_id=queue_id, count=len(records), pages=page_number)
        return records

    def query_aggregates(
        self,
        start: datetime,
        end: datetime,
        granularity: str = "PT1H",
        metrics: tuple[str, ...] = ("nAnswered", "tHandle"),
        group_by: tuple[str, ...] = ("queueId",),
    ) -> AggregateQueryResponse:
        body = {
            "interval": format_interval(start, end),
            "granularity": granularity,
            "metrics": list(metrics),
            "groupBy": list(group_by),
        }
        response = parse_aggregates(self._request("POST", AGGREGATES_PATH, json=body))
        log.info("aggregates_fetched", groups=len(response.results))
        return response

    def fetch_user_names(self, page_size: int = 100) -> dict[str, str]:
        """User id -> display name for every user in the organization."""
        names: dict[str, str] = {}
        page_number = 1
        while True:
            data = self._request(
                "GET", USERS_PATH,
                params={"pageSize": page_size, "pageNumber": page_number},
            )
            for user in data.get("entities") or []:
                names[user["id"]] = user.get("name") or "Agent"
            if page_number >= (data.get("pageCount") or 1):
                break
            page_number += 1
        return names

    def fetch_recent_interactions(
        self,
        queue_id: str,
        now: datetime | None = None,
    ) -> list[InteractionRecord]:
        """Conversations of the last hour, first page only (50 records)."""
        now = now or datetime.now(timezone.utc)
        body = {
            "interval": format_interval(now - timedelta(hours=1), now),
            "paging": {"pageSize": 50, "pageNumber": 1},
            "segmentFilters": _queue_filter(queue_id),
        }
        page = ConversationQueryPage.model_validate(
            self._request("POST", DETAILS_PATH, json=body)
        )
        return [
            InteractionRecord(
                id=conv.conversation_id,
                start_time=conv.conversation_start,
                direction="Inbound",
                duration_ms=(
                    (conv.conversation_end - conv.conversation_start).total_seconds() * 1000
                    if conv.conversation_end else 0
                ),
            )
            for conv in page.conversations
        ]


def _queue_filter(queue_id: str) -> list[dict[str, Any]]:
    return [{
        "type": "and",
        "predicates": [{
            "type": "dimension",
            "dimension": "queueId",
            "operator": "matches",
            "value": queue_id,
        }],
    }]
