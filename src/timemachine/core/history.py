"""Lookup of historical events for a calendar day.

Fetches the Wikimedia "on this day" feed and flattens it into a single list
of :class:`HistoricalEvent` records. Each feed category is capped so the
list stays readable:

=============  =====
Category       Cap
=============  =====
selected       all
events         20
births         10
deaths         10
holidays       all
=============  =====
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any

import httpx

from .errors import HistoryLookupError

logger = logging.getLogger(__name__)

CATEGORY_LIMITS: dict[str, int | None] = {
    "selected": None,
    "events": 20,
    "births": 10,
    "deaths": 10,
    "holidays": None,
}


@dataclass(frozen=True)
class HistoricalEvent:
    id: str
    text: str
    category: str
    year: int | None = None
    wikipedia_url: str | None = None
    thumbnail: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _as_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _first_page(entry: dict[str, Any]) -> dict[str, Any]:
    pages = entry.get("pages")
    if isinstance(pages, list) and pages:
        return _as_dict(pages[0])
    return {}


def parse_events(payload: dict[str, Any]) -> list[HistoricalEvent]:
    """Flatten a feed response into events, in category order.

    Holidays never carry a year. Missing or malformed categories and
    entries are skipped, and null page fields read as absent.
    """
    events: list[HistoricalEvent] = []
    for category, limit in CATEGORY_LIMITS.items():
        entries = payload.get(category)
        if not isinstance(entries, list):
            continue
        if limit is not None:
            entries = entries[:limit]

        for index, entry in enumerate(entries):
            if not isinstance(entry, dict):
                continue
            page = _first_page(entry)
            desktop = _as_dict(_as_dict(page.get("content_urls")).get("desktop"))
            events.append(
                HistoricalEvent(
                    id=f"{category}-{index}",
                    text=entry.get("text") or "",
                    category=category,
                    year=None if category == "holidays" else entry.get("year"),
                    wikipedia_url=desktop.get("page"),
                    thumbnail=_as_dict(page.get("thumbnail")).get("source"),
                )
            )
    return events


async def fetch_on_this_day(
    client: httpx.AsyncClient,
    month: int,
    day: int,
    base_url: str = "https://api.wikimedia.org",
) -> list[HistoricalEvent]:
    """Fetch and parse the events for ``month``/``day``.

    Raises:
        HistoryLookupError: On a network failure or non-2xx response
    """
    url = f"{base_url.rstrip('/')}/feed/v1/wikipedia/en/onthisday/all/{month:02d}/{day:02d}"
    try:
        response = await client.get(url, headers={"Accept": "application/json"})
    except httpx.HTTPError as e:
        logger.error(f"On-this-day lookup failed: {e}")
        raise HistoryLookupError(f"Wikipedia API unreachable: {e}") from e

    if not response.is_success:
        raise HistoryLookupError(f"Wikipedia API error: {response.status_code}")

    try:
        payload = response.json()
    except ValueError as e:
        raise HistoryLookupError("Wikipedia API returned invalid JSON") from e

    events = parse_events(payload if isinstance(payload, dict) else {})
    logger.info(f"Loaded {len(events)} events for {month:02d}/{day:02d}")
    return events
