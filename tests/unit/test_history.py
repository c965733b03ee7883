"""Tests for timemachine.core.history — the "on this day" lookup."""

from __future__ import annotations

import httpx
import pytest

from timemachine.core.errors import HistoryLookupError
from timemachine.core.history import fetch_on_this_day, parse_events


def _entry(text: str, year: int | None = None, with_page: bool = True) -> dict:
    entry: dict = {"text": text}
    if year is not None:
        entry["year"] = year
    if with_page:
        entry["pages"] = [
            {
                "content_urls": {"desktop": {"page": f"https://en.wikipedia.org/wiki/{text.replace(' ', '_')}"}},
                "thumbnail": {"source": f"https://upload.test/{text.replace(' ', '_')}.jpg"},
            }
        ]
    return entry


SAMPLE_FEED = {
    "selected": [_entry("Moon landing", 1969)],
    "events": [_entry(f"Event {i}", 1800 + i) for i in range(25)],
    "births": [_entry(f"Birth {i}", 1900 + i, with_page=False) for i in range(12)],
    "deaths": [_entry(f"Death {i}", 1700 + i) for i in range(3)],
    "holidays": [_entry("Festival", 2020), _entry("Feast day")],
}


class TestParseEvents:
    """Feed categories are flattened with per-category caps."""

    def test_category_caps(self):
        events = parse_events(SAMPLE_FEED)
        counts: dict[str, int] = {}
        for event in events:
            counts[event.category] = counts.get(event.category, 0) + 1

        assert counts == {"selected": 1, "events": 20, "births": 10, "deaths": 3, "holidays": 2}

    def test_category_order_and_ids(self):
        events = parse_events(SAMPLE_FEED)
        assert events[0].id == "selected-0"
        assert events[1].id == "events-0"
        assert events[-1].id == "holidays-1"

    def test_page_metadata(self):
        first = parse_events(SAMPLE_FEED)[0]
        assert first.text == "Moon landing"
        assert first.year == 1969
        assert first.wikipedia_url == "https://en.wikipedia.org/wiki/Moon_landing"
        assert first.thumbnail == "https://upload.test/Moon_landing.jpg"

    def test_missing_pages(self):
        birth = next(e for e in parse_events(SAMPLE_FEED) if e.category == "births")
        assert birth.wikipedia_url is None
        assert birth.thumbnail is None

    def test_holidays_have_no_year(self):
        holidays = [e for e in parse_events(SAMPLE_FEED) if e.category == "holidays"]
        assert all(h.year is None for h in holidays)

    def test_empty_feed(self):
        assert parse_events({}) == []

    def test_null_page_fields(self):
        payload = {"events": [{"text": "x", "year": 1, "pages": [{"content_urls": None, "thumbnail": None}]}]}
        [event] = parse_events(payload)
        assert event.text == "x"
        assert event.wikipedia_url is None
        assert event.thumbnail is None

    def test_null_desktop_urls(self):
        payload = {"selected": [{"text": "y", "pages": [{"content_urls": {"desktop": None}}]}]}
        assert parse_events(payload)[0].wikipedia_url is None

    def test_malformed_categories_and_entries_skipped(self):
        payload = {
            "selected": None,
            "events": {"not": "a list"},
            "births": ["bare string", None, {"text": "Ada", "year": 1815, "pages": [None]}],
        }
        events = parse_events(payload)
        assert [(e.id, e.text, e.year) for e in events] == [("births-2", "Ada", 1815)]


class TestFetchOnThisDay:
    """Fetching pads the date and converts failures."""

    @pytest.mark.asyncio
    async def test_fetch(self, mock_http):
        client, transport = mock_http(lambda request: httpx.Response(200, json=SAMPLE_FEED))

        events = await fetch_on_this_day(client, 7, 4, base_url="https://wikimedia.test")

        assert len(events) == 36
        request = transport.requests[0]
        assert str(request.url) == "https://wikimedia.test/feed/v1/wikipedia/en/onthisday/all/07/04"
        assert request.headers["accept"] == "application/json"

    @pytest.mark.asyncio
    async def test_http_error_status(self, mock_http):
        client, _ = mock_http(lambda request: httpx.Response(404))

        with pytest.raises(HistoryLookupError, match="Wikipedia API error: 404"):
            await fetch_on_this_day(client, 2, 30)

    @pytest.mark.asyncio
    async def test_network_failure(self, mock_http):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        client, _ = mock_http(handler)

        with pytest.raises(HistoryLookupError, match="unreachable"):
            await fetch_on_this_day(client, 1, 1)
