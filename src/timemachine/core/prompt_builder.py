"""Prompt construction from a place and a moment in history.

Two prompt shapes are supported:

- **Scene prompt**: coordinates plus a historical date, e.g.
  ``"Create an image at 41.8925° N, 12.4853° E, March 15, 44 BCE, 11:00 hours.
  Photorealistic, street photography style."``
- **Event prompt**: an "on this day" event, optionally anchored to
  coordinates. Event text longer than 150 characters is truncated.

The module also carries the named historical presets offered by the UI.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

STYLE_SUFFIX = "Photorealistic, street photography style."
MAX_EVENT_TEXT = 150

MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


@dataclass(frozen=True)
class Coordinates:
    """A latitude/longitude pair in decimal degrees."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not -90 <= self.latitude <= 90:
            raise ValueError(f"Latitude must be between -90 and 90, got {self.latitude}")
        if not -180 <= self.longitude <= 180:
            raise ValueError(f"Longitude must be between -180 and 180, got {self.longitude}")


@dataclass(frozen=True)
class HistoricalDate:
    """A calendar date that may fall before the common era.

    ``year`` is always positive; ``is_bce`` marks years before 1 CE.
    ``hour`` is optional (0-23).
    """

    year: int
    month: int
    day: int
    hour: int | None = None
    is_bce: bool = False

    def __post_init__(self) -> None:
        if self.year < 1:
            raise ValueError(f"Year must be positive (use is_bce for BCE dates), got {self.year}")
        if not 1 <= self.month <= 12:
            raise ValueError(f"Month must be 1-12, got {self.month}")
        if not 1 <= self.day <= 31:
            raise ValueError(f"Day must be 1-31, got {self.day}")
        if self.hour is not None and not 0 <= self.hour <= 23:
            raise ValueError(f"Hour must be 0-23, got {self.hour}")


@dataclass(frozen=True)
class HistoricalPreset:
    label: str
    date: HistoricalDate


HISTORICAL_PRESETS: tuple[HistoricalPreset, ...] = (
    HistoricalPreset("Ides of March", HistoricalDate(44, 3, 15, hour=11, is_bce=True)),
    HistoricalPreset("Moon Landing", HistoricalDate(1969, 7, 20, hour=20)),
    HistoricalPreset("Fall of Berlin Wall", HistoricalDate(1989, 11, 9, hour=19)),
    HistoricalPreset("Pompeii Eruption", HistoricalDate(79, 8, 24, hour=13)),
    HistoricalPreset("French Revolution", HistoricalDate(1789, 7, 14, hour=10)),
    HistoricalPreset("Columbus Arrives", HistoricalDate(1492, 10, 12, hour=6)),
)


def format_coordinate(value: float, is_latitude: bool) -> str:
    """Format a coordinate as ``"40.7128° N"``.

    Args:
        value: Signed decimal degrees
        is_latitude: True for latitude (N/S), False for longitude (E/W)

    Returns:
        Absolute value with four decimals and a compass direction
    """
    if is_latitude:
        direction = "N" if value >= 0 else "S"
    else:
        direction = "E" if value >= 0 else "W"
    return f"{abs(value):.4f}° {direction}"


def format_year(year: int, is_bce: bool = False) -> str:
    return f"{year} BCE" if is_bce else f"{year} CE"


def format_historical_date(date: HistoricalDate) -> str:
    """Format a date as ``"March 15, 44 BCE, 11:00 hours"``."""
    text = f"{MONTH_NAMES[date.month - 1]} {date.day}, {format_year(date.year, date.is_bce)}"
    if date.hour is not None:
        text += f", {date.hour:02d}:00 hours"
    return text


def _location_prefix(coordinates: Coordinates) -> str:
    lat = format_coordinate(coordinates.latitude, True)
    lng = format_coordinate(coordinates.longitude, False)
    return f"Create an image at {lat}, {lng}, "


def build_scene_prompt(coordinates: Coordinates, date: HistoricalDate) -> str:
    """Build the prompt for a place at a historical date."""
    return f"{_location_prefix(coordinates)}{format_historical_date(date)}. {STYLE_SUFFIX}"


def build_event_prompt(text: str, year: int | None = None, coordinates: Coordinates | None = None) -> str:
    """Build the prompt for an "on this day" event.

    Args:
        text: Event description
        year: Signed event year (negative for BCE), or None for undated
            events such as holidays
        coordinates: Optional location to anchor the scene

    Returns:
        Prompt text ending with the style suffix
    """
    prompt = _location_prefix(coordinates) if coordinates else "Create an image depicting "

    if year:
        prompt += f"{format_year(abs(year), is_bce=year < 0)}: "

    if len(text) > MAX_EVENT_TEXT:
        text = text[: MAX_EVENT_TEXT - 3] + "..."

    return f"{prompt}{text} {STYLE_SUFFIX}"
