"""Grid constants and helpers for reading and applying layout overrides."""

from __future__ import annotations

import copy
import json
from pathlib import Path

from schedule_model import (
    Bill,
    DebateEvent,
    EarlyDayMotion,
    Event,
    OralQuestions,
    minutes_to_hhmm,
    parse_time_to_minutes,
)

# Assumed length of a session that announces only one time.
DEFAULT_DURATION_MINUTES = 60
DEFAULT_DAY_WINDOW_START = "08:00"
DEFAULT_DAY_WINDOW_HOURS = 17
DEFAULT_ORAL_QUESTIONS_START = "11:30"
DEFAULT_PIXELS_PER_MINUTE = 1.0
MIN_EVENT_HEIGHT = 40
WEEK_LENGTH = 5

DEFAULT_DISPLAY_OPTIONS = {
    "show_time": True,
    "show_category": True,
    "show_location": True,
    "show_untimed": True,
}

DEFAULT_TITLE_MAX_LENGTH = 60

DEFAULT_EVENT_FILTERS = {
    "Oral Questions": True,
    "Main Chamber": True,
    "Westminster Hall": True,
    "Private Meeting": False,
    "Introduction(s)": True,
    "Orders and Regulations": True,
    "Private Members' Bills": True,
    "Legislation": True,
    "Bills": True,
    "EDMs": True,
    "Oral evidence": False,
    "Ministerial Statement": True,
    "Backbench Business": True,
}

CATEGORY_FILTERS = {
    "oral evidence": "Oral evidence",
    "private meeting": "Private Meeting",
    "debate": "Main Chamber",
    "ministerial statement": "Ministerial Statement",
    "backbench business": "Backbench Business",
}

CATEGORY_SUBSTRING_FILTERS = [
    ("introduction", "Introduction(s)"),
    ("orders and regulations", "Orders and Regulations"),
    ("private members' bills", "Private Members' Bills"),
    ("legislation", "Legislation"),
]

CATEGORY_COLORS = {
    "Private Meeting": (37, 99, 235),
    "Ministerial statement": (147, 51, 234),
    "Westminster Hall debate": (22, 163, 74),
    "Backbench Business": (234, 88, 12),
}
DEFAULT_EVENT_COLOR = (30, 58, 95)

DEFAULT_LAYOUT = {
    "event_filters": DEFAULT_EVENT_FILTERS,
    "display_options": DEFAULT_DISPLAY_OPTIONS,
    "title_max_length": DEFAULT_TITLE_MAX_LENGTH,
    "day_window_start": DEFAULT_DAY_WINDOW_START,
    "default_duration_minutes": DEFAULT_DURATION_MINUTES,
    "oral_questions_start": DEFAULT_ORAL_QUESTIONS_START,
}


def normalize_layout(data: dict | None) -> dict:
    layout = copy.deepcopy(DEFAULT_LAYOUT)
    if not isinstance(data, dict):
        return layout

    filters = data.get("event_filters")
    if isinstance(filters, dict):
        for key in DEFAULT_EVENT_FILTERS:
            value = filters.get(key)
            if isinstance(value, bool):
                layout["event_filters"][key] = value

    display_options = data.get("display_options")
    if isinstance(display_options, dict):
        for key in DEFAULT_DISPLAY_OPTIONS:
            value = display_options.get(key)
            if isinstance(value, bool):
                layout["display_options"][key] = value

    title_max_length = data.get("title_max_length")
    if title_max_length is not None:
        try:
            layout["title_max_length"] = max(0, int(title_max_length))
        except (TypeError, ValueError):
            pass

    for key in ("day_window_start", "oral_questions_start"):
        minutes = parse_time_to_minutes(data.get(key))
        if minutes is not None:
            layout[key] = minutes_to_hhmm(minutes)

    duration = data.get("default_duration_minutes")
    if duration is not None:
        try:
            layout["default_duration_minutes"] = max(1, int(duration))
        except (TypeError, ValueError):
            pass

    return layout


def load_layout(path: Path) -> dict:
    if not path.exists():
        return copy.deepcopy(DEFAULT_LAYOUT)
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError:
        return copy.deepcopy(DEFAULT_LAYOUT)
    return normalize_layout(data)


def save_layout(path: Path, layout: dict) -> None:
    normalized = normalize_layout(layout)
    path.write_text(json.dumps(normalized, indent=2), encoding="utf-8")


def filter_key(event: Event) -> str | None:
    """Name of the event filter governing ``event``, or None if always shown."""
    if isinstance(event, OralQuestions):
        return "Oral Questions"
    if isinstance(event, EarlyDayMotion):
        return "EDMs"
    if isinstance(event, Bill):
        return "Bills"
    if isinstance(event, DebateEvent):
        category = (event.category or "").lower()
        if category in CATEGORY_FILTERS:
            return CATEGORY_FILTERS[category]
        for marker, key in CATEGORY_SUBSTRING_FILTERS:
            if marker in category:
                return key
        if "westminster hall" in (event.event_type or "").lower():
            return "Westminster Hall"
    return None


def apply_filters(events: list[Event], filters: dict | None) -> list[Event]:
    if not filters:
        return list(events)
    kept = []
    for event in events:
        key = filter_key(event)
        if key is None or filters.get(key, True):
            kept.append(event)
    return kept


def event_color(event: Event) -> tuple[int, int, int]:
    if isinstance(event, DebateEvent):
        return CATEGORY_COLORS.get(event.category or "", DEFAULT_EVENT_COLOR)
    return DEFAULT_EVENT_COLOR


def get_display_settings(layout: dict | None) -> tuple[dict, int]:
    display = copy.deepcopy(DEFAULT_DISPLAY_OPTIONS)
    title_max_length = DEFAULT_TITLE_MAX_LENGTH
    if layout:
        display.update(layout.get("display_options", {}))
        title_max_length = layout.get("title_max_length", title_max_length)
    return display, title_max_length


def get_grid_settings(layout: dict | None) -> tuple[int, int, str]:
    """Return (day window start minutes, default duration, oral questions start)."""
    layout = layout or {}
    window_start = parse_time_to_minutes(
        layout.get("day_window_start", DEFAULT_DAY_WINDOW_START)
    )
    if window_start is None:
        window_start = parse_time_to_minutes(DEFAULT_DAY_WINDOW_START)
    duration = layout.get("default_duration_minutes", DEFAULT_DURATION_MINUTES)
    oral_start = layout.get("oral_questions_start", DEFAULT_ORAL_QUESTIONS_START)
    return window_start, duration, oral_start
