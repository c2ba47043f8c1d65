#!/usr/bin/env python3
"""Build weekly parliamentary schedules, lay out overlapping sessions and render timetables."""

from __future__ import annotations

import argparse
import dataclasses
import datetime as dt
import html
import json
import math
import sqlite3
from pathlib import Path

import layout_config
from layout_config import (
    DEFAULT_DAY_WINDOW_HOURS,
    DEFAULT_DURATION_MINUTES,
    DEFAULT_ORAL_QUESTIONS_START,
    DEFAULT_PIXELS_PER_MINUTE,
    MIN_EVENT_HEIGHT,
    WEEK_LENGTH,
)
from schedule_model import (
    Bill,
    DayLayout,
    DaySchedule,
    DebateEvent,
    EarlyDayMotion,
    Event,
    LayoutSlot,
    Member,
    OralQuestions,
    Question,
    TimeSpan,
    event_category,
    event_from_dict,
    event_title,
    event_to_dict,
    is_well_formed,
    minutes_to_hhmm,
    minutes_to_label,
    parse_date,
    parse_time_to_minutes,
    time_from_value,
)

DUPLICATE_CATEGORIES = {"oral questions"}
DUPLICATE_CATEGORY_MARKERS = ("prime minister",)


def truncate_text(text: str, max_length: int | None) -> str:
    if not text:
        return ""
    if not max_length or max_length <= 0:
        return text
    if len(text) <= max_length:
        return text
    suffix = "..."
    if max_length <= len(suffix):
        return text[:max_length]
    trimmed = text[: max_length - len(suffix)].rstrip()
    if not trimmed:
        return text[:max_length]
    return trimmed + suffix


def has_time(event: Event) -> bool:
    return event.time is not None and not event.time.is_empty()


def is_duplicate_question_time(event: Event) -> bool:
    """True for calendar entries that re-announce an oral or PM questions session."""
    if not isinstance(event, DebateEvent):
        return False
    category = (event.category or "").lower()
    if category in DUPLICATE_CATEGORIES:
        return True
    return any(marker in category for marker in DUPLICATE_CATEGORY_MARKERS)


def is_eligible(event: Event) -> bool:
    if not is_well_formed(event):
        return False
    if isinstance(event, OralQuestions):
        return True
    if isinstance(event, DebateEvent):
        return not is_duplicate_question_time(event) and has_time(event)
    if isinstance(event, (EarlyDayMotion, Bill)):
        return has_time(event)
    return False


def normalize(events: list[Event]) -> list[Event]:
    return [event for event in events if is_eligible(event)]


def untimed_events(events: list[Event]) -> list[Event]:
    return [event for event in events if is_well_formed(event) and not has_time(event)]


def group_by_day(dated_events: list[tuple[dt.date, Event]]) -> list[DaySchedule]:
    days: dict[dt.date, DaySchedule] = {}
    for date, event in dated_events:
        if date not in days:
            days[date] = DaySchedule(date=date)
        days[date].events.append(event)
    return sorted(days.values(), key=lambda day: day.date)


def effective_start(event: Event) -> str | None:
    if event.time is None:
        return None
    return event.time.substantive or event.time.topical


def effective_end(
    event: Event, default_duration: int = DEFAULT_DURATION_MINUTES
) -> str | None:
    start = effective_start(event)
    if start is None:
        return None
    if event.time.substantive and event.time.topical:
        return max(event.time.substantive, event.time.topical)
    start_min = parse_time_to_minutes(start)
    if start_min is None:
        return start
    return minutes_to_hhmm(start_min + default_duration)


def event_minutes(
    event: Event, window_start: int, default_duration: int = DEFAULT_DURATION_MINUTES
) -> tuple[int, int]:
    """Return (start minutes, duration) used for grid geometry."""
    start_min = parse_time_to_minutes(effective_start(event))
    if start_min is None:
        return window_start, default_duration
    end_min = parse_time_to_minutes(effective_end(event, default_duration))
    if end_min is None:
        end_min = start_min + default_duration
    return start_min, end_min - start_min


def group_overlaps(
    events: list[Event], default_duration: int = DEFAULT_DURATION_MINUTES
) -> list[list[Event]]:
    timed = [event for event in events if effective_start(event)]
    groups: list[list[Event]] = []
    current: list[Event] = []
    previous_end: str | None = None
    for event in sorted(timed, key=effective_start):
        # Only the immediately preceding event's end is consulted, so groups chain.
        if current and effective_start(event) <= previous_end:
            current.append(event)
        else:
            if current:
                groups.append(current)
            current = [event]
        previous_end = effective_end(event, default_duration)
    if current:
        groups.append(current)
    return groups


def layout(
    events: list[Event],
    day_window_start_minutes: int,
    default_duration: int = DEFAULT_DURATION_MINUTES,
) -> list[LayoutSlot]:
    slots: list[LayoutSlot] = []
    for group_index, group in enumerate(group_overlaps(events, default_duration)):
        column_count = len(group)
        for column_index, event in enumerate(group):
            start_min, duration = event_minutes(
                event, day_window_start_minutes, default_duration
            )
            slots.append(
                LayoutSlot(
                    event=event,
                    top_offset_minutes=start_min - day_window_start_minutes,
                    duration_minutes=duration,
                    column_index=column_index,
                    column_count=column_count,
                    group_index=group_index,
                )
            )
    return slots


def week_start(day: dt.date) -> dt.date:
    return day - dt.timedelta(days=day.weekday())


def week_days(day: dt.date, count: int = WEEK_LENGTH) -> list[dt.date]:
    start = week_start(day)
    return [start + dt.timedelta(days=offset) for offset in range(count)]


def layout_day(events: list[Event], date: dt.date, settings: dict | None = None) -> DayLayout:
    window_start, duration, _ = layout_config.get_grid_settings(settings)
    filters = dict(layout_config.DEFAULT_EVENT_FILTERS)
    if settings:
        filters.update(settings.get("event_filters") or {})
    visible = layout_config.apply_filters(events, filters)
    return DayLayout(
        date=date,
        slots=layout(normalize(visible), window_start, duration),
        untimed=untimed_events(visible),
    )


def layout_week(
    schedules: list[DaySchedule], day: dt.date, settings: dict | None = None
) -> list[DayLayout]:
    by_date = {schedule.date: schedule for schedule in schedules}
    layouts = []
    for date in week_days(day):
        schedule = by_date.get(date)
        layouts.append(layout_day(schedule.events if schedule else [], date, settings))
    return layouts


def apply_default_times(
    events: list[Event], default_start: str = DEFAULT_ORAL_QUESTIONS_START
) -> list[Event]:
    """Give question times without an announced time the configured start."""
    updated = []
    for event in events:
        if isinstance(event, OralQuestions) and not has_time(event):
            event = dataclasses.replace(event, time=TimeSpan(substantive=default_start))
        updated.append(event)
    return updated


def _records(payload: dict, key: str) -> list[dict]:
    items = payload.get(key)
    if not isinstance(items, list):
        return []
    return [item for item in items if isinstance(item, dict)]


def _hansard_member(data: object) -> Member | None:
    if not isinstance(data, dict):
        return None
    name = data.get("Name") or data.get("name")
    if not name:
        return None
    return Member(
        name=name,
        party=data.get("Party") or data.get("party"),
        constituency=data.get("Constituency") or data.get("constituency"),
        photo_url=data.get("PhotoUrl") or data.get("photoUrl") or data.get("memberPhoto"),
    )


def _span(start: str | None, end: str | None) -> TimeSpan | None:
    if not start:
        return None
    return TimeSpan(substantive=start, topical=end)


def _event_time(value: str | None) -> str | None:
    time = time_from_value(value)
    # Timestamps at midnight carry a date but no announced time.
    if time == "00:00" and value and "T" in value:
        return None
    return time


def _day(days: dict[dt.date, DaySchedule], date: dt.date) -> DaySchedule:
    if date not in days:
        days[date] = DaySchedule(date=date)
    return days[date]


def build_schedule(
    payload: dict, default_start: str = DEFAULT_ORAL_QUESTIONS_START
) -> list[DaySchedule]:
    days: dict[dt.date, DaySchedule] = {}

    for record in _records(payload, "questionTimes"):
        date = parse_date(record.get("AnsweringWhen"))
        department = record.get("AnsweringBodyNames")
        if date is None or not record.get("DeadlineWhen") or not department:
            continue
        span = TimeSpan(
            substantive=time_from_value(record.get("SubstantiveTime")),
            topical=time_from_value(record.get("TopicalTime")),
        )
        _day(days, date).events.append(
            OralQuestions(
                department=department,
                minister_title=record.get("AnsweringMinisterTitles"),
                deadline=record.get("DeadlineWhen"),
                time=None if span.is_empty() else span,
            )
        )

    for record in _records(payload, "oralQuestions"):
        date = parse_date(record.get("AnsweringWhen"))
        body = record.get("AnsweringBody")
        text = record.get("QuestionText")
        asking = _hansard_member(record.get("AskingMember"))
        if date is None or not body or not text or asking is None:
            continue
        day = _day(days, date)
        slot = next(
            (
                event
                for event in day.events
                if isinstance(event, OralQuestions) and event.department == body
            ),
            None,
        )
        if slot is None:
            slot = OralQuestions(
                department=body, minister_title=record.get("AnsweringMinisterTitle")
            )
            day.events.append(slot)
        minister = _hansard_member(record.get("AnsweringMinister"))
        if minister is not None:
            slot.minister = minister
        existing = next((q for q in slot.questions if q.text == text), None)
        if existing is not None:
            existing.asking_members.append(asking)
        else:
            slot.questions.append(
                Question(
                    text=text,
                    id=record.get("Id"),
                    uin=record.get("UIN"),
                    asking_members=[asking],
                )
            )

    for record in _records(payload, "earlyDayMotions"):
        date = parse_date(record.get("DateTabled"))
        sponsor = _hansard_member(record.get("PrimarySponsor"))
        if date is None or not record.get("Title") or sponsor is None:
            continue
        _day(days, date).events.append(
            EarlyDayMotion(
                title=record["Title"],
                text=record.get("MotionText"),
                date_tabled=record.get("DateTabled"),
                primary_sponsor=sponsor,
                edm_id=record.get("Id"),
                uin=record.get("UIN"),
            )
        )

    for record in _records(payload, "events"):
        date = parse_date(record.get("startTime"))
        if date is None or not record.get("title"):
            continue
        start = _event_time(record.get("startTime"))
        members = [_hansard_member(item) for item in record.get("members") or []]
        _day(days, date).events.append(
            DebateEvent(
                title=record["title"],
                category=record.get("category"),
                event_type=record.get("type"),
                location=record.get("location"),
                description=record.get("description"),
                house=record.get("house"),
                members=[member for member in members if member is not None],
                event_id=record.get("id"),
                time=_span(start, _event_time(record.get("endTime")) if start else None),
            )
        )

    for record in _records(payload, "bills"):
        title = record.get("shortTitle") or record.get("title")
        if not title:
            continue
        stage = record.get("currentStage")
        for sitting in record.get("sittings") or []:
            if not isinstance(sitting, dict):
                continue
            date = parse_date(sitting.get("date"))
            if date is None:
                continue
            sponsors = [
                _hansard_member(item.get("member"))
                for item in record.get("sponsors") or []
                if isinstance(item, dict)
            ]
            _day(days, date).events.append(
                Bill(
                    title=title,
                    current_house=record.get("currentHouse"),
                    originating_house=record.get("originatingHouse"),
                    stage=stage.get("description") if isinstance(stage, dict) else None,
                    sponsors=[sponsor for sponsor in sponsors if sponsor is not None],
                    bill_id=record.get("billId"),
                    time=_span(time_from_value(sitting.get("time")), None),
                )
            )

    for day in days.values():
        day.events = apply_default_times(day.events, default_start)
    return sorted(days.values(), key=lambda day: day.date)


def init_db(db_path: Path) -> sqlite3.Connection:
    conn = sqlite3.connect(str(db_path))
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS events (
            id INTEGER PRIMARY KEY,
            date_iso TEXT NOT NULL,
            position INTEGER NOT NULL,
            kind TEXT NOT NULL,
            title TEXT,
            category TEXT,
            substantive TEXT,
            topical TEXT,
            payload TEXT NOT NULL
        )
        """
    )
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS meta (
            key TEXT PRIMARY KEY,
            value TEXT
        )
        """
    )
    return conn


def store_schedule(
    conn: sqlite3.Connection, schedules: list[DaySchedule], source: str
) -> int:
    conn.execute("DELETE FROM events")
    conn.execute("DELETE FROM meta")
    conn.executemany(
        "INSERT OR REPLACE INTO meta (key, value) VALUES (?, ?)",
        [
            ("source", source),
            ("generated_at", dt.datetime.now(dt.timezone.utc).isoformat()),
        ],
    )

    rows = [
        (
            schedule.date.isoformat(),
            position,
            event.kind,
            event_title(event),
            event_category(event),
            event.time.substantive if event.time else None,
            event.time.topical if event.time else None,
            json.dumps(event_to_dict(event)),
        )
        for schedule in schedules
        for position, event in enumerate(schedule.events)
    ]
    conn.executemany(
        """
        INSERT INTO events (
            date_iso,
            position,
            kind,
            title,
            category,
            substantive,
            topical,
            payload
        )
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        """,
        rows,
    )
    conn.commit()
    return len(rows)


def load_schedule(conn: sqlite3.Connection) -> list[DaySchedule]:
    rows = conn.execute(
        """
        SELECT date_iso, payload
        FROM events
        ORDER BY date_iso, position, id
        """
    ).fetchall()
    dated_events = []
    for date_iso, payload in rows:
        event = event_from_dict(json.loads(payload))
        date = parse_date(date_iso)
        if event is None or date is None:
            continue
        dated_events.append((date, event))
    return group_by_day(dated_events)


def load_meta(conn: sqlite3.Connection) -> dict[str, str]:
    rows = conn.execute("SELECT key, value FROM meta").fetchall()
    return {key: value for key, value in rows}


def slot_to_dict(slot: LayoutSlot) -> dict:
    return {
        "event": event_to_dict(slot.event),
        "top_offset_minutes": slot.top_offset_minutes,
        "duration_minutes": slot.duration_minutes,
        "column_index": slot.column_index,
        "column_count": slot.column_count,
        "group_index": slot.group_index,
    }


def day_layout_to_dict(day_layout: DayLayout) -> dict:
    return {
        "date": day_layout.date.isoformat(),
        "slots": [slot_to_dict(slot) for slot in day_layout.slots],
        "untimed": [event_to_dict(event) for event in day_layout.untimed],
    }


def slot_geometry(
    slot: LayoutSlot, pixels_per_minute: float = DEFAULT_PIXELS_PER_MINUTE
) -> dict:
    column_width = 100 / slot.column_count
    return {
        "top": int(slot.top_offset_minutes * pixels_per_minute),
        "height": max(MIN_EVENT_HEIGHT, int(slot.duration_minutes * pixels_per_minute)),
        "left": 4 + slot.column_index * column_width,
        "width": column_width - 2,
        "z_index": 10 + slot.column_index if slot.column_count > 1 else 1,
    }


def time_range_text(event: Event) -> str:
    if event.time is None or event.time.is_empty():
        return ""
    if event.time.substantive and event.time.topical:
        return f"{event.time.substantive} - {event.time.topical}"
    return event.time.substantive or event.time.topical


def event_detail(event: Event, display: dict) -> str:
    details = []
    if isinstance(event, DebateEvent):
        if display.get("show_category") and event.category:
            details.append(event.category)
        if display.get("show_location") and event.location:
            details.append(event.location)
    elif isinstance(event, OralQuestions):
        if display.get("show_category"):
            details.append("Oral questions")
        if event.questions:
            details.append(f"{len(event.questions)} questions")
    elif isinstance(event, EarlyDayMotion):
        details.append("Early Day Motion")
    elif isinstance(event, Bill) and event.stage:
        details.append(event.stage)
    return " / ".join(details)


def hour_marks(window_start: int, window_hours: int) -> list[int]:
    """Whole hours inside the day window; the first mark is never above the grid."""
    last_hour = window_start // 60 + window_hours - 1
    return list(range(math.ceil(window_start / 60), last_hour + 1))


def render_week_html(
    day_layouts: list[DayLayout],
    display_options: dict | None = None,
    title_max_length: int | None = None,
    window_start: int = 8 * 60,
    window_hours: int = DEFAULT_DAY_WINDOW_HOURS,
    pixels_per_minute: float = DEFAULT_PIXELS_PER_MINUTE,
) -> str:
    if not day_layouts:
        return ""
    display = dict(layout_config.DEFAULT_DISPLAY_OPTIONS)
    if display_options:
        display.update(display_options)
    if title_max_length is None:
        title_max_length = layout_config.DEFAULT_TITLE_MAX_LENGTH

    hours = hour_marks(window_start, window_hours)
    last_hour = window_start // 60 + window_hours - 1
    grid_height = int((last_hour * 60 - window_start) * pixels_per_minute) + 1
    week_label = (
        f"{day_layouts[0].date.strftime('%d %b')} - {day_layouts[-1].date.strftime('%d %b %Y')}"
    )

    css = """
:root {
  --paper: #fbfaf7;
  --ink: #1c1b1a;
  --muted: #6b665f;
  --grid: rgba(46, 42, 37, 0.1);
}
* { box-sizing: border-box; }
body {
  margin: 0;
  background: #efece6;
  color: var(--ink);
  font-family: 'Avenir Next', 'Segoe UI', sans-serif;
}
.page {
  max-width: 1200px;
  margin: 24px auto;
  background: var(--paper);
  border-radius: 14px;
  padding: 24px 28px 32px;
}
header h1 { margin: 0; font-size: 26px; }
header .subtitle { color: var(--muted); margin-top: 4px; }
.week {
  display: grid;
  grid-template-columns: 60px repeat(DAY_COUNT, 1fr);
  margin-top: 18px;
}
.day-head { text-align: center; padding: 6px 0; font-weight: 600; border-left: 1px solid var(--grid); }
.hours, .day { position: relative; }
.day { border-left: 1px solid var(--grid); }
.hour-line { position: absolute; left: 0; right: 0; border-top: 1px solid var(--grid); }
.hour-label { position: absolute; right: 6px; font-size: 11px; color: var(--muted); }
.event {
  position: absolute;
  border-radius: 6px;
  padding: 4px 6px;
  color: #fff;
  overflow: hidden;
  font-size: 11px;
  box-shadow: 0 2px 6px rgba(0, 0, 0, 0.15);
}
.event .title { font-weight: 600; }
.event .meta:empty { display: none; }
.untimed { grid-column: 2 / -1; display: grid; grid-template-columns: repeat(DAY_COUNT, 1fr); }
.untimed ul { margin: 8px 6px; padding-left: 16px; font-size: 12px; color: var(--muted); }
@media print {
  body { background: #fff; }
  .page { box-shadow: none; margin: 0; }
}
""".replace("DAY_COUNT", str(len(day_layouts)))

    html_parts = [
        "<!DOCTYPE html>",
        "<html lang=\"en\">",
        "<head>",
        "<meta charset=\"utf-8\">",
        f"<title>Parliament week {html.escape(week_label)}</title>",
        "<meta name=\"viewport\" content=\"width=device-width, initial-scale=1\">",
        f"<style>{css}</style>",
        "</head>",
        "<body>",
        "<div class=\"page\">",
        "<header>",
        "<h1>Parliamentary business</h1>",
        f"<div class=\"subtitle\">{html.escape(week_label)}</div>",
        "</header>",
        "<div class=\"week\">",
        "<div></div>",
    ]
    for day_layout in day_layouts:
        html_parts.append(
            f"<div class=\"day-head\">{day_layout.date.strftime('%a %d')}</div>"
        )

    html_parts.append(f"<div class=\"hours\" style=\"height:{grid_height}px;\">")
    for hour in hours:
        top = int((hour * 60 - window_start) * pixels_per_minute)
        html_parts.append(
            f"<div class=\"hour-label\" style=\"top:{top - 6}px;\">"
            f"{html.escape(minutes_to_label(hour * 60))}</div>"
        )
    html_parts.append("</div>")

    for day_layout in day_layouts:
        html_parts.append(f"<div class=\"day\" style=\"height:{grid_height}px;\">")
        for hour in hours:
            top = int((hour * 60 - window_start) * pixels_per_minute)
            html_parts.append(f"<div class=\"hour-line\" style=\"top:{top}px;\"></div>")
        for slot in day_layout.slots:
            geometry = slot_geometry(slot, pixels_per_minute)
            red, green, blue = layout_config.event_color(slot.event)
            time_range = time_range_text(slot.event) if display.get("show_time") else ""
            html_parts.append(
                """
<div class="event" style="top:{top}px; height:{height}px; left:{left:.2f}%; width:{width:.2f}%; z-index:{z_index}; background:rgb({red},{green},{blue});">
  <div class="meta">{time_range}</div>
  <div class="title">{title}</div>
  <div class="meta">{detail}</div>
</div>
""".format(
                    red=red,
                    green=green,
                    blue=blue,
                    time_range=html.escape(time_range),
                    title=html.escape(
                        truncate_text(event_title(slot.event), title_max_length)
                    ),
                    detail=html.escape(event_detail(slot.event, display)),
                    **geometry,
                )
            )
        html_parts.append("</div>")

    if display.get("show_untimed"):
        html_parts.append("<div class=\"untimed\">")
        for day_layout in day_layouts:
            html_parts.append("<ul>")
            for event in day_layout.untimed:
                title = truncate_text(event_title(event), title_max_length)
                html_parts.append(f"<li>{html.escape(title)}</li>")
            html_parts.append("</ul>")
        html_parts.append("</div>")

    html_parts.extend([
        "</div>",
        "</div>",
        "</body>",
        "</html>",
    ])
    return "\n".join(html_parts)


def render_html(
    conn: sqlite3.Connection,
    outdir: Path,
    layout_path: Path | None = None,
    week: dt.date | None = None,
) -> list[Path]:
    outdir.mkdir(parents=True, exist_ok=True)
    schedules = load_schedule(conn)
    settings = layout_config.load_layout(layout_path) if layout_path else None
    display_options, title_max_length = layout_config.get_display_settings(settings)
    window_start, _, _ = layout_config.get_grid_settings(settings)

    if week is not None:
        weeks = [week_start(week)]
    else:
        weeks = sorted({week_start(schedule.date) for schedule in schedules})

    output_files: list[Path] = []
    index_links = []
    for monday in weeks:
        day_layouts = layout_week(schedules, monday, settings)
        html_content = render_week_html(
            day_layouts,
            display_options=display_options,
            title_max_length=title_max_length,
            window_start=window_start,
        )
        filename = f"week-{monday.isoformat()}.html"
        filepath = outdir / filename
        filepath.write_text(html_content, encoding="utf-8")
        output_files.append(filepath)
        index_links.append((monday, filename))

    index_html = """
<!DOCTYPE html>
<html lang="en">
<head>
  <meta charset="utf-8">
  <title>Parliamentary business index</title>
  <meta name="viewport" content="width=device-width, initial-scale=1">
  <style>
    body { font-family: 'Avenir Next', 'Segoe UI', sans-serif; margin: 40px; color: #1c1b1a; }
    a { color: #1e3a5f; text-decoration: none; }
    li { margin: 8px 0; }
  </style>
</head>
<body>
  <h1>Parliamentary business</h1>
  <ul>
"""
    for monday, filename in index_links:
        index_html += f"    <li><a href=\"{filename}\">Week of {monday.strftime('%d %B %Y')}</a></li>\n"
    index_html += """  </ul>
</body>
</html>
"""
    (outdir / "index.html").write_text(index_html, encoding="utf-8")
    output_files.append(outdir / "index.html")
    return output_files


def import_payload_to_db(
    payload_path: Path, db_path: Path, default_start: str, json_path: Path | None
) -> tuple[int, int]:
    if not payload_path.exists():
        raise SystemExit(f"Payload not found: {payload_path}")
    try:
        payload = json.loads(payload_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise SystemExit(f"Invalid JSON in {payload_path}: {exc}")
    if not isinstance(payload, dict):
        raise SystemExit(f"Expected a JSON object in {payload_path}")
    schedules = build_schedule(payload, default_start)
    if not schedules:
        raise SystemExit("No events found in payload")
    conn = init_db(db_path)
    count = store_schedule(conn, schedules, payload_path.name)
    conn.close()
    if json_path:
        records = [
            {
                "date": schedule.date.isoformat(),
                "events": [event_to_dict(event) for event in schedule.events],
            }
            for schedule in schedules
        ]
        json_path.write_text(json.dumps(records, indent=2), encoding="utf-8")
    return count, len(schedules)


def resolve_oral_questions_start(value: str | None, layout_path: Path | None) -> str:
    """Use the command-line start when given, otherwise the layout file's."""
    if value is not None:
        if parse_time_to_minutes(value) is None:
            raise SystemExit(f"Invalid time: {value} (expected HH:MM)")
        return time_from_value(value)
    settings = layout_config.load_layout(layout_path) if layout_path else None
    _, _, oral_start = layout_config.get_grid_settings(settings)
    return oral_start


def parse_date_arg(value: str) -> dt.date:
    date = parse_date(value)
    if date is None:
        raise argparse.ArgumentTypeError(f"Invalid date: {value} (expected YYYY-MM-DD)")
    return date


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Import parliamentary business into SQLite and render week timetables."
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    import_parser = subparsers.add_parser("import", help="Import a Hansard JSON payload")
    import_parser.add_argument("payload", type=Path, help="Path to the JSON payload")
    import_parser.add_argument("--db", type=Path, default=Path("schedule.db"))
    import_parser.add_argument("--json", type=Path, help="Optional JSON output path")
    import_parser.add_argument(
        "--oral-questions-start",
        help="Start time given to question times without an announced time "
        "(defaults to the layout file's oral_questions_start)",
    )
    import_parser.add_argument(
        "--layout",
        type=Path,
        default=Path("layout.json"),
        help="Layout overrides JSON",
    )

    render_parser = subparsers.add_parser("render", help="Render week timetables")
    render_parser.add_argument("--db", type=Path, default=Path("schedule.db"))
    render_parser.add_argument("--outdir", type=Path, default=Path("output"))
    render_parser.add_argument("--week", type=parse_date_arg, help="Any date in the week")
    render_parser.add_argument(
        "--layout",
        type=Path,
        default=Path("layout.json"),
        help="Layout overrides JSON",
    )

    layout_parser = subparsers.add_parser("layout", help="Print one day's layout as JSON")
    layout_parser.add_argument("date", type=parse_date_arg)
    layout_parser.add_argument("--db", type=Path, default=Path("schedule.db"))
    layout_parser.add_argument(
        "--layout",
        type=Path,
        default=Path("layout.json"),
        help="Layout overrides JSON",
    )

    args = parser.parse_args()

    if args.command == "import":
        count, day_count = import_payload_to_db(
            args.payload,
            args.db,
            resolve_oral_questions_start(args.oral_questions_start, args.layout),
            args.json,
        )
        print(f"Imported {count} events across {day_count} days into {args.db}")
        return

    if args.command == "render":
        conn = init_db(args.db)
        outputs = render_html(conn, args.outdir, layout_path=args.layout, week=args.week)
        print(f"Rendered {len(outputs)} files in {args.outdir}")
        return

    if args.command == "layout":
        conn = init_db(args.db)
        schedules = load_schedule(conn)
        settings = layout_config.load_layout(args.layout)
        schedule = next((s for s in schedules if s.date == args.date), None)
        day_layout = layout_day(schedule.events if schedule else [], args.date, settings)
        print(json.dumps(day_layout_to_dict(day_layout), indent=2))


if __name__ == "__main__":
    main()
