"""Event records for the parliamentary week schedule."""

from __future__ import annotations

import dataclasses
import datetime as dt
import re
from dataclasses import dataclass, field
from typing import ClassVar, Union

TIME_RE = re.compile(r"^(\d{1,2}):(\d{2})(?::\d{2}(?:\.\d+)?)?(?:Z|[+-]\d{2}:?\d{2})?$")


@dataclass(frozen=True)
class TimeSpan:
    substantive: str | None = None
    topical: str | None = None

    def is_empty(self) -> bool:
        return not self.substantive and not self.topical


@dataclass
class Member:
    name: str
    party: str | None = None
    constituency: str | None = None
    photo_url: str | None = None


@dataclass
class Question:
    text: str
    id: int | None = None
    uin: int | None = None
    asking_members: list[Member] = field(default_factory=list)


@dataclass
class OralQuestions:
    """A departmental question time, optionally with the questions tabled for it."""

    department: str
    minister: Member | None = None
    minister_title: str | None = None
    deadline: str | None = None
    questions: list[Question] = field(default_factory=list)
    time: TimeSpan | None = None

    kind: ClassVar[str] = "oral-questions"


@dataclass
class DebateEvent:
    """A generic what's-on calendar entry (debates, statements, committees)."""

    title: str
    category: str | None = None
    event_type: str | None = None
    location: str | None = None
    description: str | None = None
    house: str | None = None
    members: list[Member] = field(default_factory=list)
    event_id: str | None = None
    time: TimeSpan | None = None

    kind: ClassVar[str] = "debate-event"


@dataclass
class EarlyDayMotion:
    title: str
    text: str | None = None
    date_tabled: str | None = None
    primary_sponsor: Member | None = None
    edm_id: int | None = None
    uin: int | None = None
    time: TimeSpan | None = None

    kind: ClassVar[str] = "edm"


@dataclass
class Bill:
    title: str
    current_house: str | None = None
    originating_house: str | None = None
    stage: str | None = None
    sponsors: list[Member] = field(default_factory=list)
    bill_id: int | None = None
    time: TimeSpan | None = None

    kind: ClassVar[str] = "bill"


Event = Union[OralQuestions, DebateEvent, EarlyDayMotion, Bill]

@dataclass
class DaySchedule:
    date: dt.date
    events: list[Event] = field(default_factory=list)


@dataclass(frozen=True)
class LayoutSlot:
    event: Event
    top_offset_minutes: int
    duration_minutes: int
    column_index: int
    column_count: int
    group_index: int


@dataclass
class DayLayout:
    date: dt.date
    slots: list[LayoutSlot] = field(default_factory=list)
    untimed: list[Event] = field(default_factory=list)


def parse_time_to_minutes(value: str | None) -> int | None:
    if not value:
        return None
    text = value.strip()
    if "T" in text:
        text = text.split("T", 1)[1]
    match = TIME_RE.match(text)
    if not match:
        return None
    hour = int(match.group(1))
    minute = int(match.group(2))
    if minute >= 60:
        return None
    return hour * 60 + minute


def minutes_to_hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def minutes_to_label(minutes: int) -> str:
    hour = (minutes // 60) % 24
    minute = minutes % 60
    suffix = "am" if hour < 12 else "pm"
    display_hour = hour % 12 or 12
    if minute:
        return f"{display_hour}:{minute:02d}{suffix}"
    return f"{display_hour}{suffix}"


def time_from_value(value: str | None) -> str | None:
    """Return the zero-padded ``HH:MM`` part of an upstream time or timestamp."""
    minutes = parse_time_to_minutes(value)
    if minutes is None:
        return None
    return minutes_to_hhmm(minutes)


def parse_date(value: str | dt.date | None) -> dt.date | None:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if not value:
        return None
    try:
        return dt.date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        return None


def event_title(event: Event) -> str:
    if isinstance(event, OralQuestions):
        return event.department
    return event.title


def event_category(event: Event) -> str | None:
    if isinstance(event, DebateEvent):
        return event.category
    return None


def is_well_formed(event: Event) -> bool:
    if isinstance(event, OralQuestions):
        return bool(event.department)
    if isinstance(event, DebateEvent):
        return bool(event.title)
    if isinstance(event, EarlyDayMotion):
        return bool(event.title and event.date_tabled and event.primary_sponsor)
    if isinstance(event, Bill):
        return bool(event.title)
    return False


def event_to_dict(event: Event) -> dict:
    record = dataclasses.asdict(event)
    record["kind"] = event.kind
    return record


def _member_from_dict(data: object) -> Member | None:
    if not isinstance(data, dict) or not data.get("name"):
        return None
    return Member(
        name=str(data["name"]),
        party=data.get("party"),
        constituency=data.get("constituency"),
        photo_url=data.get("photo_url"),
    )


def _members_from_list(items: object) -> list[Member]:
    if not isinstance(items, list):
        return []
    members = [_member_from_dict(item) for item in items]
    return [member for member in members if member is not None]


def _time_from_dict(data: object) -> TimeSpan | None:
    if not isinstance(data, dict):
        return None
    span = TimeSpan(
        substantive=data.get("substantive") or None,
        topical=data.get("topical") or None,
    )
    return None if span.is_empty() else span


def _question_from_dict(data: object) -> Question | None:
    if not isinstance(data, dict) or not data.get("text"):
        return None
    return Question(
        text=str(data["text"]),
        id=data.get("id"),
        uin=data.get("uin"),
        asking_members=_members_from_list(data.get("asking_members")),
    )


def event_from_dict(data: object) -> Event | None:
    """Build an event from a record; unknown kinds and missing fields yield None."""
    if not isinstance(data, dict):
        return None
    kind = data.get("kind")
    time = _time_from_dict(data.get("time"))
    if kind == OralQuestions.kind:
        if not data.get("department"):
            return None
        questions = [_question_from_dict(item) for item in data.get("questions") or []]
        return OralQuestions(
            department=str(data["department"]),
            minister=_member_from_dict(data.get("minister")),
            minister_title=data.get("minister_title"),
            deadline=data.get("deadline"),
            questions=[question for question in questions if question is not None],
            time=time,
        )
    if kind == DebateEvent.kind:
        if not data.get("title"):
            return None
        return DebateEvent(
            title=str(data["title"]),
            category=data.get("category"),
            event_type=data.get("event_type"),
            location=data.get("location"),
            description=data.get("description"),
            house=data.get("house"),
            members=_members_from_list(data.get("members")),
            event_id=data.get("event_id"),
            time=time,
        )
    if kind == EarlyDayMotion.kind:
        sponsor = _member_from_dict(data.get("primary_sponsor"))
        if not data.get("title") or not data.get("date_tabled") or sponsor is None:
            return None
        return EarlyDayMotion(
            title=str(data["title"]),
            text=data.get("text"),
            date_tabled=data.get("date_tabled"),
            primary_sponsor=sponsor,
            edm_id=data.get("edm_id"),
            uin=data.get("uin"),
            time=time,
        )
    if kind == Bill.kind:
        if not data.get("title"):
            return None
        return Bill(
            title=str(data["title"]),
            current_house=data.get("current_house"),
            originating_house=data.get("originating_house"),
            stage=data.get("stage"),
            sponsors=_members_from_list(data.get("sponsors")),
            bill_id=data.get("bill_id"),
            time=time,
        )
    return None
