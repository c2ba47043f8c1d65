import datetime as dt
import json
import sys
from pathlib import Path

import pytest

import layout_config
from schedule_model import DaySchedule, DebateEvent, Member, OralQuestions, Question, TimeSpan
from schedule_tool import (
    import_payload_to_db,
    init_db,
    layout_day,
    load_meta,
    load_schedule,
    main,
    resolve_oral_questions_start,
    store_schedule,
)


def make_schedules() -> list[DaySchedule]:
    oral = OralQuestions(
        department="Home Office",
        minister=Member(name="Minister One", party="Labour"),
        deadline="2025-01-08T12:30:00",
        questions=[Question(text="On visas", id=1, asking_members=[Member(name="Member A")])],
        time=TimeSpan("14:30", "15:15"),
    )
    debate = DebateEvent(title="Rural transport", category="Westminster Hall debate")
    return [
        DaySchedule(date=dt.date(2025, 1, 14), events=[debate]),
        DaySchedule(date=dt.date(2025, 1, 13), events=[oral]),
    ]


def test_store_and_load_schedule(tmp_path: Path) -> None:
    conn = init_db(tmp_path / "schedule.db")
    count = store_schedule(conn, make_schedules(), "payload.json")
    assert count == 2

    loaded = load_schedule(conn)
    assert [day.date for day in loaded] == [dt.date(2025, 1, 13), dt.date(2025, 1, 14)]
    assert loaded[0].events == make_schedules()[1].events
    assert loaded[1].events == make_schedules()[0].events

    meta = load_meta(conn)
    assert meta["source"] == "payload.json"
    assert "generated_at" in meta


def test_store_replaces_previous_snapshot(tmp_path: Path) -> None:
    conn = init_db(tmp_path / "schedule.db")
    store_schedule(conn, make_schedules(), "first.json")
    store_schedule(conn, make_schedules()[:1], "second.json")
    loaded = load_schedule(conn)
    assert [day.date for day in loaded] == [dt.date(2025, 1, 14)]
    assert load_meta(conn)["source"] == "second.json"


def test_import_payload_writes_db_and_json(tmp_path: Path) -> None:
    payload = {
        "questionTimes": [
            {
                "AnsweringWhen": "2025-01-13T00:00:00",
                "DeadlineWhen": "2025-01-08T12:30:00",
                "AnsweringBodyNames": "Treasury",
            }
        ]
    }
    payload_path = tmp_path / "payload.json"
    payload_path.write_text(json.dumps(payload), encoding="utf-8")
    json_path = tmp_path / "events.json"

    count, day_count = import_payload_to_db(
        payload_path, tmp_path / "schedule.db", "11:30", json_path
    )
    assert (count, day_count) == (1, 1)
    records = json.loads(json_path.read_text(encoding="utf-8"))
    assert records[0]["date"] == "2025-01-13"
    assert records[0]["events"][0]["time"] == {"substantive": "11:30", "topical": None}


def test_import_rejects_empty_payload(tmp_path: Path) -> None:
    payload_path = tmp_path / "payload.json"
    payload_path.write_text("{}", encoding="utf-8")
    with pytest.raises(SystemExit):
        import_payload_to_db(payload_path, tmp_path / "schedule.db", "11:30", None)


def test_import_rejects_invalid_json(tmp_path: Path) -> None:
    payload_path = tmp_path / "payload.json"
    payload_path.write_text("{not json", encoding="utf-8")
    with pytest.raises(SystemExit):
        import_payload_to_db(payload_path, tmp_path / "schedule.db", "11:30", None)


def test_import_uses_layout_oral_questions_start(tmp_path: Path, monkeypatch) -> None:
    payload = {
        "questionTimes": [
            {
                "AnsweringWhen": "2025-01-13T00:00:00",
                "DeadlineWhen": "2025-01-08T12:30:00",
                "AnsweringBodyNames": "Treasury",
            }
        ]
    }
    payload_path = tmp_path / "payload.json"
    payload_path.write_text(json.dumps(payload), encoding="utf-8")
    layout_path = tmp_path / "layout.json"
    layout_config.save_layout(layout_path, {"oral_questions_start": "10:00"})
    db_path = tmp_path / "schedule.db"

    monkeypatch.setattr(
        sys,
        "argv",
        [
            "schedule-tool",
            "import",
            str(payload_path),
            "--db",
            str(db_path),
            "--layout",
            str(layout_path),
        ],
    )
    main()

    conn = init_db(db_path)
    day_layout = layout_day(load_schedule(conn)[0].events, dt.date(2025, 1, 13))
    conn.close()
    assert day_layout.untimed == []
    assert day_layout.slots[0].event.time == TimeSpan("10:00")
    assert day_layout.slots[0].top_offset_minutes == 120


def test_resolve_oral_questions_start(tmp_path: Path) -> None:
    layout_path = tmp_path / "layout.json"
    assert resolve_oral_questions_start(None, layout_path) == "11:30"
    layout_config.save_layout(layout_path, {"oral_questions_start": "9:45"})
    assert resolve_oral_questions_start(None, layout_path) == "09:45"
    assert resolve_oral_questions_start("12:00", layout_path) == "12:00"
    with pytest.raises(SystemExit):
        resolve_oral_questions_start("noon", layout_path)
