from schedule_model import (
    Bill,
    EarlyDayMotion,
    Member,
    OralQuestions,
    TimeSpan,
    event_from_dict,
    event_to_dict,
    minutes_to_label,
    parse_time_to_minutes,
    time_from_value,
)


def test_parse_time_to_minutes() -> None:
    assert parse_time_to_minutes("09:30") == 570
    assert parse_time_to_minutes("14:30:00") == 870
    assert parse_time_to_minutes("2025-01-13T16:05:00Z") == 965
    assert parse_time_to_minutes("2025-01-13T16:05:00") == 965
    assert parse_time_to_minutes("9.30") is None
    assert parse_time_to_minutes("10:75") is None
    assert parse_time_to_minutes(None) is None


def test_time_from_value_pads_hours() -> None:
    assert time_from_value("9:05") == "09:05"
    assert time_from_value("2025-01-13T11:30:00") == "11:30"
    assert time_from_value("") is None


def test_minutes_to_label() -> None:
    assert minutes_to_label(8 * 60) == "8am"
    assert minutes_to_label(12 * 60) == "12pm"
    assert minutes_to_label(13 * 60 + 30) == "1:30pm"
    assert minutes_to_label(24 * 60) == "12am"


def test_event_record_keeps_kind() -> None:
    oral = OralQuestions(department="Treasury", time=TimeSpan("11:30"))
    record = event_to_dict(oral)
    assert record["kind"] == "oral-questions"
    assert event_from_dict(record) == oral


def test_event_from_dict_rejects_incomplete_records() -> None:
    assert event_from_dict({"kind": "bill"}) is None
    assert event_from_dict({"kind": "edm", "title": "Motion", "date_tabled": "2025-01-13"}) is None
    assert event_from_dict({"kind": "unknown", "title": "?"}) is None
    assert event_from_dict("not a record") is None


def test_event_from_dict_drops_empty_time() -> None:
    bill = event_from_dict({"kind": "bill", "title": "Planning Bill", "time": {}})
    assert bill == Bill(title="Planning Bill")


def test_edm_record_round_trip() -> None:
    edm = EarlyDayMotion(
        title="Local libraries",
        date_tabled="2025-01-14T00:00:00",
        primary_sponsor=Member(name="Member D", party="Green"),
    )
    assert event_from_dict(event_to_dict(edm)) == edm
