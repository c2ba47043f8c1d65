import datetime as dt
import http.client
import json
import threading
from http.server import ThreadingHTTPServer
from pathlib import Path

import pytest

import layout_config
from gui_server import LayoutCache, ScheduleHandler
from schedule_model import DaySchedule, DebateEvent, TimeSpan
from schedule_tool import init_db, store_schedule

MONDAY = dt.date(2025, 1, 13)


def store(db_path: Path, titles: list[str]) -> None:
    events = [
        DebateEvent(title=title, category="Debate", time=TimeSpan("10:00"))
        for title in titles
    ]
    conn = init_db(db_path)
    store_schedule(conn, [DaySchedule(date=MONDAY, events=events)], "payload.json")
    conn.close()


def test_cache_reuses_layout_until_inputs_change(tmp_path: Path) -> None:
    db_path = tmp_path / "schedule.db"
    layout_path = tmp_path / "layout.json"
    store(db_path, ["First"])
    cache = LayoutCache(db_path, layout_path)

    first = cache.day_layout(MONDAY)
    assert cache.day_layout(MONDAY) is first
    assert cache.days() == ["2025-01-13"]

    layout_config.save_layout(layout_path, {"day_window_start": "09:00"})
    shifted = cache.day_layout(MONDAY)
    assert shifted is not first
    assert shifted.slots[0].top_offset_minutes == 60


def test_cache_reloads_new_snapshot(tmp_path: Path) -> None:
    db_path = tmp_path / "schedule.db"
    layout_path = tmp_path / "layout.json"
    store(db_path, ["First"])
    cache = LayoutCache(db_path, layout_path)
    assert len(cache.day_layout(MONDAY).slots) == 1

    store(db_path, ["First", "Second"])
    slots = cache.day_layout(MONDAY).slots
    assert [slot.event.title for slot in slots] == ["First", "Second"]
    assert {slot.column_count for slot in slots} == {2}


def test_cache_returns_empty_layout_for_unknown_day(tmp_path: Path) -> None:
    db_path = tmp_path / "schedule.db"
    store(db_path, ["First"])
    cache = LayoutCache(db_path, tmp_path / "layout.json")
    empty = cache.day_layout(dt.date(2025, 1, 14))
    assert empty.slots == [] and empty.untimed == []


@pytest.fixture
def server(tmp_path: Path):
    store(tmp_path / "schedule.db", ["First"])
    layout_path = tmp_path / "layout.json"
    layout_config.save_layout(layout_path, {"day_window_start": "09:00"})
    cache = LayoutCache(tmp_path / "schedule.db", layout_path)
    handler = lambda *args, **kwargs: ScheduleHandler(
        *args, directory=tmp_path, cache=cache, **kwargs
    )
    httpd = ThreadingHTTPServer(("127.0.0.1", 0), handler)
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    yield httpd, layout_path
    httpd.shutdown()
    httpd.server_close()


def post_config(httpd, body: bytes, headers: dict | None = None) -> tuple[int, dict]:
    host, port = httpd.server_address
    conn = http.client.HTTPConnection(host, port, timeout=5)
    conn.request("POST", "/api/config", body=body, headers=headers or {})
    response = conn.getresponse()
    payload = json.loads(response.read().decode("utf-8"))
    conn.close()
    return response.status, payload


def test_config_update_saves_object(server) -> None:
    httpd, layout_path = server
    status, payload = post_config(httpd, json.dumps({"day_window_start": "10:00"}).encode("utf-8"))
    assert (status, payload) == (200, {"ok": True})
    assert layout_config.load_layout(layout_path)["day_window_start"] == "10:00"


def test_config_update_rejects_non_object(server) -> None:
    httpd, layout_path = server
    status, payload = post_config(httpd, b"[]")
    assert status == 400
    assert "error" in payload
    assert layout_config.load_layout(layout_path)["day_window_start"] == "09:00"


def test_config_update_rejects_bad_json(server) -> None:
    httpd, layout_path = server
    status, _ = post_config(httpd, b"{not json")
    assert status == 400
    assert layout_config.load_layout(layout_path)["day_window_start"] == "09:00"


def test_config_update_rejects_bad_content_length(server) -> None:
    httpd, layout_path = server
    host, port = httpd.server_address
    conn = http.client.HTTPConnection(host, port, timeout=5)
    conn.putrequest("POST", "/api/config")
    conn.putheader("Content-Length", "abc")
    conn.endheaders()
    response = conn.getresponse()
    assert response.status == 400
    assert "error" in json.loads(response.read().decode("utf-8"))
    conn.close()
    assert layout_config.load_layout(layout_path)["day_window_start"] == "09:00"
