#!/usr/bin/env python3
"""Local server exposing week layouts and layout overrides as JSON."""

from __future__ import annotations

import argparse
import json
import threading
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from urllib.parse import parse_qs, urlparse

import layout_config
from schedule_model import DayLayout, parse_date
from schedule_tool import (
    day_layout_to_dict,
    init_db,
    layout_day,
    load_meta,
    load_schedule,
    week_days,
)


class LayoutCache:
    """Reuse day layouts until the stored snapshot or the layout settings change."""

    def __init__(self, db_path: Path, layout_path: Path):
        self.db_path = db_path
        self.layout_path = layout_path
        self.snapshot_key: tuple | None = None
        self.schedules: dict = {}
        self.layouts: dict = {}
        self.lock = threading.Lock()

    def current_key(self) -> tuple:
        conn = init_db(self.db_path)
        meta = load_meta(conn)
        conn.close()
        settings = layout_config.load_layout(self.layout_path)
        return meta.get("generated_at"), json.dumps(settings, sort_keys=True)

    def refresh(self) -> dict:
        key = self.current_key()
        if key != self.snapshot_key:
            conn = init_db(self.db_path)
            self.schedules = {schedule.date: schedule for schedule in load_schedule(conn)}
            conn.close()
            self.layouts = {}
            self.snapshot_key = key
        return json.loads(key[1])

    def days(self) -> list[str]:
        with self.lock:
            self.refresh()
            return [date.isoformat() for date in sorted(self.schedules)]

    def day_layout(self, date) -> DayLayout:
        with self.lock:
            settings = self.refresh()
            if date not in self.layouts:
                schedule = self.schedules.get(date)
                self.layouts[date] = layout_day(
                    schedule.events if schedule else [], date, settings
                )
            return self.layouts[date]


class ScheduleHandler(SimpleHTTPRequestHandler):
    def __init__(self, *args, directory: Path, cache: LayoutCache, **kwargs):
        self.cache = cache
        super().__init__(*args, directory=str(directory), **kwargs)

    def log_message(self, format: str, *args) -> None:
        return

    def send_json(self, status: int, payload: dict | list) -> None:
        body = json.dumps(payload, indent=2).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def do_GET(self) -> None:
        parsed = urlparse(self.path)
        if parsed.path == "/api/days":
            self.send_json(200, {"days": self.cache.days()})
            return
        if parsed.path == "/api/layout":
            self.handle_layout(parsed.query)
            return
        if parsed.path == "/api/week":
            self.handle_week(parsed.query)
            return
        if parsed.path == "/api/config":
            self.send_json(200, layout_config.load_layout(self.cache.layout_path))
            return
        super().do_GET()

    def do_POST(self) -> None:
        parsed = urlparse(self.path)
        if parsed.path == "/api/config":
            self.handle_config_update()
            return
        self.send_error(404, "Unknown endpoint")

    def query_date(self, query: str):
        params = parse_qs(query)
        return parse_date(params.get("date", [""])[0])

    def handle_layout(self, query: str) -> None:
        date = self.query_date(query)
        if date is None:
            self.send_json(400, {"error": "Expected date=YYYY-MM-DD"})
            return
        self.send_json(200, day_layout_to_dict(self.cache.day_layout(date)))

    def handle_week(self, query: str) -> None:
        date = self.query_date(query)
        if date is None:
            self.send_json(400, {"error": "Expected date=YYYY-MM-DD"})
            return
        days = [day_layout_to_dict(self.cache.day_layout(day)) for day in week_days(date)]
        self.send_json(200, {"days": days})

    def handle_config_update(self) -> None:
        try:
            length = int(self.headers.get("Content-Length", "0"))
        except ValueError:
            self.send_json(400, {"error": "Invalid Content-Length"})
            return
        raw = self.rfile.read(length) if length > 0 else b""
        try:
            payload = json.loads(raw.decode("utf-8")) if raw else {}
        except (json.JSONDecodeError, UnicodeDecodeError):
            self.send_json(400, {"error": "Invalid JSON"})
            return
        if not isinstance(payload, dict):
            self.send_json(400, {"error": "Expected a JSON object"})
            return
        layout_config.save_layout(self.cache.layout_path, payload)
        self.send_json(200, {"ok": True})


def run_server(host: str, port: int, db_path: Path, layout_path: Path, ui_dir: Path) -> None:
    cache = LayoutCache(db_path, layout_path)
    handler = lambda *args, **kwargs: ScheduleHandler(
        *args,
        directory=ui_dir,
        cache=cache,
        **kwargs,
    )
    server = ThreadingHTTPServer((host, port), handler)
    print(f"Schedule server running at http://{host}:{port}")
    server.serve_forever()


def main() -> None:
    parser = argparse.ArgumentParser(description="Run the week layout server.")
    parser.add_argument("--db", type=Path, default=Path("schedule.db"))
    parser.add_argument("--layout", type=Path, default=Path("layout.json"))
    parser.add_argument("--host", default="127.0.0.1")
    parser.add_argument("--port", type=int, default=8787)
    parser.add_argument("--ui-dir", type=Path, default=Path("output"))
    args = parser.parse_args()

    if not args.db.exists():
        raise SystemExit(f"Input DB not found: {args.db}")
    if not args.ui_dir.exists():
        raise SystemExit(f"UI directory not found: {args.ui_dir}")

    run_server(args.host, args.port, args.db, args.layout, args.ui_dir)


if __name__ == "__main__":
    main()
