#!/usr/bin/env python3
"""Render week timetable PDFs directly from the SQLite database."""

from __future__ import annotations

import argparse
import datetime as dt
import unicodedata
from dataclasses import dataclass
from pathlib import Path

from fpdf import FPDF
from fpdf.enums import XPos, YPos

import layout_config
from schedule_model import DayLayout, event_title, minutes_to_label
from schedule_tool import (
    event_detail,
    hour_marks,
    init_db,
    layout_week,
    load_schedule,
    parse_date_arg,
    time_range_text,
    week_start,
)


@dataclass
class RenderConfig:
    page_size: str
    orientation: str
    margin: float
    header_height: float
    time_col_width: float
    day_header_height: float
    body_font_size: float
    padding: float
    window_start: int
    window_hours: int
    column_gap: float = 0.8


def sanitize_text(value: str | None) -> str:
    if not value:
        return ""
    text = str(value)
    replacements = {
        "\u2013": "-",
        "\u2014": "-",
        "\u2018": "'",
        "\u2019": "'",
        "\u201c": "\"",
        "\u201d": "\"",
        "\u2026": "...",
    }
    for src, dest in replacements.items():
        text = text.replace(src, dest)
    text = unicodedata.normalize("NFKD", text)
    text = text.encode("ascii", "ignore").decode("ascii")
    return " ".join(text.split())


def wrap_text(pdf: FPDF, text: str, max_width: float) -> list[str]:
    words = text.split()
    if not words:
        return []
    lines: list[str] = []
    current = ""
    for word in words:
        candidate = f"{current} {word}".strip()
        if pdf.get_string_width(candidate) <= max_width:
            current = candidate
            continue
        if current:
            lines.append(current)
        if pdf.get_string_width(word) <= max_width:
            current = word
            continue
        chunk = ""
        for char in word:
            if pdf.get_string_width(chunk + char) <= max_width:
                chunk += char
            else:
                if chunk:
                    lines.append(chunk)
                chunk = char
        current = chunk
    if current:
        lines.append(current)
    return lines


def shorten_line(pdf: FPDF, text: str, max_width: float, suffix: str = "...") -> str:
    if pdf.get_string_width(text) <= max_width:
        return text
    trimmed = text
    while trimmed and pdf.get_string_width(trimmed + suffix) > max_width:
        trimmed = trimmed[:-1]
    if not trimmed:
        return suffix
    return trimmed.rstrip() + suffix


def draw_block(
    pdf: FPDF,
    x: float,
    y: float,
    width: float,
    height: float,
    lines: list[str],
    fill_color: tuple[int, int, int] | None,
    text_color: tuple[int, int, int] = (28, 27, 26),
    font_size: float = 6.0,
    padding: float = 1.0,
) -> None:
    if width <= 0 or height <= 0:
        return
    if fill_color:
        pdf.set_fill_color(*fill_color)
        pdf.rect(x, y, width, height, style="DF")
    else:
        pdf.rect(x, y, width, height)
    if not lines:
        return

    pdf.set_font("Helvetica", size=font_size)
    pdf.set_text_color(*text_color)
    line_height = pdf.font_size * 1.2
    max_lines = max(1, int((height - 2 * padding) / line_height))
    text_lines = lines[:max_lines]
    if len(lines) > max_lines:
        text_lines[-1] = shorten_line(pdf, text_lines[-1], width - 2 * padding)
    cursor_y = y + padding
    for line in text_lines:
        pdf.set_xy(x + padding, cursor_y)
        pdf.cell(width - 2 * padding, line_height, line)
        cursor_y += line_height
    pdf.set_text_color(28, 27, 26)


def render_week(
    pdf: FPDF,
    day_layouts: list[DayLayout],
    config: RenderConfig,
    display_options: dict | None = None,
) -> None:
    if not day_layouts:
        return
    display = dict(layout_config.DEFAULT_DISPLAY_OPTIONS)
    if display_options:
        display.update(display_options)

    pdf.add_page()
    pdf.set_auto_page_break(auto=False, margin=0)

    first, last = day_layouts[0].date, day_layouts[-1].date
    pdf.set_font("Helvetica", style="B", size=14)
    pdf.set_xy(config.margin, config.margin)
    pdf.cell(0, 6, "Parliamentary business", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_font("Helvetica", size=9)
    pdf.set_x(config.margin)
    pdf.cell(
        0,
        5,
        f"{first.strftime('%d %b')} - {last.strftime('%d %b %Y')}",
        new_x=XPos.LMARGIN,
        new_y=YPos.NEXT,
    )

    grid_x = config.margin
    grid_y = config.margin + config.header_height
    grid_width = pdf.w - 2 * config.margin
    untimed_height = 18.0 if display.get("show_untimed") else 0.0
    grid_height = pdf.h - config.margin - grid_y - untimed_height
    day_width = (grid_width - config.time_col_width) / len(day_layouts)
    body_y = grid_y + config.day_header_height
    body_height = grid_height - config.day_header_height
    window_minutes = (config.window_hours - 1) * 60
    mm_per_minute = body_height / max(1, window_minutes)
    min_height = layout_config.MIN_EVENT_HEIGHT * mm_per_minute * 0.5

    pdf.set_draw_color(180, 170, 160)
    pdf.set_line_width(0.1)
    header_fill = (236, 230, 219)
    for idx, day_layout in enumerate(day_layouts):
        draw_block(
            pdf,
            grid_x + config.time_col_width + idx * day_width,
            grid_y,
            day_width,
            config.day_header_height,
            [day_layout.date.strftime("%a %d")],
            header_fill,
            font_size=config.body_font_size + 1,
            padding=config.padding,
        )

    pdf.set_font("Helvetica", size=config.body_font_size)
    for hour in hour_marks(config.window_start, config.window_hours):
        line_y = body_y + (hour * 60 - config.window_start) * mm_per_minute
        pdf.line(grid_x, line_y, grid_x + grid_width, line_y)
        pdf.set_xy(grid_x, line_y - 1.5)
        pdf.cell(config.time_col_width - 1, 3, minutes_to_label(hour * 60), align="R")

    for idx, day_layout in enumerate(day_layouts):
        day_x = grid_x + config.time_col_width + idx * day_width
        pdf.line(day_x, body_y, day_x, body_y + body_height)
        for slot in day_layout.slots:
            column_width = day_width / slot.column_count
            top = max(0.0, slot.top_offset_minutes * mm_per_minute)
            height = max(min_height, slot.duration_minutes * mm_per_minute)
            height = min(height, body_height - top)
            event_width = column_width - config.column_gap
            lines: list[str] = []
            if display.get("show_time"):
                lines.append(time_range_text(slot.event))
            lines.extend(
                wrap_text(
                    pdf,
                    sanitize_text(event_title(slot.event)),
                    event_width - 2 * config.padding,
                )
            )
            detail = sanitize_text(event_detail(slot.event, display))
            if detail:
                lines.extend(wrap_text(pdf, detail, event_width - 2 * config.padding))
            draw_block(
                pdf,
                day_x + slot.column_index * column_width + config.column_gap / 2,
                body_y + top,
                event_width,
                height,
                lines,
                layout_config.event_color(slot.event),
                text_color=(255, 255, 255),
                font_size=config.body_font_size,
                padding=config.padding,
            )

        if display.get("show_untimed") and day_layout.untimed:
            lines = [f"{len(day_layout.untimed)} unscheduled"]
            for event in day_layout.untimed:
                lines.extend(
                    wrap_text(
                        pdf,
                        sanitize_text(event_title(event)),
                        day_width - 2 * config.padding,
                    )
                )
            draw_block(
                pdf,
                day_x,
                body_y + body_height,
                day_width,
                untimed_height,
                lines,
                (250, 248, 243),
                font_size=config.body_font_size,
                padding=config.padding,
            )


def render_pdfs(
    db_path: Path,
    outdir: Path,
    config: RenderConfig,
    layout_path: Path,
    week: dt.date | None = None,
) -> list[Path]:
    conn = init_db(db_path)
    schedules = load_schedule(conn)
    conn.close()
    settings = layout_config.load_layout(layout_path)
    display_options, _ = layout_config.get_display_settings(settings)

    if week is not None:
        weeks = [week_start(week)]
    else:
        weeks = sorted({week_start(schedule.date) for schedule in schedules})

    outdir.mkdir(parents=True, exist_ok=True)
    outputs: list[Path] = []
    for monday in weeks:
        day_layouts = layout_week(schedules, monday, settings)
        if not any(day.slots or day.untimed for day in day_layouts):
            continue
        pdf = FPDF(
            orientation=config.orientation[0].upper(),
            unit="mm",
            format=config.page_size,
        )
        render_week(pdf, day_layouts, config, display_options)
        output_path = outdir / f"week-{monday.isoformat()}.pdf"
        pdf.output(str(output_path))
        outputs.append(output_path)
    return outputs


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Render week timetable PDFs directly from schedule.db."
    )
    parser.add_argument("--db", type=Path, default=Path("schedule.db"))
    parser.add_argument("--outdir", type=Path, default=Path("output-pdf"))
    parser.add_argument("--week", type=parse_date_arg, help="Any date in the week")
    parser.add_argument("--page-size", default="A4")
    parser.add_argument(
        "--orientation", choices=["portrait", "landscape"], default="landscape"
    )
    parser.add_argument("--font-size", type=float, default=5.5)
    parser.add_argument(
        "--layout",
        type=Path,
        default=Path("layout.json"),
        help="Layout overrides JSON",
    )
    args = parser.parse_args()

    if not args.db.exists():
        raise SystemExit(f"Input DB not found: {args.db}")

    settings = layout_config.load_layout(args.layout)
    window_start, _, _ = layout_config.get_grid_settings(settings)
    config = RenderConfig(
        page_size=args.page_size,
        orientation=args.orientation,
        margin=8.0,
        header_height=16.0,
        time_col_width=12.0,
        day_header_height=7.0,
        body_font_size=float(args.font_size),
        padding=1.0,
        window_start=window_start,
        window_hours=layout_config.DEFAULT_DAY_WINDOW_HOURS,
    )

    outputs = render_pdfs(args.db, args.outdir, config, args.layout, week=args.week)
    if outputs:
        print(f"Rendered {len(outputs)} PDFs in {args.outdir}")
    else:
        print("No events found to render.")


if __name__ == "__main__":
    main()
