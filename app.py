"""Symptom tracker UI: log symptoms by day, browse them, chart them over time."""

from __future__ import annotations

import logging
import os
from datetime import date, datetime
from typing import Optional, Sequence, Tuple

import gradio as gr
import pandas as pd
from dateutil.relativedelta import relativedelta
from pydantic import ValidationError

from db import SqlBlobStore, SymptomStore
from tools.get_entries import get_entries
from tools.health_schema import SYMPTOM_CATALOG, SymptomEntry, local_tz, start_of_day
from tools.log_entry import delete_entry, log_entry
from tools.time_series import build, to_frame


logger = logging.getLogger(__name__)

NO_DATA_TEXT = "No data available for the selected criteria"
EMPTY_LIST_TEXT = "_No symptoms logged yet._"


def create_store() -> SymptomStore:
    """Open the SQLite-backed store and load whatever was saved before."""

    store = SymptomStore(SqlBlobStore())
    if store.load():
        logger.info("Loaded symptoms for %d day(s)", len(store))
    return store


def today(store: Optional[SymptomStore] = None) -> date:
    """Current calendar day in the store zone, else in the local calendar zone."""

    tz = store.tz if store is not None else None
    return datetime.now(tz or local_tz()).date()


def _parse_day(value: Optional[str | date | datetime], store: SymptomStore) -> date:
    """Parse a date box value; blank means today. Raises ``ValueError``."""

    if value is None or (isinstance(value, str) and not value.strip()):
        return today(store)
    try:
        return start_of_day(value, store.tz)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid date: {value!r}") from exc


# ---------------------------------------------------------------------------
# List view


def format_day(day: date) -> str:
    """Medium-style date header, e.g. ``Oct 3, 2024``."""

    return f"{day:%b} {day.day}, {day.year}"


def format_entry(number: int, entry: SymptomEntry) -> str:
    lines = [
        f"{number}. **{entry.symptom}**",
        f"   Still experiencing: {'Yes' if entry.still_experiencing else 'No'}",
        f"   Severity: {entry.severity}/10",
    ]
    if entry.note:
        lines.append(f"   Note: {entry.note}")
    return "  \n".join(lines)


def render_entries(store: SymptomStore) -> str:
    """Markdown list of every day, newest first, entries numbered from 1."""

    sections = []
    for day, entries in get_entries(store):
        body = "\n".join(format_entry(i, e) for i, e in enumerate(entries, start=1))
        sections.append(f"### {format_day(day)}\n{body}")
    return "\n\n".join(sections) or EMPTY_LIST_TEXT


def add_symptom(
    store: SymptomStore,
    day: Optional[str],
    symptom: Optional[str],
    severity: int,
    note: str,
    still_experiencing: bool,
) -> Tuple[str, str]:
    """Save handler. Returns ``(status message, refreshed list)``."""

    if not symptom:
        return "Select a symptom first.", render_entries(store)
    try:
        when = _parse_day(day, store)
        entry = log_entry(
            store,
            when,
            symptom=symptom,
            severity=int(severity),
            note=note or "",
            still_experiencing=bool(still_experiencing),
        )
    except ValidationError as exc:
        logger.info("Rejected symptom entry: %s", exc)
        return f"Could not save: {exc.errors()[0]['msg']}", render_entries(store)
    except ValueError as exc:
        return str(exc), render_entries(store)

    return (
        f"Logged: {entry.symptom} ({entry.severity}/10) on {format_day(when)}",
        render_entries(store),
    )


def remove_symptom(store: SymptomStore, day: Optional[str], number: Optional[float]) -> Tuple[str, str]:
    """Delete handler; ``number`` is the 1-based position shown in the list."""

    try:
        when = _parse_day(day, store)
    except ValueError as exc:
        return str(exc), render_entries(store)

    index = int(number) - 1 if number is not None else -1
    if delete_entry(store, when, index):
        message = f"Deleted entry {index + 1} on {format_day(when)}"
    else:
        message = f"Nothing to delete at entry {index + 1} on {format_day(when)}"
    return message, render_entries(store)


# ---------------------------------------------------------------------------
# Analytics


def default_range(
    current: Optional[date] = None,
    store: Optional[SymptomStore] = None,
) -> Tuple[date, date]:
    """One month back from ``current`` (default: today) through ``current``."""

    current = current or today(store)
    return current - relativedelta(months=1), current


def chart_data(
    store: SymptomStore,
    start: Optional[str],
    end: Optional[str],
    symptoms: Optional[Sequence[str]],
) -> Tuple[pd.DataFrame, str]:
    """Analytics handler. Returns ``(points frame, status message)``."""

    try:
        start_day = _parse_day(start, store)
        end_day = _parse_day(end, store)
    except ValueError as exc:
        return to_frame([]), str(exc)

    points = build(store.log, start_day, end_day, list(symptoms or []), tz=store.tz)
    if not points:
        return to_frame([]), NO_DATA_TEXT
    days = {p.date for p in points}
    return to_frame(points), f"{len(points)} point(s) over {len(days)} day(s)"


# ---------------------------------------------------------------------------
# Gradio UI


def build_ui(store: SymptomStore) -> gr.Blocks:
    start, end = default_range(store=store)

    with gr.Blocks(title="Symptom Tracker") as demo:
        with gr.Tab("Symptom Tracker"):
            day_box = gr.Textbox(label="Date", value=today(store).isoformat(),
                                 placeholder="2024-10-03, yesterday, …")
            symptom_box = gr.Dropdown(choices=list(SYMPTOM_CATALOG), label="Symptom")
            still_box = gr.Checkbox(label="Are you still experiencing this symptom?")
            severity_box = gr.Slider(1, 10, value=1, step=1, label="Severity")
            note_box = gr.Textbox(label="Note", placeholder="Enter a note about the symptom (optional)")
            save_btn = gr.Button("Save Symptom")
            status_box = gr.Markdown()

            with gr.Row():
                delete_num = gr.Number(label="Entry #", precision=0, minimum=1)
                delete_btn = gr.Button("Delete entry for date")

            entries_box = gr.Markdown(render_entries(store))

            save_btn.click(
                lambda d, s, sev, n, still: add_symptom(store, d, s, sev, n, still),
                inputs=[day_box, symptom_box, severity_box, note_box, still_box],
                outputs=[status_box, entries_box],
            )
            delete_btn.click(
                lambda d, num: remove_symptom(store, d, num),
                inputs=[day_box, delete_num],
                outputs=[status_box, entries_box],
            )

        with gr.Tab("Analytics"):
            with gr.Row():
                start_box = gr.Textbox(label="Start Date", value=start.isoformat())
                end_box = gr.Textbox(label="End Date", value=end.isoformat())
            filter_box = gr.Dropdown(
                choices=list(SYMPTOM_CATALOG), multiselect=True, label="Select Symptoms"
            )
            show_btn = gr.Button("Show")
            chart_status = gr.Markdown()
            chart = gr.LinePlot(x="date", y="count", color="symptom", title="Symptom Analytics")

            show_btn.click(
                lambda s, e, f: chart_data(store, s, e, f),
                inputs=[start_box, end_box, filter_box],
                outputs=[chart, chart_status],
            )

    return demo


if __name__ == "__main__":
    logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
    build_ui(create_store()).launch()
