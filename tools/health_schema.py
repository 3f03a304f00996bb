from __future__ import annotations

import logging
import os
import re
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Iterable, Tuple
from uuid import uuid4
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import dateparser
from dateutil.parser import parse
from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__ = [
    "SYMPTOM_CATALOG",
    "SymptomEntry",
    "TimeSeriesPoint",
    "local_tz",
    "natural_language_to_datetime",
    "normalize_filter",
    "start_of_day",
]

logger = logging.getLogger(__name__)


SYMPTOM_CATALOG: Tuple[str, ...] = (
    "Pelvic and/or abdominal pain",
    "Increased frequency and/or urgency to pee",
    "Feelings of increased abdominal size or bloating",
    "Able to feel a lump in the abdomen",
    "Difficulty eating and/or feeling full quickly",
    "Increased fatigue",
    "Weight loss",
    "Menstrual/vaginal discharge irregularities or bleeding after menopause",
    "Pain and/or bleeding associated with intercourse",
    "Other (e.g., leg swelling, difficulty breathing, back pain)",
)


# ``date`` doubles as a field name on TimeSeriesPoint.
_Date = date


def local_tz() -> tzinfo:
    """Return the zone that defines the user's calendar days.

    ``HEALTH_TZ`` wins when it names a valid IANA zone; otherwise the system
    local zone is used.
    """
    name = os.getenv("HEALTH_TZ")
    if name:
        try:
            return ZoneInfo(name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning("Unknown HEALTH_TZ %r; using the system zone.", name)
    return datetime.now().astimezone().tzinfo


def natural_language_to_datetime(text: str, tz: tzinfo | None = None) -> datetime:
    """Convert a date expression to an aware datetime in the local zone.

    ISO-like timestamps are parsed with dateutil, a handful of relative
    phrases are resolved against "now", and anything else goes through
    dateparser. Raises ``ValueError`` when nothing matches.
    """
    tz = tz or local_tz()

    match = re.search(r"\d{4}-\d{2}-\d{2}([ T]\d{2}:\d{2})?", text)
    if match:
        dt = parse(match.group(0))
    else:
        t = text.strip().lower()
        now = datetime.now(tz)
        today = now.date()
        if "this morning" in t:
            dt = datetime.combine(today, time(8, 0), tzinfo=tz)
        elif "this afternoon" in t:
            dt = datetime.combine(today, time(15, 0), tzinfo=tz)
        elif "tonight" in t or "this evening" in t:
            dt = datetime.combine(today, time(20, 0), tzinfo=tz)
        elif "last night" in t:
            dt = datetime.combine(today - timedelta(days=1), time(22, 0), tzinfo=tz)
        elif "yesterday" in t:
            dt = datetime.combine(today - timedelta(days=1), time(12, 0), tzinfo=tz)
        elif t in ("now", "today"):
            dt = now
        else:
            dt = dateparser.parse(t, settings={"RETURN_AS_TIMEZONE_AWARE": False})
            if dt is None:
                raise ValueError(f"Unrecognised date: {text!r}")

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=tz)
    return dt.astimezone(tz)


def start_of_day(value: date | datetime | str, tz: tzinfo | None = None) -> date:
    """Truncate ``value`` to the calendar day it falls on locally."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.date()
        return value.astimezone(tz or local_tz()).date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        return natural_language_to_datetime(value, tz).date()
    raise TypeError(f"Cannot use {type(value).__name__} as a calendar day")


def normalize_filter(symptoms: Iterable[str] | None) -> Tuple[str, ...]:
    """De-duplicate symptom names, keeping the first occurrence order."""
    if not symptoms:
        return ()
    if isinstance(symptoms, str):
        symptoms = [symptoms]
    names = tuple(dict.fromkeys(symptoms))
    for name in names:
        if not isinstance(name, str):
            raise TypeError(f"Symptom names must be strings, got {type(name).__name__}")
    return names


class SymptomEntry(BaseModel):
    """One logged occurrence of a symptom."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    symptom: str
    note: str = ""
    still_experiencing: bool = Field(default=False, alias="stillExperiencing")
    severity: int = Field(ge=1, le=10)

    @field_validator("symptom")
    def _check_symptom(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("symptom must not be blank")
        return v

    @field_validator("note", mode="before")
    def _parse_note(cls, v: str | None) -> str:
        return "" if v is None else v

    @property
    def in_catalog(self) -> bool:
        return self.symptom in SYMPTOM_CATALOG


class TimeSeriesPoint(BaseModel):
    """A single chart sample: how severe ``symptom`` was on ``date``."""

    model_config = ConfigDict(frozen=True)

    symptom: str
    date: _Date
    count: int
