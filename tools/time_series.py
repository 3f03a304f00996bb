from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, tzinfo
from typing import Iterable, Iterator, List, Mapping, Sequence

import pandas as pd

from tools.health_schema import SymptomEntry, TimeSeriesPoint, normalize_filter, start_of_day

__all__ = ["InvalidRange", "build", "iter_days", "to_frame"]

logger = logging.getLogger(__name__)

DayLike = date | datetime | str


class InvalidRange(ValueError):
    """The requested range starts after it ends."""


def iter_days(start: date, end: date) -> Iterator[date]:
    """Yield every day from ``start`` to ``end`` inclusive."""
    if start > end:
        raise InvalidRange(f"{start.isoformat()} is after {end.isoformat()}")
    day = start
    while True:
        yield day
        if day == end:
            break
        day += timedelta(days=1)


def build(
    log: Mapping[date, Sequence[SymptomEntry]],
    start_date: DayLike,
    end_date: DayLike,
    symptom_filter: Iterable[str] | None = (),
    tz: tzinfo | None = None,
) -> List[TimeSeriesPoint]:
    """
    Turn ``log`` into chart points for every day between two dates.

    Days that have entries contribute one point per entry whose symptom passes
    the filter (all entries when the filter is empty), with the severity as the
    count, in the order the entries were logged. Days with no entries at all
    contribute a zero point per filtered symptom, in filter order, so chart
    lines stay continuous.

    Parameters:
        log: Entries by calendar day, e.g. :attr:`db.health_db.SymptomStore.log`.
        start_date: First day of the range (inclusive).
        end_date: Last day of the range (inclusive).
        symptom_filter: Symptom names to keep. Duplicates are dropped, first
            occurrence wins.
        tz: Zone for turning aware datetimes into days.

    Returns:
        list[TimeSeriesPoint]: Points by ascending day; empty when the range is
        inverted or the dates cannot be read.
    """
    try:
        wanted = normalize_filter(symptom_filter)
        days = list(iter_days(start_of_day(start_date, tz), start_of_day(end_date, tz)))
    except InvalidRange as exc:
        logger.info("Empty time series: %s", exc)
        return []
    except (TypeError, ValueError) as exc:
        logger.warning(
            "Empty time series, unusable input %r..%r %r: %s",
            start_date, end_date, symptom_filter, exc,
        )
        return []

    points: List[TimeSeriesPoint] = []
    for day in days:
        entries = log.get(day)
        if entries:
            points.extend(
                TimeSeriesPoint(symptom=e.symptom, date=day, count=e.severity)
                for e in entries
                if not wanted or e.symptom in wanted
            )
        else:
            points.extend(TimeSeriesPoint(symptom=s, date=day, count=0) for s in wanted)
    return points


def to_frame(points: Sequence[TimeSeriesPoint]) -> pd.DataFrame:
    """Tabulate points for plotting; columns are ``date``, ``symptom``, ``count``."""
    frame = pd.DataFrame.from_records(
        [p.model_dump() for p in points],
        columns=["date", "symptom", "count"],
    )
    frame["date"] = pd.to_datetime(frame["date"])
    return frame
