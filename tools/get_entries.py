from datetime import date, datetime
from typing import List, Optional, Tuple

from db.health_db import SymptomStore
from tools.health_schema import SymptomEntry, start_of_day


def get_entries(
    store: SymptomStore,
    since: Optional[date | datetime | str] = None,
) -> List[Tuple[date, Tuple[SymptomEntry, ...]]]:
    """Return ``(day, entries)`` pairs, most recent day first, optionally from ``since`` on."""

    floor = start_of_day(since, store.tz) if since is not None else None
    log = store.log
    return [
        (day, log[day])
        for day in store.days()
        if floor is None or day >= floor
    ]


def tool_get_entries(
    store: SymptomStore,
    since: Optional[date | datetime | str] = None,
) -> List[dict]:
    """Compatibility wrapper that returns serialisable dictionaries."""

    return [
        {
            "date": day.isoformat(),
            "entries": [e.model_dump(mode="json", by_alias=True) for e in entries],
        }
        for day, entries in get_entries(store, since=since)
    ]
