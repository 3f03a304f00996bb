from datetime import date, datetime
import logging

from db.health_db import SymptomStore
from tools.health_schema import SymptomEntry


logger = logging.getLogger(__name__)


def log_entry(
    store: SymptomStore,
    day: date | datetime | str,
    symptom: str,
    severity: int,
    note: str = "",
    still_experiencing: bool = False,
) -> SymptomEntry:
    """
    Record one symptom occurrence for ``day``.

    Builds a :class:`SymptomEntry` from the form values and appends it to the
    store, which persists the whole log.

    Parameters:
        store: The symptom store to write to.
        day: Calendar day (date, datetime or a date expression such as "yesterday").
        symptom: Symptom label, usually one of ``SYMPTOM_CATALOG``.
        severity: 1 to 10.
        note: Optional free text.
        still_experiencing: Whether the symptom is ongoing.

    Returns:
        SymptomEntry: The entry that was created.

    Raises:
        pydantic.ValidationError: if the values do not form a valid entry.
        ValueError: if ``day`` cannot be read as a date.
    """
    entry = SymptomEntry(
        symptom=symptom,
        severity=severity,
        note=note or "",
        still_experiencing=still_experiencing,
    )

    if store.add(day, entry) is None:
        raise ValueError(f"Could not log entry for day {day!r}")

    logger.info("Logged %s (%s/10)", entry.symptom, entry.severity)
    return entry


def delete_entry(store: SymptomStore, day: date | datetime | str, index: int) -> bool:
    """Remove entry ``index`` of ``day``; a stale reference is a no-op."""

    return store.delete(day, index)
