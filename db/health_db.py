from __future__ import annotations

import logging
from datetime import date, datetime, tzinfo
from typing import Dict, List, Optional, Tuple

from db.codec import DecodeFailure, decode_log, encode_log
from db.repository import BlobStore
from tools.health_schema import SymptomEntry, start_of_day

__all__ = ["SYMPTOMS_KEY", "IndexOutOfRange", "SymptomStore"]

logger = logging.getLogger(__name__)

SYMPTOMS_KEY = "symptomsByDate"


class IndexOutOfRange(IndexError):
    """A delete or replace pointed at an entry that is no longer there."""


class SymptomStore:
    """
    Symptom entries grouped by calendar day, persisted as one blob.

    Every mutation writes the whole log back through ``persistence``. None of the
    public methods raise: bad input and storage failures are logged and reported
    through the return value instead.

    Parameters:
        persistence: Blob store the log is read from and written to.
        key: Blob key the log lives under.
        tz: Zone used to turn aware datetimes into calendar days; defaults to
            :func:`tools.health_schema.local_tz`.
    """

    def __init__(
        self,
        persistence: BlobStore,
        key: str = SYMPTOMS_KEY,
        tz: Optional[tzinfo] = None,
    ) -> None:
        self.persistence = persistence
        self.key = key
        self.tz = tz
        self._log: Dict[date, List[SymptomEntry]] = {}

    # ---------- reads ------------------------------------------------

    @property
    def log(self) -> Dict[date, Tuple[SymptomEntry, ...]]:
        """Copy of the current log, safe to hand to the time-series builder."""
        return {day: tuple(entries) for day, entries in self._log.items()}

    def days(self) -> List[date]:
        """Days with at least one entry, most recent first."""
        return sorted(self._log, reverse=True)

    def entries(self, day: date | datetime | str) -> Tuple[SymptomEntry, ...]:
        normalized = self._normalize(day)
        if normalized is None:
            return ()
        return tuple(self._log.get(normalized, ()))

    def __len__(self) -> int:
        return len(self._log)

    def __contains__(self, day: object) -> bool:
        normalized = self._normalize(day)
        return normalized is not None and normalized in self._log

    # ---------- mutations --------------------------------------------

    def add(self, day: date | datetime | str, entry: SymptomEntry) -> Optional[date]:
        """Append ``entry`` to ``day`` and persist. Returns the normalized day."""
        if not isinstance(entry, SymptomEntry):
            logger.warning("Ignoring add of %s; expected SymptomEntry", type(entry).__name__)
            return None
        normalized = self._normalize(day)
        if normalized is None:
            return None

        self._log.setdefault(normalized, []).append(entry)
        self.save()
        return normalized

    def delete(self, day: date | datetime | str, index: int) -> bool:
        """
        Remove the entry at ``index`` for ``day`` and persist.

        A missing day or an index outside ``0 <= index < len(entries)`` leaves the
        log untouched; the list view may be showing entries that are already gone.
        When the last entry of a day is removed the day disappears from the log.

        Returns:
            bool: True if an entry was removed.
        """
        removed = False
        normalized = self._normalize(day)
        if normalized is not None:
            try:
                self._pop(normalized, index)
                removed = True
            except IndexOutOfRange as exc:
                logger.debug("delete ignored: %s", exc)

        self.save()
        return removed

    def replace(self, day: date | datetime | str, index: int, entry: SymptomEntry) -> bool:
        """Swap the entry at ``index`` for ``entry``; same tolerance as :meth:`delete`."""
        normalized = self._normalize(day)
        if normalized is None or not isinstance(entry, SymptomEntry):
            return False
        try:
            entries = self._slot(normalized, index)
        except IndexOutOfRange as exc:
            logger.debug("replace ignored: %s", exc)
            return False

        entries[index] = entry
        self.save()
        return True

    # ---------- persistence ------------------------------------------

    def load(self) -> bool:
        """
        Replace the in-memory log with the persisted one.

        An absent blob, an unreadable blob and a failing backend all leave the
        store empty.

        Returns:
            bool: True if a persisted log was decoded.
        """
        self._log = {}
        try:
            blob = self.persistence.get_blob(self.key)
        except Exception:
            logger.exception("Failed to read symptom log %r", self.key)
            return False

        if blob is None:
            return False

        try:
            self._log = decode_log(blob)
        except DecodeFailure as exc:
            logger.warning("Discarding unreadable symptom log %r: %s", self.key, exc)
            return False
        return True

    def save(self) -> bool:
        """Write the whole log. Returns False (after logging) if that failed."""
        try:
            self.persistence.set_blob(self.key, encode_log(self._log))
        except Exception:
            logger.exception("Failed to save symptom log %r", self.key)
            return False
        return True

    # ---------- helpers ----------------------------------------------

    def _normalize(self, day: object) -> Optional[date]:
        try:
            return start_of_day(day, self.tz)
        except (TypeError, ValueError) as exc:
            logger.warning("Ignoring unusable day %r: %s", day, exc)
            return None

    def _slot(self, day: date, index: int) -> List[SymptomEntry]:
        entries = self._log.get(day)
        if not entries:
            raise IndexOutOfRange(f"no entries for {day.isoformat()}")
        if not isinstance(index, int) or not 0 <= index < len(entries):
            raise IndexOutOfRange(
                f"index {index} out of range for {day.isoformat()} ({len(entries)} entries)"
            )
        return entries

    def _pop(self, day: date, index: int) -> SymptomEntry:
        entries = self._slot(day, index)
        entry = entries.pop(index)
        if not entries:
            del self._log[day]
        return entry
