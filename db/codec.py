"""Wire format for the symptom log.

The log is stored as one UTF-8 JSON object. Each key is the day expressed as
a count of days since 1970-01-01 (so it does not depend on the zone the file
is read in) and each value is the list of entry records for that day::

    {"19997": [{"id": "...", "symptom": "Weight loss", "note": "",
                "stillExperiencing": false, "severity": 4}]}
"""
from __future__ import annotations

import json
from datetime import date, timedelta
from typing import Dict, List, Mapping, Sequence

from pydantic import ValidationError

from tools.health_schema import SymptomEntry

EPOCH = date(1970, 1, 1)


class DecodeFailure(ValueError):
    """A persisted blob exists but cannot be turned back into a log."""


def day_to_key(day: date) -> str:
    return str((day - EPOCH).days)


def key_to_day(key: str) -> date:
    return EPOCH + timedelta(days=int(key))


def encode_log(log: Mapping[date, Sequence[SymptomEntry]]) -> bytes:
    """Serialise ``log`` in ascending day order, skipping empty days."""

    payload = {
        day_to_key(day): [e.model_dump(mode="json", by_alias=True) for e in entries]
        for day, entries in sorted(log.items())
        if entries
    }
    return json.dumps(payload, ensure_ascii=False).encode("utf-8")


def decode_log(blob: bytes) -> Dict[date, List[SymptomEntry]]:
    """Parse a blob written by :func:`encode_log`.

    Raises:
        DecodeFailure: if the bytes are not UTF-8 JSON of the expected shape or
            any entry fails validation.
    """

    try:
        payload = json.loads(blob.decode("utf-8"))
    except (UnicodeDecodeError, ValueError) as exc:
        raise DecodeFailure(f"symptom log is not valid JSON: {exc}") from exc

    if not isinstance(payload, dict):
        raise DecodeFailure(f"expected a JSON object, got {type(payload).__name__}")

    log: Dict[date, List[SymptomEntry]] = {}
    for key, records in payload.items():
        if not isinstance(records, list):
            raise DecodeFailure(f"entries for day {key!r} are not a list")
        try:
            day = key_to_day(key)
            entries = [SymptomEntry.model_validate(r) for r in records]
        except (ValidationError, ValueError, OverflowError) as exc:
            raise DecodeFailure(f"bad record for day {key!r}: {exc}") from exc
        if entries:
            log.setdefault(day, []).extend(entries)
    return log
