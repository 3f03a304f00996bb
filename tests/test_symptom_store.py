import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

import pytest

from db.codec import decode_log, encode_log
from db.health_db import SYMPTOMS_KEY, SymptomStore
from db.repository import MemoryBlobStore, SqlBlobStore
from tools.health_schema import SymptomEntry

D1 = date(2024, 9, 26)
D2 = date(2024, 9, 27)


class ExplodingBlobStore:
    """Persistence that fails on every call."""

    def __init__(self):
        self.writes = 0

    def get_blob(self, key):
        raise OSError("disk on fire")

    def set_blob(self, key, value):
        self.writes += 1
        raise OSError("disk on fire")


def entry(symptom="Increased fatigue", severity=5, **kw):
    return SymptomEntry(symptom=symptom, severity=severity, **kw)


@pytest.fixture()
def blobs():
    return MemoryBlobStore()


@pytest.fixture()
def store(blobs):
    return SymptomStore(blobs, tz=ZoneInfo("UTC"))


def test_add_appends_in_order_and_persists(store, blobs):
    a, b = entry(severity=2), entry("Weight loss", 7)
    assert store.add(datetime(2024, 9, 26, 18, 30), a) == D1
    assert store.add(D1, b) == D1

    assert store.entries(D1) == (a, b)
    assert store.log == {D1: (a, b)}
    assert decode_log(blobs.get_blob(SYMPTOMS_KEY)) == {D1: [a, b]}


def test_add_normalizes_aware_datetimes_in_store_zone(blobs):
    store = SymptomStore(blobs, tz=ZoneInfo("America/New_York"))
    late = datetime(2024, 9, 27, 2, 0, tzinfo=timezone.utc)
    assert store.add(late, entry()) == D1
    assert D1 in store


def test_add_ignores_bad_input(store, blobs):
    assert store.add(12345, entry()) is None
    assert store.add(D1, {"symptom": "x", "severity": 2}) is None
    assert len(store) == 0
    assert blobs.get_blob(SYMPTOMS_KEY) is None


def test_delete_removes_entry(store):
    a, b = entry(severity=1), entry(severity=2)
    store.add(D1, a)
    store.add(D1, b)

    assert store.delete(D1, 0) is True
    assert store.entries(D1) == (b,)


def test_delete_last_entry_drops_day(store, blobs):
    store.add(D1, entry())
    store.add(D2, entry())

    assert store.delete(D1, 0) is True
    assert D1 not in store
    assert D1 not in store.log
    assert list(decode_log(blobs.get_blob(SYMPTOMS_KEY))) == [D2]


@pytest.mark.parametrize("day, index", [(D1, 1), (D1, -1), (D2, 0), (D1, 99)])
def test_delete_out_of_range_is_noop(store, day, index):
    store.add(D1, entry())
    before = store.log

    assert store.delete(day, index) is False
    assert store.log == before


def test_delete_with_unusable_day_is_noop(store):
    store.add(D1, entry())
    assert store.delete("qwxzv", 0) is False
    assert len(store) == 1


def test_replace_swaps_whole_record(store):
    original = entry(severity=3)
    store.add(D1, original)
    updated = original.model_copy(update={"severity": 8, "still_experiencing": True})

    assert store.replace(D1, 0, updated) is True
    assert store.entries(D1) == (updated,)
    assert store.replace(D1, 5, updated) is False
    assert store.replace(D2, 0, updated) is False


def test_days_most_recent_first(store):
    store.add(D1, entry())
    store.add(date(2024, 1, 1), entry())
    store.add(D2, entry())
    assert store.days() == [D2, D1, date(2024, 1, 1)]


def test_log_is_a_copy(store):
    store.add(D1, entry())
    snapshot = store.log
    snapshot.pop(D1)
    assert D1 in store


def test_save_then_load_roundtrip(blobs):
    first = SymptomStore(blobs)
    for offset, sev in enumerate([1, 4, 10]):
        first.add(date(2024, 3, 1 + offset), entry(severity=sev, note=f"n{offset}"))
    first.add(date(2024, 3, 1), entry("Weight loss", 6, still_experiencing=True))
    assert first.save() is True

    second = SymptomStore(blobs)
    assert second.load() is True
    assert second.log == first.log


def test_load_without_blob_is_empty(store):
    store.add(D1, entry())
    fresh = SymptomStore(MemoryBlobStore())
    assert fresh.load() is False
    assert len(fresh) == 0


@pytest.mark.parametrize(
    "blob",
    [
        b"\xff\xfe not utf-8",
        b"not json",
        b"[1, 2, 3]",
        b'{"19992": "nope"}',
        b'{"not-a-number": []}',
        b'{"19992": [{"symptom": "Weight loss", "severity": 42}]}',
    ],
)
def test_load_undecodable_blob_is_empty(blob):
    store = SymptomStore(MemoryBlobStore({SYMPTOMS_KEY: blob}))
    store._log = {D1: [entry()]}

    assert store.load() is False
    assert store.log == {}


def test_persistence_failures_are_swallowed():
    backend = ExplodingBlobStore()
    store = SymptomStore(backend)

    assert store.load() is False
    assert store.add(D1, entry()) == D1
    assert store.delete(D1, 0) is True
    assert store.save() is False
    assert backend.writes == 3


def test_sqlite_backed_store_survives_restart(tmp_path):
    path = tmp_path / "health.db"
    a = entry("Weight loss", 4)
    SymptomStore(SqlBlobStore(path)).add(D1, a)

    reopened = SymptomStore(SqlBlobStore(path))
    assert reopened.load() is True
    assert reopened.entries(D1) == (a,)


def test_wire_format_uses_epoch_day_keys_and_camel_case():
    e = entry("Weight loss", 4, id="fixed-id")
    blob = encode_log({date(1970, 1, 2): [e], D1: []})
    assert blob == (
        b'{"1": [{"id": "fixed-id", "symptom": "Weight loss", "note": "", '
        b'"stillExperiencing": false, "severity": 4}]}'
    )


class CountingBlobStore(MemoryBlobStore):
    """Memory store that counts writes."""

    def __init__(self):
        super().__init__()
        self.writes = 0

    def set_blob(self, key, value):
        self.writes += 1
        super().set_blob(key, value)


def test_delete_that_removes_nothing_still_persists():
    backend = CountingBlobStore()
    store = SymptomStore(backend)
    store.add(D1, entry())
    assert backend.writes == 1

    assert store.delete(D2, 0) is False
    assert backend.writes == 2
    assert store.delete(D1, 99) is False
    assert backend.writes == 3
    assert len(decode_log(backend.get_blob(SYMPTOMS_KEY))[D1]) == 1
