import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from db.repository import MemoryBlobStore, SqlBlobStore


def test_sql_blob_roundtrip(tmp_path, monkeypatch):
    # Use a temporary database for isolation
    monkeypatch.setenv("HEALTH_DB_PATH", str(tmp_path / "health.db"))
    store = SqlBlobStore()

    assert store.get_blob("symptomsByDate") is None

    store.set_blob("symptomsByDate", b"first")
    store.set_blob("symptomsByDate", b"second")
    store.set_blob("other", b"\x00\x01")

    assert store.get_blob("symptomsByDate") == b"second"
    assert store.get_blob("other") == b"\x00\x01"
    assert (tmp_path / "health.db").exists()


def test_sql_blob_explicit_path(tmp_path):
    a = SqlBlobStore(tmp_path / "a.db")
    b = SqlBlobStore(tmp_path / "b.db")

    a.set_blob("k", b"from a")
    assert b.get_blob("k") is None
    assert a.get_blob("k") == b"from a"


def test_memory_blob_store():
    store = MemoryBlobStore({"k": b"v"})
    assert store.get_blob("k") == b"v"
    assert store.get_blob("missing") is None
    store.set_blob("k", bytearray(b"w"))
    assert store.get_blob("k") == b"w"
