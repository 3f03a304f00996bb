"""
Key/value blob persistence used by the symptom store.
"""
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Optional, Protocol

from sqlalchemy.orm import Session, sessionmaker

from db.engine import db_path, get_engine, init_db
from db.models import BlobORM

_engine = None
_SessionLocal: Optional[sessionmaker] = None
_engine_path: Optional[Path] = None


class BlobStore(Protocol):
    """Anything that can hold opaque bytes under a string key."""

    def get_blob(self, key: str) -> Optional[bytes]:
        ...

    def set_blob(self, key: str, value: bytes) -> None:
        ...


@contextmanager
def session_scope(path: Optional[Path] = None):
    """
    Provide a transactional database session for the SQLite file at ``path``.

    When ``path`` is omitted the file is resolved from ``HEALTH_DB_PATH`` or the
    current working directory on every call, so changing either re-binds the
    engine and session factory before the session is handed out. The context
    commits on success, rolls back and re-raises on exception, and always closes
    the session.

    Returns:
        db (Session): A SQLAlchemy Session bound to the active engine.
    """
    global _engine, _SessionLocal, _engine_path

    desired_path = Path(path).expanduser().resolve() if path else db_path()

    if desired_path != _engine_path:
        if _engine is not None:
            _engine.dispose()
        _engine = init_db(get_engine(desired_path))
        _SessionLocal = sessionmaker(bind=_engine, expire_on_commit=False)
        _engine_path = desired_path

    db: Session = _SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


# ---------- stores ---------------------------------------------------

class SqlBlobStore:
    """Blob store kept in a single SQLite table."""

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = path

    def get_blob(self, key: str) -> Optional[bytes]:
        with session_scope(self.path) as db:
            row = db.get(BlobORM, key)
            return bytes(row.value) if row else None

    def set_blob(self, key: str, value: bytes) -> None:
        with session_scope(self.path) as db:
            row = db.get(BlobORM, key)
            if row is None:
                db.add(BlobORM(key=key, value=value))
            else:
                row.value = value


class MemoryBlobStore:
    """In-process blob store; nothing survives the process."""

    def __init__(self, blobs: Optional[Dict[str, bytes]] = None) -> None:
        self.blobs: Dict[str, bytes] = dict(blobs or {})

    def get_blob(self, key: str) -> Optional[bytes]:
        return self.blobs.get(key)

    def set_blob(self, key: str, value: bytes) -> None:
        self.blobs[key] = bytes(value)
