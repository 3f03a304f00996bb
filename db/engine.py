"""SQLAlchemy engine utilities."""

import os
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""

    pass


def db_path() -> Path:
    """Return ``HEALTH_DB_PATH`` if set, else ``health.db`` in the working directory."""

    env_path = os.environ.get("HEALTH_DB_PATH")
    if env_path:
        return Path(env_path).expanduser().resolve()
    return (Path.cwd() / "health.db").resolve()


def get_engine(path: Path | None = None) -> Engine:
    """Return an engine bound to the SQLite file at ``path`` (default: :func:`db_path`)."""

    url = f"sqlite:///{path or db_path()}"
    return create_engine(
        url,
        connect_args={"check_same_thread": False},
        echo=False,
    )


_initialized_paths: set[Path] = set()


def init_db(engine: Engine | None = None) -> Engine:
    """Initialize database tables if they haven't been created."""

    if engine is None:
        engine = get_engine()

    path = Path(engine.url.database or "")
    if path not in _initialized_paths:
        from db import models  # noqa: F401 – side-effect import

        Base.metadata.create_all(engine)
        _initialized_paths.add(path)

    return engine
