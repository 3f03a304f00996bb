"""
SQLAlchemy table backing the key/value blob store.
"""
from datetime import datetime, timezone

from sqlalchemy import (
    Column,
    DateTime,
    LargeBinary,
    String,
)

from db.engine import Base


class BlobORM(Base):
    __tablename__ = "blobs"

    key = Column(String, primary_key=True)
    value = Column(LargeBinary, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
