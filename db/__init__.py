from .engine import Base  # noqa: F401
from .health_db import SYMPTOMS_KEY, SymptomStore  # noqa: F401
from .repository import BlobStore, MemoryBlobStore, SqlBlobStore  # noqa: F401

__all__ = [
    "Base",
    "BlobStore",
    "MemoryBlobStore",
    "SqlBlobStore",
    "SYMPTOMS_KEY",
    "SymptomStore",
]
