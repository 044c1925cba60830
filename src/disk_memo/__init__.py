from .cache import (
    Invocable,
    MemoizingInvoker,
    PendingWrite,
    ProducerRegistry,
    Store,
    fingerprint,
    normalize_args,
)
from .config import CacheSettings, load_settings
from .errors import (
    CacheError,
    DependencyStale,
    PathNotWritable,
    ProducerNotFound,
    RecordExpired,
    RecordNotFound,
    RecordUnreadable,
    SerializationError,
    WriteFailed,
)
from .models import CacheResult, CacheStatus, Record

__all__ = [
    "CacheError",
    "CacheResult",
    "CacheSettings",
    "CacheStatus",
    "DependencyStale",
    "Invocable",
    "MemoizingInvoker",
    "PathNotWritable",
    "PendingWrite",
    "ProducerNotFound",
    "ProducerRegistry",
    "Record",
    "RecordExpired",
    "RecordNotFound",
    "RecordUnreadable",
    "SerializationError",
    "Store",
    "WriteFailed",
    "fingerprint",
    "load_settings",
    "normalize_args",
]
