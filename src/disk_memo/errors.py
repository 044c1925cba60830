"""
Error taxonomy for the cache layer.

Each error carries the `status` string that `Store.get` reports for it, so
internal failures map onto a result status without a lookup table.
"""

from __future__ import annotations


class CacheError(Exception):
    status: str = "error"


class PathNotWritable(CacheError):
    status = "path_not_writable"


class RecordNotFound(CacheError):
    status = "not_cached"


class RecordUnreadable(CacheError):
    status = "open_error"


class SerializationError(RecordUnreadable):
    pass


class RecordExpired(CacheError):
    status = "expired"


class DependencyStale(CacheError):
    status = "dependency_stale"


class WriteFailed(CacheError):
    status = "write_failed"


class ProducerNotFound(KeyError):
    """Raised by the registry when a subject name has no producer."""
