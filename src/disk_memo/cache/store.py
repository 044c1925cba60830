from __future__ import annotations

import logging
import os
import tempfile
import time
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import fasteners

from disk_memo.cache.codec import SerializerName, decode_record, encode_record
from disk_memo.cache.fingerprint import check_relative_name
from disk_memo.config import CacheSettings, ensure_cache_dir
from disk_memo.errors import (
    CacheError,
    DependencyStale,
    RecordExpired,
    RecordNotFound,
    RecordUnreadable,
    SerializationError,
    WriteFailed,
)
from disk_memo.models.record import CacheResult, Record
from disk_memo.utils.hashing import stable_sha256
from disk_memo.utils.retry import RetryConfig, fs_retry

logger = logging.getLogger(__name__)

RECORD_SUFFIX = ".cache"
LOCK_DIR = ".locks"
# Each key hashes onto one of 16**2 lock files.
LOCK_STRIPE_HEX_CHARS = 2


def _as_key_list(keys: str | Iterable[str] | None) -> list[str]:
    if keys is None:
        return []
    if isinstance(keys, str):
        return [keys]
    return [str(k) for k in keys]


class PendingWrite:
    """
    Metadata for a record that has not been written yet.

        store.pending("nav_links", ttl=300).set_dependencies("nav_title").write(links)
    """

    def __init__(self, store: "Store", key: str, ttl: float | None = None) -> None:
        self._store = store
        self.key = key
        self.ttl = ttl
        self._dependencies: list[str] = []

    def set_dependencies(self, dependencies: str | Iterable[str] | None) -> "PendingWrite":
        self._dependencies = _as_key_list(dependencies)
        return self

    def add_dependencies(self, dependencies: str | Iterable[str] | None) -> "PendingWrite":
        self._dependencies.extend(_as_key_list(dependencies))
        return self

    def get_dependencies(self) -> list[str]:
        return list(self._dependencies)

    def write(self, contents: Any) -> bool:
        return self._store.write(contents, self.key, self.ttl, self._dependencies)


class Store:
    """
    One file per key at `<root>/<key>.cache`. Reads hold a shared lock and
    writes an exclusive one. Locks are striped: every key maps to one of 256
    lock files under `<root>/.locks`, chosen by the hash of the key.

    Only construction raises (missing root), apart from ValueError for a
    malformed key. Every per-call failure is reported as a `get` status or
    logged by `write`/`delete*`.
    """

    def __init__(
        self,
        root: Path | str,
        *,
        default_expires: float | None = None,
        serializer: SerializerName = "pickle",
        lock_timeout: float | None = None,
        file_mode: int = 0o664,
        retry: RetryConfig | None = None,
    ) -> None:
        self.root = ensure_cache_dir(Path(root))
        self.default_expires = default_expires
        self.serializer = serializer
        self.lock_timeout = lock_timeout
        self.file_mode = file_mode
        self._replace = fs_retry(retry or RetryConfig())(os.replace)

    @classmethod
    def from_settings(cls, settings: CacheSettings) -> "Store":
        return cls(
            settings.cache_dir,
            default_expires=settings.cache_default_expires or None,
            serializer=settings.serializer,
            lock_timeout=settings.lock_timeout_seconds,
            file_mode=settings.file_mode,
        )

    # -- paths -------------------------------------------------------------

    def path_for(self, key: str) -> Path:
        check_relative_name(key, "key")
        return self.root / f"{key}{RECORD_SUFFIX}"

    def lock_path_for(self, key: str) -> Path:
        stripe = stable_sha256(key)[:LOCK_STRIPE_HEX_CHARS]
        return self.root / LOCK_DIR / f"{stripe}.lock"

    def _lock_for(self, key: str) -> fasteners.InterProcessReaderWriterLock:
        return fasteners.InterProcessReaderWriterLock(str(self.lock_path_for(key)))

    def _subdir(self, subdir: str) -> Path:
        if not subdir:
            return self.root
        check_relative_name(subdir, "subdir")
        return self.root / subdir

    def _root_writable(self) -> bool:
        return self.root.is_dir() and os.access(self.root, os.W_OK)

    def _key_of(self, path: Path) -> str:
        return path.relative_to(self.root).as_posix()[: -len(RECORD_SUFFIX)]

    # -- read --------------------------------------------------------------

    def get(self, key: str, use_expiry: bool = True) -> CacheResult:
        """
        Look up a record. Filesystem faults come back as the result status and
        never raise.

        Raises ValueError for an empty, absolute or `..` key. That is a caller
        bug, not a cache fault.
        """
        if not self._root_writable():
            return CacheResult(None, "path_not_writable")

        path = self.path_for(key)
        if not path.exists():
            return CacheResult(None, "not_cached")

        try:
            record = self._read(key, path)
            if use_expiry and record.is_expired():
                raise RecordExpired(f"expired at {record.expires_at}")
            self._check_dependencies(path, record)
        except (RecordExpired, DependencyStale) as e:
            logger.debug("cache invalid key=%s status=%s reason=%s", key, e.status, e)
            self.delete(key)
            return CacheResult(None, e.status)
        except RecordUnreadable as e:
            logger.warning("cache unreadable key=%s error=%s", key, e)
            return CacheResult(None, e.status)
        except CacheError as e:
            return CacheResult(None, e.status)

        logger.debug("cache hit key=%s created_at=%s", key, record.created_at)
        return CacheResult(record.contents, "cached", record)

    def _read(self, key: str, path: Path) -> Record:
        lock = self._lock_for(key)
        try:
            acquired = lock.acquire_read_lock(timeout=self.lock_timeout)
        except OSError as e:
            raise RecordUnreadable(f"cannot open lock for {path}: {e}") from e
        if not acquired:
            raise RecordUnreadable(f"timed out waiting for read lock on {path}")
        try:
            with path.open("rb") as f:
                data = f.read()
        except FileNotFoundError as e:
            raise RecordNotFound(str(path)) from e
        except OSError as e:
            raise RecordUnreadable(f"cache-file can't be opened: {path}: {e}") from e
        finally:
            lock.release_read_lock()
        return decode_record(data, self.serializer)

    def _check_dependencies(self, path: Path, record: Record) -> None:
        if not record.dependencies:
            return
        try:
            own_mtime = path.stat().st_mtime_ns
        except FileNotFoundError as e:
            raise RecordNotFound(str(path)) from e
        for dep in record.dependencies:
            dep_mtime = self._mtime_of(dep)
            if dep_mtime is None:
                raise DependencyStale(f"dependency missing: {dep}")
            if dep_mtime > own_mtime:
                raise DependencyStale(f"dependency newer than record: {dep}")

    def _mtime_of(self, key: str) -> int | None:
        try:
            return self.path_for(key).stat().st_mtime_ns
        except (OSError, ValueError):
            return None

    # -- write -------------------------------------------------------------

    def pending(self, key: str, ttl: float | None = None) -> PendingWrite:
        return PendingWrite(self, key, ttl)

    def write(
        self,
        contents: Any,
        key: str,
        ttl: float | None = None,
        dependencies: str | Iterable[str] | None = (),
    ) -> bool:
        """
        Best-effort write. Returns False (and logs) instead of raising so a
        failed cache write never breaks the caller's computation.
        """
        if not self._root_writable():
            logger.debug("cache write skipped key=%s reason=path_not_writable root=%s", key, self.root)
            return False
        try:
            path = self._write(contents, key, ttl, _as_key_list(dependencies))
        except WriteFailed as e:
            logger.error("cache write failed key=%s error=%s", key, e)
            return False
        logger.debug("cache written path=%s", path)
        return True

    def _expires_at(self, ttl: float | None, now: float) -> float | None:
        if ttl:
            return now + ttl
        if self.default_expires:
            return now + self.default_expires
        return None

    def _write(self, contents: Any, key: str, ttl: float | None, dependencies: list[str]) -> Path:
        try:
            path = self.path_for(key)
        except ValueError as e:
            raise WriteFailed(str(e)) from e

        now = time.time()
        record = Record(
            contents=contents,
            created_at=now,
            expires_at=self._expires_at(ttl, now),
            dependencies=dependencies,
        )
        try:
            data = encode_record(record, self.serializer)
        except SerializationError as e:
            raise WriteFailed(str(e)) from e

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise WriteFailed(f"cannot create {path.parent}: {e}") from e

        lock = self._lock_for(key)
        try:
            acquired = lock.acquire_write_lock(timeout=self.lock_timeout)
        except OSError as e:
            raise WriteFailed(f"cannot open lock for {path}: {e}") from e
        if not acquired:
            raise WriteFailed(f"unable to secure a file lock for {path}")
        try:
            self._commit(path, data)
        finally:
            lock.release_write_lock()

        try:
            os.chmod(path, self.file_mode)
        except OSError as e:
            logger.debug("cache chmod failed path=%s error=%s", path, e)
        return path

    def _commit(self, path: Path, data: bytes) -> None:
        # Temp file + rename: the record path only ever holds a complete envelope.
        try:
            fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        except OSError as e:
            raise WriteFailed(f"unable to write cache file {path}: {e}") from e
        tmp = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            self._replace(tmp, path)
        except OSError as e:
            try:
                tmp.unlink(missing_ok=True)
            except OSError:
                logger.debug("cache temp cleanup failed path=%s", tmp)
            raise WriteFailed(f"unable to write cache file {path}: {e}") from e

    # -- delete ------------------------------------------------------------

    def delete(self, key: str) -> None:
        try:
            path = self.path_for(key)
        except ValueError as e:
            logger.error("cache delete rejected key=%r error=%s", key, e)
            return
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.error("cache delete failed path=%s error=%s", path, e)

    def keys(self, subdir: str = "") -> list[str]:
        base = self._subdir(subdir)
        if not base.is_dir():
            return []
        out: list[str] = []
        for p in base.rglob(f"*{RECORD_SUFFIX}"):
            if LOCK_DIR in p.relative_to(self.root).parts or not p.is_file():
                continue
            out.append(self._key_of(p))
        return sorted(out)

    def delete_group(self, group: str | None, *, prefix_only: bool = False) -> int:
        """
        Delete every record whose key contains `group` (substring match, so
        "nav_" also removes "main_nav_x"). `prefix_only` narrows it to keys
        starting with `group`.
        """
        if not group:
            return 0
        removed = 0
        for key in self.keys():
            matched = key.startswith(group) if prefix_only else group in key
            if not matched:
                continue
            self.delete(key)
            removed += 1
        logger.debug("cache group deleted group=%s removed=%s", group, removed)
        return removed

    def delete_all(self, subdir: str = "") -> int:
        base = self._subdir(subdir)
        if not base.exists():
            return 0
        removed = 0
        dirs: list[Path] = []
        for p in list(base.rglob("*")):
            if LOCK_DIR in p.relative_to(self.root).parts:
                continue
            if p.is_dir():
                dirs.append(p)
                continue
            try:
                p.unlink()
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.error("cache delete failed path=%s error=%s", p, e)
                continue
            if p.name.endswith(RECORD_SUFFIX):
                removed += 1

        for d in sorted(dirs, key=lambda p: len(p.parts), reverse=True):
            try:
                d.rmdir()
            except OSError:
                # Not empty (a concurrent writer got there first) or already gone.
                continue

        logger.debug("cache cleared dir=%s removed=%s", base, removed)
        return removed
