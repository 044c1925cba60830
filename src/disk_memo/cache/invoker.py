from __future__ import annotations

import logging
import time
from typing import Any

from disk_memo.cache.fingerprint import fingerprint, normalize_args
from disk_memo.cache.registry import ProducerRegistry
from disk_memo.cache.store import Store

logger = logging.getLogger(__name__)


class MemoizingInvoker:
    """
    Returns a producer's cached result for (subject, method, args), or calls
    the producer and caches what it returns.

    ttl semantics:
    - None / 0: store default expiry (or never)
    - > 0: expire after ttl seconds
    - < 0: drop the cached record and return None without calling the producer
    """

    def __init__(self, store: Store, registry: ProducerRegistry) -> None:
        self.store = store
        self.registry = registry

    def key_for(self, subject: str, method: str, args: Any = ()) -> str:
        return fingerprint(subject, method, args)

    def invoke(self, subject: str, method: str, args: Any = (), ttl: float | None = None) -> Any:
        producer = self.registry.resolve(subject)
        call_args = normalize_args(args)
        key = fingerprint(subject, method, call_args)

        if ttl is not None and ttl < 0:
            self.store.delete(key)
            logger.debug("cache invalidated key=%s", key)
            return None

        cached = self.store.get(key)
        if cached.hit:
            return cached.content
        logger.debug("nothing cached key=%s status=%s", key, cached.status)

        t0 = time.perf_counter()
        result = producer.call(method, call_args)
        dt_ms = int((time.perf_counter() - t0) * 1000)
        logger.debug("producer done subject=%s method=%s duration_ms=%s", subject, method, dt_ms)

        self.store.write(result, key, ttl)
        return result

    def invalidate(self, subject: str, method: str, args: Any = ()) -> None:
        self.invoke(subject, method, args, ttl=-1)
