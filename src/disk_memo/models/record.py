from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any, Iterator, Literal

from pydantic import BaseModel, Field


CacheStatus = Literal[
    "cached",
    "not_cached",
    "path_not_writable",
    "open_error",
    "expired",
    "dependency_stale",
]


class Record(BaseModel):
    """
    Persisted envelope: producer output plus the metadata needed to decide
    whether it is still valid.
    """

    contents: Any = None
    created_at: float
    expires_at: float | None = None
    dependencies: list[str] = Field(default_factory=list)

    def is_expired(self, now: float | None = None) -> bool:
        if not self.expires_at:
            return False
        return self.expires_at < (time.time() if now is None else now)


@dataclass(frozen=True)
class CacheResult:
    content: Any
    status: CacheStatus
    record: Record | None = None

    @property
    def hit(self) -> bool:
        return self.status == "cached"

    def __iter__(self) -> Iterator[Any]:
        # Allows `content, status = store.get(key)`.
        yield self.content
        yield self.status
