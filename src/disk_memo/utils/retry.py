from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, TypeVar

from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

T = TypeVar("T")


def _is_retryable_fs_error(exc: BaseException) -> bool:
    # Windows reports a rename over a file another process has open as PermissionError.
    if isinstance(exc, (PermissionError, BlockingIOError, InterruptedError)):
        return True
    return False


@dataclass(frozen=True)
class RetryConfig:
    attempts: int = 3
    min_seconds: float = 0.01
    max_seconds: float = 0.2


def fs_retry(cfg: RetryConfig) -> Callable[[Callable[..., T]], Callable[..., T]]:
    def _decorator(fn: Callable[..., T]) -> Callable[..., T]:
        return retry(
            reraise=True,
            retry=retry_if_exception(_is_retryable_fs_error),
            stop=stop_after_attempt(max(1, cfg.attempts)),
            wait=wait_exponential(multiplier=cfg.min_seconds, min=cfg.min_seconds, max=cfg.max_seconds),
        )(fn)

    return _decorator
