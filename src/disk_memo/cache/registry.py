from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Callable, Protocol, runtime_checkable

from disk_memo.errors import ProducerNotFound

logger = logging.getLogger(__name__)


@runtime_checkable
class Invocable(Protocol):
    def call(self, method: str, args: Sequence[Any]) -> Any: ...


class _AttributeInvocable:
    """Adapts a plain object: `call("m", args)` -> `obj.m(*args)`."""

    def __init__(self, target: Any) -> None:
        self.target = target

    def call(self, method: str, args: Sequence[Any]) -> Any:
        fn = getattr(self.target, method, None)
        if fn is None or not callable(fn):
            raise AttributeError(f"{type(self.target).__name__!s} has no callable {method!r}")
        return fn(*args)


def as_invocable(obj: Any) -> Invocable:
    if isinstance(obj, Invocable):
        return obj
    return _AttributeInvocable(obj)


class ProducerRegistry:
    """
    Named producers. Factories are resolved lazily on first use and the
    resulting producer is kept for later calls.
    """

    def __init__(self) -> None:
        self._loaded: dict[str, Invocable] = {}
        self._factories: dict[str, Callable[[], Any]] = {}

    def register(self, name: str, producer: Any) -> None:
        self._loaded[name] = as_invocable(producer)

    def register_factory(self, name: str, factory: Callable[[], Any]) -> None:
        self._factories[name] = factory
        self._loaded.pop(name, None)

    def is_loaded(self, name: str) -> bool:
        return name in self._loaded

    def resolve(self, name: str) -> Invocable:
        if name in self._loaded:
            return self._loaded[name]
        factory = self._factories.get(name)
        if factory is None:
            raise ProducerNotFound(name)
        logger.debug("producer loaded name=%s", name)
        producer = as_invocable(factory())
        self._loaded[name] = producer
        return producer

    def call(self, subject: str, method: str, args: Sequence[Any]) -> Any:
        return self.resolve(subject).call(method, list(args))
