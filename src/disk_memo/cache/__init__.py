from .fingerprint import fingerprint, normalize_args
from .invoker import MemoizingInvoker
from .registry import Invocable, ProducerRegistry
from .store import PendingWrite, Store

__all__ = [
    "Invocable",
    "MemoizingInvoker",
    "PendingWrite",
    "ProducerRegistry",
    "Store",
    "fingerprint",
    "normalize_args",
]
