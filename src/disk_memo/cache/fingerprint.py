from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from disk_memo.utils.hashing import stable_json_dumps, stable_sha256

KEY_SEPARATOR = "/"


def normalize_args(args: Any) -> list[Any]:
    """
    Reduce any argument structure to a 0-indexed list of values.
    Mapping keys are dropped; only value order is kept.
    """
    if args is None:
        return []
    if isinstance(args, Mapping):
        return list(args.values())
    if isinstance(args, (str, bytes, bytearray)):
        return [args]
    if isinstance(args, Iterable):
        return list(args)
    return [args]


def check_relative_name(name: str, label: str = "subject") -> None:
    if not isinstance(name, str) or not name.strip():
        raise ValueError(f"{label} must be a non-empty string")
    parts = name.replace("\\", "/").split("/")
    if name.startswith(("/", "\\")) or ".." in parts:
        raise ValueError(f"{label} must be a relative name without '..' segments (got {name!r})")


def fingerprint(subject: str, method: str, args: Any = ()) -> str:
    """
    Key for a producer call. Arguments that are not plain data are keyed by
    repr(), so objects with the default address-bearing repr never produce
    the same key twice (see `stable_json_dumps`).
    """
    check_relative_name(subject)
    digest = stable_sha256(f"{method}{stable_json_dumps(normalize_args(args))}")
    return f"{subject}{KEY_SEPARATOR}{digest}"
