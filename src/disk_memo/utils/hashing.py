from __future__ import annotations

import hashlib
import json
from typing import Any


def stable_sha256(text: str) -> str:
    # surrogatepass: lone surrogates (os.fsdecode, surrogateescape) still hash.
    return hashlib.sha256(text.encode("utf-8", errors="surrogatepass")).hexdigest()


def _fallback(obj: Any) -> Any:
    # Sets have no stable iteration order; everything else falls back to repr.
    if isinstance(obj, (set, frozenset)):
        return sorted(repr(v) for v in obj)
    if isinstance(obj, bytes):
        return obj.hex()
    return repr(obj)


def stable_json_dumps(obj: Any) -> str:
    """
    Canonical JSON used for cache fingerprints:
    - sorted keys, compact separators
    - non-JSON values fall back to repr() so any argument can be keyed

    The repr() fallback is only as stable as the object's __repr__. An object
    using the default `<Foo object at 0x...>` repr embeds its memory address,
    so it produces a new key every run; give such types a value-based __repr__
    or pass plain data instead.
    """
    return json.dumps(obj, sort_keys=True, ensure_ascii=False, separators=(",", ":"), default=_fallback)
