from __future__ import annotations

import pickle
from typing import Literal

from pydantic import ValidationError

from disk_memo.errors import SerializationError
from disk_memo.models.record import Record

SerializerName = Literal["json", "pickle"]


def _encode_json(record: Record) -> bytes:
    data = record.model_dump_json().encode("utf-8")
    # JSON turns tuples into lists, int dict keys into str, sets into lists.
    # Refuse to store a value that would not come back equal.
    decoded = Record.model_validate_json(data)
    try:
        same = decoded.contents == record.contents and type(decoded.contents) is type(record.contents)
    except Exception as e:
        raise SerializationError(f"cannot compare JSON round trip of contents: {e}") from e
    if not same:
        raise SerializationError("contents do not survive a JSON round trip; use the pickle serializer")
    return data


def encode_record(record: Record, fmt: SerializerName = "pickle") -> bytes:
    try:
        if fmt == "pickle":
            # contents are pickled as-is; model_dump would flatten dataclasses/models to dicts.
            envelope = record.model_dump(exclude={"contents"})
            envelope["contents"] = record.contents
            return pickle.dumps(envelope, protocol=pickle.HIGHEST_PROTOCOL)
        return _encode_json(record)
    except (TypeError, ValueError, AttributeError, pickle.PicklingError) as e:
        raise SerializationError(f"cannot serialize record contents as {fmt}: {e}") from e


def decode_record(data: bytes, fmt: SerializerName = "pickle") -> Record:
    if not data:
        raise SerializationError("empty record file")
    try:
        if fmt == "pickle":
            raw = pickle.loads(data)
            if not isinstance(raw, dict):
                raise SerializationError(f"unexpected envelope type {type(raw).__name__}")
            return Record.model_validate(raw)
        return Record.model_validate_json(data)
    except ValidationError as e:
        raise SerializationError(f"malformed record envelope: {e.error_count()} error(s)") from e
    except (pickle.UnpicklingError, EOFError, AttributeError, ImportError, IndexError, TypeError, ValueError) as e:
        raise SerializationError(f"cannot deserialize record: {e}") from e
