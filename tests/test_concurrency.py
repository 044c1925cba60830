"""
Concurrent writers and readers on a single record.

The record file must always hold one complete envelope from a single
writer: readers never see a torn write and the final record decodes.
"""

from __future__ import annotations

import multiprocessing
import os
import threading
from pathlib import Path

import pytest

from disk_memo.cache.store import Store

BLOB_SIZE = 256 * 1024


def _payload(writer: int) -> dict:
    return {"writer": writer, "blob": chr(ord("a") + writer) * BLOB_SIZE}


def _assert_whole(content: dict) -> None:
    blob = content["blob"]
    assert len(blob) == BLOB_SIZE
    assert blob == chr(ord("a") + content["writer"]) * BLOB_SIZE


def test_threaded_writers_never_interleave(store: Store) -> None:
    writers = 6
    rounds = 5
    errors: list[Exception] = []
    statuses: list[str] = []
    start = threading.Barrier(writers + 2)

    def write(i: int) -> None:
        try:
            start.wait()
            for _ in range(rounds):
                store.write(_payload(i), "shared")
        except Exception as e:
            errors.append(e)

    def read() -> None:
        try:
            start.wait()
            for _ in range(rounds * writers):
                result = store.get("shared")
                statuses.append(result.status)
                if result.hit:
                    _assert_whole(result.content)
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=write, args=(i,)) for i in range(writers)]
    threads += [threading.Thread(target=read) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=60)

    assert errors == []
    assert set(statuses) <= {"cached", "not_cached"}
    final = store.get("shared")
    assert final.hit
    _assert_whole(final.content)


def _write_many(root: str, writer: int, rounds: int) -> None:
    store = Store(root)
    for _ in range(rounds):
        store.write(_payload(writer), "shared")


@pytest.mark.skipif(not hasattr(os, "fork"), reason="needs fork start method")
def test_process_writers_leave_one_complete_envelope(cache_root: Path) -> None:
    ctx = multiprocessing.get_context("fork")
    procs = [ctx.Process(target=_write_many, args=(str(cache_root), i, 5)) for i in range(4)]
    for p in procs:
        p.start()
    for p in procs:
        p.join(timeout=60)
        assert p.exitcode == 0

    store = Store(cache_root)
    final = store.get("shared")
    assert final.hit
    _assert_whole(final.content)
    assert final.content["writer"] in range(4)
    leftovers = [p.name for p in cache_root.iterdir() if p.name.endswith(".tmp")]
    assert leftovers == []
