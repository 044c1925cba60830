from __future__ import annotations

import json
from pathlib import Path

import pytest

from disk_memo.cache.store import Store
from disk_memo.cli import main


@pytest.fixture(autouse=True)
def _cache_env(cache_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CACHE_DIR", str(cache_root))


def test_get_hit(store: Store, capsys: pytest.CaptureFixture[str]) -> None:
    store.write({"a": 1}, "k")
    main(["get", "k"])
    out = capsys.readouterr().out
    assert out.startswith("status=cached\n")
    assert json.loads(out.split("\n", 1)[1]) == {"a": 1}


def test_get_miss_exits_nonzero(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc:
        main(["get", "missing"])
    assert exc.value.code == 1
    assert "status=not_cached" in capsys.readouterr().out


def test_get_no_expiry(store: Store, capsys: pytest.CaptureFixture[str]) -> None:
    store.write("old", "k", ttl=-1)
    main(["get", "k", "--no-expiry"])
    assert "status=cached" in capsys.readouterr().out


def test_delete_group_and_keys(store: Store, capsys: pytest.CaptureFixture[str]) -> None:
    for key in ("nav_title", "nav_links", "other"):
        store.write(key, key)
    main(["delete-group", "nav_"])
    assert "removed=2" in capsys.readouterr().out
    main(["keys"])
    assert capsys.readouterr().out.split() == ["other"]


def test_delete_and_clear(store: Store, capsys: pytest.CaptureFixture[str]) -> None:
    store.write(1, "a")
    store.write(2, "sub/b")
    main(["delete", "a"])
    assert store.get("a").status == "not_cached"
    main(["clear"])
    assert "removed=1" in capsys.readouterr().out
    assert store.keys() == []


def test_missing_cache_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CACHE_DIR", str(tmp_path / "absent"))
    with pytest.raises(SystemExit) as exc:
        main(["keys"])
    assert "Cache path not found" in str(exc.value.code)
