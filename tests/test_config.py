from __future__ import annotations

from pathlib import Path

import pytest

from disk_memo.cache.store import Store
from disk_memo.config import CacheSettings, load_settings
from disk_memo.errors import PathNotWritable


def test_load_settings_from_env(cache_root: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CACHE_DIR", str(cache_root))
    monkeypatch.setenv("CACHE_DEFAULT_EXPIRES", "30")
    monkeypatch.setenv("CACHE_SERIALIZER", "json")
    monkeypatch.setenv("CACHE_FILE_MODE", "600")
    settings = load_settings()
    assert settings.cache_dir == cache_root
    assert settings.cache_default_expires == 30
    assert settings.serializer == "json"
    assert settings.file_mode == 0o600
    assert settings.lock_timeout_seconds is None


def test_load_settings_rejects_missing_dir(tmp_path: Path) -> None:
    with pytest.raises(PathNotWritable):
        load_settings(cache_dir=tmp_path / "missing")


def test_load_settings_rejects_file(tmp_path: Path) -> None:
    f = tmp_path / "file"
    f.write_text("x", encoding="utf-8")
    with pytest.raises(PathNotWritable):
        load_settings(cache_dir=f)


def test_store_from_settings(cache_root: Path) -> None:
    store = Store.from_settings(CacheSettings(cache_dir=cache_root, cache_default_expires=0))
    assert store.root == cache_root
    assert store.default_expires is None
    assert store.serializer == "pickle"

    store = Store.from_settings(CacheSettings(cache_dir=cache_root, cache_default_expires=45))
    store.write("x", "k")
    record = store.get("k").record
    assert record.expires_at == pytest.approx(record.created_at + 45)
