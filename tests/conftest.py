from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Allow running tests without requiring an editable install.
_REPO_ROOT = Path(__file__).resolve().parents[1]
_SRC_DIR = _REPO_ROOT / "src"
if _SRC_DIR.exists() and str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from disk_memo.cache.store import Store


@pytest.fixture()
def cache_root(tmp_path: Path) -> Path:
    root = tmp_path / "cache"
    root.mkdir()
    return root


@pytest.fixture()
def store(cache_root: Path) -> Store:
    return Store(cache_root)
