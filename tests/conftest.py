"""
Shared fixtures cho ingestion/tokenization tests.
"""

from pathlib import Path
from typing import Callable, Dict

import pytest

from core.ingestion.types import FileRecord
from core.tokenization.cache import TokenCache


@pytest.fixture
def make_tree(tmp_path: Path) -> Callable[[Dict[str, str]], Path]:
    """
    Tao cay thu muc tu dict {relative_path: content}.

    Usage:
        root = make_tree({"src/a.py": "print(1)", "README.md": "# hi"})
    """

    def _make(files: Dict[str, str]) -> Path:
        for rel, content in files.items():
            path = tmp_path / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return tmp_path

    return _make


@pytest.fixture
def fresh_cache() -> TokenCache:
    """TokenCache rieng cho moi test (khong dung singleton)."""
    return TokenCache()


@pytest.fixture
def make_record() -> Callable[..., FileRecord]:
    """Tao FileRecord trong memory cho estimator tests."""

    def _make(relative_path: str, content: str, base: str = "/proj") -> FileRecord:
        return FileRecord(
            path=f"{base}/{relative_path}",
            relative_path=relative_path,
            extension=Path(relative_path).suffix.lower(),
            content=content,
        )

    return _make


@pytest.fixture(autouse=True)
def isolated_settings_file(tmp_path_factory, monkeypatch):
    """Khong doc/ghi settings.json that cua user trong tests."""
    settings_file = tmp_path_factory.mktemp("app") / "settings.json"
    monkeypatch.setattr("services.settings_manager.SETTINGS_FILE", settings_file)
    return settings_file
