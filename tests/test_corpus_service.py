"""
Tests cho CorpusService: scan folder, them file thu cong, clear, tokens.
"""

import os

import pytest

from config.app_settings import AppSettings
from core.errors import ConfigurationError
from core.ingestion.types import count_files
from services.corpus_service import CorpusService


def _service(settings=None, **kwargs):
    settings = settings or AppSettings(source_file_extensions=[".py", ".md"])
    return CorpusService(settings_provider=lambda: settings, **kwargs)


class TestScanFolder:
    def test_scan_populates_corpus(self, make_tree):
        root = make_tree({"a.py": "1", "docs/b.md": "# b", "c.bin": "x"})
        service = _service()

        result = service.scan_folder(str(root))

        assert service.selected_folder == os.path.abspath(str(root))
        assert service.file_count == 2
        assert set(service.files_by_extension) == {".py", ".md"}
        assert result.total_files == 2

    def test_rescan_replaces_corpus(self, tmp_path):
        first = tmp_path / "first"
        second = tmp_path / "second"
        first.mkdir()
        second.mkdir()
        (first / "a.py").write_text("1", encoding="utf-8")
        (second / "b.py").write_text("2", encoding="utf-8")
        service = _service()

        service.scan_folder(str(first))
        service.scan_folder(str(second))

        records = service.files_by_extension[".py"]
        assert [r.relative_path for r in records] == ["b.py"]

    def test_missing_folder_raises(self, tmp_path):
        with pytest.raises(ConfigurationError):
            _service().scan_folder(str(tmp_path / "missing"))

    def test_operation_log(self, make_tree):
        root = make_tree({"a.py": "1"})
        logs = []

        _service(log_sink=logs.append).scan_folder(str(root))

        assert "Started: FolderScan" in logs
        assert any(line.startswith("Completed: FolderScan (Elapsed:") for line in logs)
        assert "Found 1 source files in 1 extension groups" in logs

    def test_excluded_patterns_from_settings(self, make_tree):
        root = make_tree({"a.py": "1", "gen/b.py": "2", "c_test.py": "3"})
        settings = AppSettings(
            source_file_extensions=[".py"], excluded_patterns="gen/\n*_test.py"
        )

        service = _service(settings)
        service.scan_folder(str(root))

        assert [r.relative_path for r in service.files_by_extension[".py"]] == [
            "a.py"
        ]


class TestAddFiles:
    def test_add_after_scan_dedups(self, make_tree):
        root = make_tree({"a.py": "1", "extra.txt": "hi"})
        service = _service()
        service.scan_folder(str(root))

        result = service.add_files([str(root / "a.py"), str(root / "extra.txt")])

        assert result.duplicates == ["a.py"]
        assert result.added == ["extra.txt"]
        assert service.file_count == 2

    def test_add_without_folder_sets_base(self, make_tree):
        root = make_tree({"src/a.py": "1"})
        service = _service()

        service.add_files([str(root / "src" / "a.py")])

        assert service.selected_folder == str(root / "src")
        assert service.files_by_extension[".py"][0].relative_path == "a.py"

    def test_add_empty_list(self):
        result = _service().add_files([])
        assert result.total_files == 0


class TestLifecycle:
    def test_clear(self, make_tree):
        root = make_tree({"a.py": "1"})
        service = _service()
        service.scan_folder(str(root))

        service.clear()

        assert service.file_count == 0
        assert service.selected_folder == ""

    def test_listeners_notified_and_unsubscribed(self, make_tree):
        root = make_tree({"a.py": "1"})
        service = _service()
        calls = []
        unsubscribe = service.on_files_changed(lambda: calls.append(1))

        service.scan_folder(str(root))
        service.clear()
        unsubscribe()
        service.clear()

        assert len(calls) == 2

    def test_failing_listener_does_not_break_operation(self, make_tree):
        root = make_tree({"a.py": "1"})
        service = _service()

        def boom():
            raise RuntimeError("listener bug")

        service.on_files_changed(boom)
        result = service.scan_folder(str(root))

        assert result.total_files == 1

    def test_cancel_without_operation_is_noop(self):
        _service().cancel()

    def test_progress_callback_final_report(self, make_tree):
        root = make_tree({"a.py": "1", "b.py": "2"})
        reports = []
        service = _service(progress_callback=lambda p, t: reports.append((p, t)))

        service.scan_folder(str(root))

        assert reports[-1] == (2, 2)


class TestCalculateTokens:
    def test_uses_settings_template(self, make_tree):
        root = make_tree({"a.py": "x" * 40})
        settings = AppSettings(source_file_extensions=[".py"], prompt_template="Hello")
        service = _service(settings)
        service.scan_folder(str(root))

        result = service.calculate_tokens(encoder_available=False)

        assert result.prompt_template_tokens == 2
        assert result.mode == "heuristic"
        assert count_files(service.files_by_extension) == len(result.tokens_by_file)

    def test_explicit_template_overrides(self):
        result = _service().calculate_tokens("abcdefgh", encoder_available=False)
        assert result.prompt_template_tokens == 2
