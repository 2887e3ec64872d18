"""
Directory Walker - Parallel recursive scan thành corpus grouped theo extension

Hai thread pool, cùng bound max(1, cpu_count // 2):
- Directory pool: directory ở depth <= parallel_depth_limit schedule các
  subdirectory của nó lên pool (root có depth 0)
- File pool: đọc nội dung file

Subdirectory của directory sâu hơn depth limit được walk tuần tự
(inline) bởi task đã đến được nó. Không task nào block chờ task khác
trong pool: hoàn thành được theo dõi bằng outstanding-work counter +
Condition, nên không có pool deadlock dù task submit task con.

Pruning (chỉ áp dụng cho directory bên dưới root):
- Tên nằm trong excluded_dir_names (case-insensitive)
- Tên bắt đầu bằng "."
- Hidden/System attribute (Windows)
- Match excluded_patterns (gitignore-style, qua pathspec)
- Symlink tới directory không được follow
"""

import logging
import os
import stat
import threading
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Callable, FrozenSet, Iterable, List, Optional, Tuple

import pathspec

from core.constants import DEFAULT_EXCLUDED_DIRS, DEFAULT_PARALLEL_DEPTH_LIMIT
from core.errors import ConfigurationError, IngestionIOError
from core.ingestion.cancellation import CancellationToken
from core.ingestion.corpus import CorpusAccumulator
from core.ingestion.progress import ProgressCallback, ProgressReporter
from core.ingestion.reader import (
    exceeds_size_limit,
    get_extension,
    normalize_extensions,
    read_file_record,
    relative_path_for,
)
from core.ingestion.types import IngestResult, SkippedFile, SkipReason
from core.logging_config import (
    LogSink,
    log_error,
    log_info,
    log_operation,
)

_HIDDEN_OR_SYSTEM = stat.FILE_ATTRIBUTE_HIDDEN | stat.FILE_ATTRIBUTE_SYSTEM


def default_worker_count() -> int:
    """Bound cho walker pools: một nửa số CPU, tối thiểu 1."""
    return max(1, (os.cpu_count() or 2) // 2)


def _is_hidden_or_system(entry: os.DirEntry) -> bool:
    try:
        attrs = getattr(entry.stat(follow_symlinks=False), "st_file_attributes", 0)
    except OSError:
        return False
    return bool(attrs & _HIDDEN_OR_SYSTEM)


def _build_pattern_spec(
    excluded_patterns: Optional[Iterable[str]],
) -> Optional[pathspec.PathSpec]:
    if not excluded_patterns:
        return None
    lines = [p for p in excluded_patterns if p and p.strip()]
    if not lines:
        return None
    return pathspec.GitIgnoreSpec.from_lines(lines)


class _WalkSession:
    """
    State của một lần walk().

    Giữ config đã chuẩn hoá, hai pool, outstanding counter và các list
    kết quả (added/duplicates/skipped) được bảo vệ bởi _results_lock.
    """

    def __init__(
        self,
        root: str,
        allowed_extensions: FrozenSet[str],
        max_file_size_kb: int,
        excluded_dir_names: FrozenSet[str],
        pattern_spec: Optional[pathspec.PathSpec],
        parallel_depth_limit: int,
        accumulator: CorpusAccumulator,
        progress: ProgressReporter,
        cancel_token: CancellationToken,
        log_sink: Optional[LogSink],
    ):
        self.root = root
        self.allowed_extensions = allowed_extensions
        self.max_file_size_kb = max_file_size_kb
        self.excluded_dir_names = excluded_dir_names
        self.pattern_spec = pattern_spec
        self.parallel_depth_limit = parallel_depth_limit
        self.accumulator = accumulator
        self.progress = progress
        self.cancel_token = cancel_token
        self.log_sink = log_sink

        self.dir_pool: Optional[Executor] = None
        self.file_pool: Optional[Executor] = None

        self._cond = threading.Condition()
        self._outstanding = 0

        self._results_lock = threading.Lock()
        self.added: List[str] = []
        self.duplicates: List[str] = []
        self.skipped: List[SkippedFile] = []

    # ------------------------------------------------------------------
    # Outstanding-work tracking
    # ------------------------------------------------------------------

    def submit(self, pool: Executor, fn: Callable, *args) -> bool:
        """
        Schedule fn trên pool và tăng outstanding counter.

        Returns:
            False nếu đã bị cancel (không schedule gì thêm)
        """
        if self.cancel_token.is_cancelled:
            return False
        with self._cond:
            self._outstanding += 1
        try:
            pool.submit(self._run_task, fn, *args)
        except RuntimeError:
            self._task_done()
            raise
        return True

    def _run_task(self, fn: Callable, *args) -> None:
        try:
            fn(*args)
        except Exception as e:
            log_error(f"[DirectoryWalker] Unexpected error in {fn.__name__}", e)
        finally:
            self._task_done()

    def _task_done(self) -> None:
        with self._cond:
            self._outstanding -= 1
            if self._outstanding <= 0:
                self._cond.notify_all()

    def wait_until_idle(self) -> None:
        with self._cond:
            while self._outstanding > 0:
                self._cond.wait()

    # ------------------------------------------------------------------
    # Result recording
    # ------------------------------------------------------------------

    def record_skip(self, path: str, reason: SkipReason, message: str = "") -> None:
        with self._results_lock:
            self.skipped.append(SkippedFile(path, reason, message))

    def record_added(self, relative_path: str) -> None:
        with self._results_lock:
            self.added.append(relative_path)

    def record_duplicate(self, relative_path: str) -> None:
        with self._results_lock:
            self.duplicates.append(relative_path)

    # ------------------------------------------------------------------
    # Filters
    # ------------------------------------------------------------------

    def _root_relative_posix(self, abs_path: str) -> str:
        return relative_path_for(abs_path, self.root).replace("\\", "/")

    def is_pruned_dir(self, entry: os.DirEntry) -> bool:
        name = entry.name
        if name.startswith("."):
            return True
        if name.lower() in self.excluded_dir_names:
            return True
        if _is_hidden_or_system(entry):
            return True
        if self.pattern_spec is not None:
            rel_dir = self._root_relative_posix(entry.path) + "/"
            if self.pattern_spec.match_file(rel_dir):
                return True
        return False

    def is_excluded_file(self, entry: os.DirEntry) -> bool:
        if get_extension(entry.name) not in self.allowed_extensions:
            return True
        if self.pattern_spec is not None:
            if self.pattern_spec.match_file(self._root_relative_posix(entry.path)):
                return True
        return False

    # ------------------------------------------------------------------
    # Tasks
    # ------------------------------------------------------------------

    def process_directory(self, path: str, depth: int) -> None:
        """
        Enumerate một directory và các directory con vượt depth limit.

        Directory ở depth <= parallel_depth_limit schedule các subdirectory
        lên dir pool; directory sâu hơn đưa subdirectory vào stack và walk
        inline.
        """
        stack: List[Tuple[str, int]] = [(path, depth)]

        while stack:
            if self.cancel_token.is_cancelled:
                return

            current, current_depth = stack.pop()
            subdirs, candidates = self._scan_entries(current)

            self.progress.add_found(len(candidates))
            for file_path in candidates:
                if not self.submit(self.file_pool, self.read_file, file_path):
                    break

            child_depth = current_depth + 1
            fan_out = current_depth <= self.parallel_depth_limit
            for subdir in subdirs:
                if fan_out:
                    if not self.submit(
                        self.dir_pool, self.process_directory, subdir, child_depth
                    ):
                        return
                else:
                    stack.append((subdir, child_depth))

    def _scan_entries(self, path: str) -> Tuple[List[str], List[str]]:
        """Trả về (subdirectories không bị prune, files hợp lệ) của path."""
        subdirs: List[str] = []
        candidates: List[str] = []

        try:
            with os.scandir(path) as it:
                entries = list(it)
        except OSError as e:
            log_operation(
                f"Error processing directory {path}: {e}",
                self.log_sink,
                level=logging.WARNING,
            )
            self.record_skip(path, SkipReason.DIRECTORY_ERROR, str(e))
            return subdirs, candidates

        for entry in entries:
            try:
                if entry.is_dir(follow_symlinks=False):
                    if not self.is_pruned_dir(entry):
                        subdirs.append(entry.path)
                    continue
                if not entry.is_file():
                    continue
                if self.is_excluded_file(entry):
                    continue
                size = entry.stat().st_size
            except OSError as e:
                log_operation(
                    f"Error reading file {entry.path}: {e}",
                    self.log_sink,
                    level=logging.WARNING,
                )
                self.record_skip(entry.path, SkipReason.READ_ERROR, str(e))
                continue

            if exceeds_size_limit(size, self.max_file_size_kb):
                detail = f"{size // 1024} KB > {self.max_file_size_kb} KB"
                log_operation(
                    f"Skipped file due to size limit: {entry.name} ({detail})",
                    self.log_sink,
                )
                self.record_skip(entry.path, SkipReason.TOO_LARGE, detail)
                continue
            candidates.append(entry.path)

        return subdirs, candidates

    def read_file(self, abs_path: str) -> None:
        """Claim-before-read rồi đọc file vào accumulator."""
        if self.cancel_token.is_cancelled:
            return

        try:
            if not self.accumulator.claim(abs_path):
                relative = relative_path_for(abs_path, self.root)
                self.record_duplicate(relative)
                log_operation(f"Skipped duplicate file: {relative}", self.log_sink)
                return

            try:
                record = read_file_record(abs_path, self.root)
            except IngestionIOError as e:
                self.accumulator.release(abs_path)
                self.record_skip(abs_path, SkipReason.READ_ERROR, str(e))
                log_operation(
                    f"Error reading file {e}", self.log_sink, level=logging.WARNING
                )
                return

            self.accumulator.add(record)
            self.record_added(record.relative_path)
        finally:
            self.progress.add_processed()


class DirectoryWalker:
    """
    Walk một project directory thành corpus, song song có giới hạn.

    Usage:
        walker = DirectoryWalker(progress_callback=on_progress)
        result = walker.walk("/path/to/project", [".py", ".md"], 1024)
        for ext, files in result.corpus.items():
            ...
    """

    def __init__(
        self,
        max_workers: Optional[int] = None,
        parallel_depth_limit: int = DEFAULT_PARALLEL_DEPTH_LIMIT,
        progress_callback: Optional[ProgressCallback] = None,
        cancel_token: Optional[CancellationToken] = None,
        log_sink: Optional[LogSink] = None,
    ):
        if max_workers is not None and max_workers < 1:
            raise ConfigurationError(f"max_workers must be >= 1, got {max_workers}")
        self.max_workers = max_workers or default_worker_count()
        self.parallel_depth_limit = max(0, parallel_depth_limit)
        self.progress_callback = progress_callback
        self.cancel_token = cancel_token or CancellationToken()
        self.log_sink = log_sink

    def cancel(self) -> None:
        self.cancel_token.cancel()

    def walk(
        self,
        root_path: str,
        allowed_extensions: Iterable[str],
        max_file_size_kb: int,
        excluded_dir_names: Iterable[str] = DEFAULT_EXCLUDED_DIRS,
        excluded_patterns: Optional[Iterable[str]] = None,
        accumulator: Optional[CorpusAccumulator] = None,
    ) -> IngestResult:
        """
        Walk root_path và thêm các file hợp lệ vào accumulator.

        Args:
            root_path: Directory gốc (phải tồn tại)
            allowed_extensions: Allow-list extension (case-insensitive)
            max_file_size_kb: Size ceiling theo KB
            excluded_dir_names: Tên directory bị prune (case-insensitive)
            excluded_patterns: Gitignore-style patterns bổ sung (optional)
            accumulator: Accumulator có sẵn để merge vào (optional)

        Returns:
            IngestResult; cancelled=True nếu bị huỷ giữa chừng

        Raises:
            ConfigurationError: root_path không tồn tại / không phải directory
        """
        if not root_path or not os.path.isdir(root_path):
            raise ConfigurationError(f"Directory not found: {root_path}")
        if max_file_size_kb < 0:
            raise ConfigurationError(
                f"max_file_size_kb must be >= 0, got {max_file_size_kb}"
            )

        root = os.path.abspath(root_path)
        accumulator = accumulator if accumulator is not None else CorpusAccumulator()
        progress = ProgressReporter(self.progress_callback)

        session = _WalkSession(
            root=root,
            allowed_extensions=normalize_extensions(allowed_extensions),
            max_file_size_kb=max_file_size_kb,
            excluded_dir_names=frozenset(n.lower() for n in excluded_dir_names),
            pattern_spec=_build_pattern_spec(excluded_patterns),
            parallel_depth_limit=self.parallel_depth_limit,
            accumulator=accumulator,
            progress=progress,
            cancel_token=self.cancel_token,
            log_sink=self.log_sink,
        )

        with ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="walker-dir"
        ) as dir_pool, ThreadPoolExecutor(
            max_workers=self.max_workers, thread_name_prefix="walker-file"
        ) as file_pool:
            session.dir_pool = dir_pool
            session.file_pool = file_pool
            try:
                session.submit(dir_pool, session.process_directory, root, 0)
                session.wait_until_idle()
            except KeyboardInterrupt:
                # Drain pools nhanh truoc khi executor shutdown
                self.cancel_token.cancel()
                raise

        progress.report(force=True)

        cancelled = self.cancel_token.is_cancelled
        if cancelled:
            log_info(
                f"[DirectoryWalker] Walk cancelled after {progress.processed} files"
            )
        else:
            log_info(
                f"[DirectoryWalker] Found {len(session.added)} files in {root}"
            )

        return IngestResult(
            corpus=accumulator.snapshot(),
            added=session.added,
            duplicates=session.duplicates,
            skipped=session.skipped,
            cancelled=cancelled,
            files_found=progress.total,
            files_processed=progress.processed,
        )


def walk_directory(
    root_path: str,
    allowed_extensions: Iterable[str],
    max_file_size_kb: int,
    excluded_dir_names: Iterable[str] = DEFAULT_EXCLUDED_DIRS,
    excluded_patterns: Optional[Iterable[str]] = None,
    accumulator: Optional[CorpusAccumulator] = None,
    progress_callback: Optional[ProgressCallback] = None,
    cancel_token: Optional[CancellationToken] = None,
    log_sink: Optional[LogSink] = None,
) -> IngestResult:
    """Convenience wrapper: DirectoryWalker(...).walk(...)."""
    walker = DirectoryWalker(
        progress_callback=progress_callback,
        cancel_token=cancel_token,
        log_sink=log_sink,
    )
    return walker.walk(
        root_path,
        allowed_extensions,
        max_file_size_kb,
        excluded_dir_names=excluded_dir_names,
        excluded_patterns=excluded_patterns,
        accumulator=accumulator,
    )
