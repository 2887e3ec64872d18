"""
CorpusService - Quan ly vong doi cua mot corpus cho caller (CLI, UI).

- scan_folder(): chon folder moi, xoa corpus cu, walk lai tu dau
- add_files(): them file thu cong vao corpus hien tai
- clear(): xoa corpus va selected folder
- calculate_tokens(): estimate token cho corpus + prompt template

Settings duoc doc tu settings provider moi lan operation bat dau,
nen thay doi settings co hieu luc cho lan scan tiep theo.

Listeners dang ky qua on_files_changed() duoc goi sau moi thay doi
corpus. Listener loi chi bi log, khong lam hong operation.
"""

import os
import threading
from typing import Callable, Iterable, List, Optional

from config.app_settings import AppSettings
from core.errors import ConfigurationError
from core.ingestion.cancellation import CancellationToken
from core.ingestion.corpus import CorpusAccumulator
from core.ingestion.directory_walker import DirectoryWalker
from core.ingestion.manual_ingestor import ManualFileIngestor
from core.ingestion.progress import ProgressCallback
from core.ingestion.types import Corpus, IngestResult
from core.logging_config import LogSink, log_error, log_operation, operation_timer
from core.tokenization.estimator import TokenEstimator
from core.tokenization.types import TokenCalculationResult
from services.settings_manager import load_app_settings

FilesChangedListener = Callable[[], None]


class CorpusService:
    """
    Facade quan ly corpus + selected folder.

    Thread-safe: moi operation lay snapshot settings rieng, accumulator
    tu dong bo hoa, cancel() co the goi tu thread khac.
    """

    def __init__(
        self,
        settings_provider: Callable[[], AppSettings] = load_app_settings,
        log_sink: Optional[LogSink] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> None:
        """
        Khoi tao CorpusService.

        Args:
            settings_provider: Ham tra ve AppSettings hien tai
            log_sink: Callback nhan operation log (vd: log panel)
            progress_callback: Callback (processed, total) khi scan folder
        """
        self._settings_provider = settings_provider
        self._log_sink = log_sink
        self._progress_callback = progress_callback

        self._lock = threading.RLock()
        self._accumulator = CorpusAccumulator()
        self._selected_folder = ""
        self._active_token: Optional[CancellationToken] = None
        self._listeners: List[FilesChangedListener] = []

    # ================================================================
    # State
    # ================================================================

    @property
    def selected_folder(self) -> str:
        with self._lock:
            return self._selected_folder

    @property
    def files_by_extension(self) -> Corpus:
        """Snapshot cua corpus hien tai."""
        return self._accumulator.snapshot()

    @property
    def file_count(self) -> int:
        return len(self._accumulator)

    def on_files_changed(
        self, listener: FilesChangedListener
    ) -> Callable[[], None]:
        """
        Dang ky listener cho su kien corpus thay doi.

        Returns:
            Ham unsubscribe
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def _notify_files_changed(self) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener()
            except Exception as e:
                log_error("[CorpusService] FilesChanged listener failed", e)

    def _begin_operation(self) -> CancellationToken:
        token = CancellationToken()
        with self._lock:
            self._active_token = token
        return token

    def _end_operation(self, token: CancellationToken) -> None:
        with self._lock:
            if self._active_token is token:
                self._active_token = None

    # ================================================================
    # Operations
    # ================================================================

    def scan_folder(self, root_path: str) -> IngestResult:
        """
        Chon folder moi va scan lai corpus tu dau.

        Raises:
            ConfigurationError: Folder khong ton tai
        """
        if not root_path or not os.path.isdir(root_path):
            raise ConfigurationError(f"Directory not found: {root_path}")

        settings = self._settings_provider()
        root = os.path.abspath(root_path)

        with self._lock:
            self._selected_folder = root
            self._accumulator.clear()

        log_operation(f"Starting folder scan: {root}", self._log_sink)
        token = self._begin_operation()
        try:
            with operation_timer("FolderScan", self._log_sink):
                walker = DirectoryWalker(
                    parallel_depth_limit=settings.parallel_depth_limit,
                    progress_callback=self._progress_callback,
                    cancel_token=token,
                    log_sink=self._log_sink,
                )
                result = walker.walk(
                    root,
                    settings.source_file_extensions,
                    settings.max_file_size_kb,
                    excluded_dir_names=settings.excluded_dir_names,
                    excluded_patterns=settings.get_excluded_patterns_list(),
                    accumulator=self._accumulator,
                )
        finally:
            self._end_operation(token)

        log_operation(
            f"Found {result.total_files} source files in {len(result.corpus)} "
            "extension groups",
            self._log_sink,
        )
        self._notify_files_changed()
        return result

    def add_files(self, paths: Iterable[str]) -> IngestResult:
        """
        Them file thu cong vao corpus hien tai.

        Neu chua co selected folder, folder cua file dau tien duoc dung
        lam base folder cho relative path.
        """
        path_list = [p for p in paths if p]
        if not path_list:
            return IngestResult(corpus=self.files_by_extension)

        settings = self._settings_provider()

        with self._lock:
            if not self._selected_folder:
                self._selected_folder = os.path.dirname(os.path.abspath(path_list[0]))
                log_operation(
                    f"Base folder set to: {self._selected_folder}", self._log_sink
                )
            base_folder = self._selected_folder

        log_operation(f"Processing {len(path_list)} selected files", self._log_sink)
        token = self._begin_operation()
        try:
            with operation_timer("ProcessSelectedFiles", self._log_sink):
                ingestor = ManualFileIngestor(
                    max_concurrent_reads=settings.manual_max_concurrency,
                    cancel_token=token,
                    log_sink=self._log_sink,
                )
                result = ingestor.ingest_files(
                    path_list,
                    base_folder,
                    settings.max_file_size_kb,
                    accumulator=self._accumulator,
                )
        finally:
            self._end_operation(token)

        log_operation(
            f"Total files after selection: {result.total_files}", self._log_sink
        )
        self._notify_files_changed()
        return result

    def clear(self) -> None:
        """Xoa corpus va selected folder."""
        with self._lock:
            self._accumulator.clear()
            self._selected_folder = ""
        log_operation("File selection cleared", self._log_sink)
        self._notify_files_changed()

    def cancel(self) -> None:
        """Huy operation dang chay (neu co)."""
        with self._lock:
            token = self._active_token
        if token is not None:
            token.cancel()
            log_operation("Cancellation requested", self._log_sink)

    def calculate_tokens(
        self,
        prompt_template: Optional[str] = None,
        encoder_available: Optional[bool] = None,
    ) -> TokenCalculationResult:
        """
        Estimate token cho corpus hien tai.

        Args:
            prompt_template: Template (None -> dung template trong settings)
            encoder_available: False de ep heuristic, None de tu detect
        """
        settings = self._settings_provider()
        template = (
            prompt_template if prompt_template is not None else settings.prompt_template
        )

        estimator = TokenEstimator(
            encoding_name=settings.encoding_name,
            token_ratio=settings.token_ratio,
            buffer_ratio=settings.buffer_ratio,
            log_sink=self._log_sink,
        )
        with operation_timer("TokenCalculation", self._log_sink):
            result = estimator.estimate(
                self.files_by_extension, template, encoder_available
            )

        log_operation(
            f"Token calculation ({result.mode}): {result.total_tokens:,} tokens",
            self._log_sink,
        )
        return result
