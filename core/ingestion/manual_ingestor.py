"""
Manual File Ingestor - Thêm danh sách file user chọn vào corpus

Khác DirectoryWalker:
- Không lọc theo extension (user đã chọn file cụ thể)
- Concurrency cố định (mặc định 10 reads đồng thời), không phụ thuộc CPU
- Mỗi file added/duplicate/oversize đều được log cho user

Truyền accumulator của lần walk trước để merge vào cùng corpus.
"""

import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Iterable, Optional

from core.constants import MANUAL_MAX_CONCURRENCY
from core.errors import ConfigurationError, IngestionIOError
from core.ingestion.cancellation import CancellationToken
from core.ingestion.corpus import CorpusAccumulator
from core.ingestion.reader import (
    exceeds_size_limit,
    read_file_record,
    relative_path_for,
)
from core.ingestion.types import IngestResult, SkippedFile, SkipReason
from core.logging_config import LogSink, log_error, log_operation


class ManualFileIngestor:
    """
    Ingest một danh sách file paths vào corpus.

    Usage:
        ingestor = ManualFileIngestor(log_sink=panel.append)
        result = ingestor.ingest_files(paths, base_folder, 1024, accumulator=acc)
    """

    def __init__(
        self,
        max_concurrent_reads: int = MANUAL_MAX_CONCURRENCY,
        cancel_token: Optional[CancellationToken] = None,
        log_sink: Optional[LogSink] = None,
    ):
        if max_concurrent_reads < 1:
            raise ConfigurationError(
                f"max_concurrent_reads must be >= 1, got {max_concurrent_reads}"
            )
        self.max_concurrent_reads = max_concurrent_reads
        self.cancel_token = cancel_token or CancellationToken()
        self.log_sink = log_sink

    def ingest_files(
        self,
        paths: Iterable[str],
        base_folder: Optional[str],
        max_file_size_kb: int,
        accumulator: Optional[CorpusAccumulator] = None,
    ) -> IngestResult:
        """
        Đọc các file được chọn và thêm vào accumulator.

        Args:
            paths: Danh sách file paths
            base_folder: Folder để tính relative path (None -> dùng path tuyệt đối)
            max_file_size_kb: Size ceiling theo KB
            accumulator: Accumulator có sẵn để merge vào (optional)

        Returns:
            IngestResult với added/duplicates/skipped của call này
        """
        if max_file_size_kb < 0:
            raise ConfigurationError(
                f"max_file_size_kb must be >= 0, got {max_file_size_kb}"
            )

        accumulator = accumulator if accumulator is not None else CorpusAccumulator()
        base = os.path.abspath(base_folder) if base_folder else None
        result = IngestResult()

        # Loại path trùng lặp trong chính input, giữ thứ tự
        unique_paths = list(dict.fromkeys(os.path.abspath(p) for p in paths if p))
        result.files_found = len(unique_paths)

        with ThreadPoolExecutor(
            max_workers=self.max_concurrent_reads, thread_name_prefix="manual-read"
        ) as executor:
            futures = {}
            for abs_path in unique_paths:
                if self.cancel_token.is_cancelled:
                    break
                future = executor.submit(
                    self._ingest_one, abs_path, base, max_file_size_kb, accumulator
                )
                futures[future] = abs_path

            for future in as_completed(futures):
                abs_path = futures[future]
                try:
                    outcome = future.result()
                except Exception as e:
                    log_error(f"[ManualFileIngestor] Failed on {abs_path}", e)
                    continue
                if outcome is None:
                    continue

                kind, value = outcome
                if kind == "added":
                    result.added.append(value)
                elif kind == "duplicate":
                    result.duplicates.append(value)
                else:
                    result.skipped.append(value)
                result.files_processed += 1

        result.cancelled = self.cancel_token.is_cancelled
        result.corpus = accumulator.snapshot()
        return result

    def _ingest_one(
        self,
        abs_path: str,
        base: Optional[str],
        max_file_size_kb: int,
        accumulator: CorpusAccumulator,
    ):
        """
        Xử lý một file.

        Returns:
            ("added", relative) | ("duplicate", relative) | ("skipped", SkippedFile),
            hoặc None nếu đã bị cancel trước khi bắt đầu
        """
        if self.cancel_token.is_cancelled:
            return None

        relative = relative_path_for(abs_path, base)

        if not os.path.isfile(abs_path):
            log_operation(
                f"File not found: {abs_path}", self.log_sink, level=logging.WARNING
            )
            return ("skipped", SkippedFile(abs_path, SkipReason.NOT_FOUND))

        try:
            size = os.stat(abs_path).st_size
        except OSError as e:
            log_operation(
                f"Error reading file {abs_path}: {e}",
                self.log_sink,
                level=logging.WARNING,
            )
            return ("skipped", SkippedFile(abs_path, SkipReason.READ_ERROR, str(e)))

        if exceeds_size_limit(size, max_file_size_kb):
            size_kb = size // 1024
            message = f"{size_kb} KB > {max_file_size_kb} KB"
            log_operation(
                f"Skipped file due to size limit: {os.path.basename(abs_path)} "
                f"({message})",
                self.log_sink,
            )
            return ("skipped", SkippedFile(abs_path, SkipReason.TOO_LARGE, message))

        if not accumulator.claim(abs_path):
            log_operation(f"Skipped duplicate file: {relative}", self.log_sink)
            return ("duplicate", relative)

        try:
            record = read_file_record(abs_path, base)
        except IngestionIOError as e:
            accumulator.release(abs_path)
            log_operation(
                f"Error reading file {e}", self.log_sink, level=logging.WARNING
            )
            return ("skipped", SkippedFile(abs_path, SkipReason.READ_ERROR, str(e)))

        accumulator.add(record)
        log_operation(f"Added file: {record.relative_path}", self.log_sink)
        return ("added", record.relative_path)


def ingest_files(
    paths: Iterable[str],
    base_folder: Optional[str],
    max_file_size_kb: int,
    accumulator: Optional[CorpusAccumulator] = None,
    cancel_token: Optional[CancellationToken] = None,
    log_sink: Optional[LogSink] = None,
) -> IngestResult:
    """Convenience wrapper: ManualFileIngestor(...).ingest_files(...)."""
    ingestor = ManualFileIngestor(cancel_token=cancel_token, log_sink=log_sink)
    return ingestor.ingest_files(
        paths, base_folder, max_file_size_kb, accumulator=accumulator
    )
