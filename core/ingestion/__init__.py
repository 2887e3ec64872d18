"""
Ingestion Package - Build corpus từ directory tree hoặc danh sách file.

- directory_walker: Parallel recursive scan theo extension allow-list
- manual_ingestor: Thêm file user chọn (concurrency cố định)
- corpus: CorpusAccumulator thread-safe, dedup theo absolute path
- types: FileRecord, Corpus, IngestResult
"""

from core.ingestion.cancellation import CancellationToken
from core.ingestion.corpus import CorpusAccumulator
from core.ingestion.directory_walker import DirectoryWalker, walk_directory
from core.ingestion.manual_ingestor import ManualFileIngestor, ingest_files
from core.ingestion.types import (
    Corpus,
    FileRecord,
    IngestResult,
    SkippedFile,
    SkipReason,
    count_files,
    iter_files,
    sorted_files,
)

__all__ = [
    "CancellationToken",
    "CorpusAccumulator",
    "DirectoryWalker",
    "walk_directory",
    "ManualFileIngestor",
    "ingest_files",
    "Corpus",
    "FileRecord",
    "IngestResult",
    "SkippedFile",
    "SkipReason",
    "count_files",
    "iter_files",
    "sorted_files",
]
