"""
Ingestion Types - Data models cho corpus ingestion

Chứa các dataclass dùng chung giữa DirectoryWalker, ManualFileIngestor
và TokenEstimator. FileRecord là immutable: tạo một lần khi đọc file,
không bao giờ sửa sau đó.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List

from core.language_utils import get_language_for_extension


@dataclass(frozen=True, slots=True)
class FileRecord:
    """
    Một file đã được đọc vào corpus.

    Attributes:
        path: Đường dẫn tuyệt đối
        relative_path: Đường dẫn tương đối so với root (hoặc path tuyệt đối
            nếu file nằm ngoài root)
        extension: Extension lowercase có dấu chấm, "" nếu không có
        content: Nội dung UTF-8 của file
    """

    path: str
    relative_path: str
    extension: str
    content: str

    @property
    def size_chars(self) -> int:
        return len(self.content)

    @property
    def language(self) -> str:
        return get_language_for_extension(self.extension)


# Extension -> danh sách FileRecord
Corpus = Dict[str, List[FileRecord]]


def iter_files(corpus: Corpus) -> Iterator[FileRecord]:
    """Duyệt toàn bộ FileRecord trong corpus (không đảm bảo thứ tự)."""
    for records in corpus.values():
        yield from records


def count_files(corpus: Corpus) -> int:
    return sum(len(records) for records in corpus.values())


def sorted_files(corpus: Corpus) -> List[FileRecord]:
    """Danh sách file sắp xếp theo relative_path, dùng cho hiển thị."""
    return sorted(iter_files(corpus), key=lambda r: r.relative_path.lower())


class SkipReason(Enum):
    """Lý do một path không được đưa vào corpus."""

    TOO_LARGE = "too_large"
    READ_ERROR = "read_error"
    NOT_FOUND = "not_found"
    DIRECTORY_ERROR = "directory_error"


@dataclass(frozen=True)
class SkippedFile:
    """Path bị bỏ qua kèm lý do và message chi tiết."""

    path: str
    reason: SkipReason
    message: str = ""


@dataclass
class IngestResult:
    """
    Kết quả của một lần walk() hoặc ingest_files().

    Cancelled walk vẫn trả về IngestResult (partial result), không raise.

    Attributes:
        corpus: Snapshot của accumulator sau khi call kết thúc
        added: Relative paths được thêm bởi call này
        duplicates: Relative paths bị bỏ qua vì đã có trong corpus
        skipped: Các path bị bỏ qua (quá lớn, lỗi đọc, không tồn tại...)
        cancelled: True nếu operation bị huỷ giữa chừng
        files_found: Số file ứng viên đã phát hiện
        files_processed: Số file ứng viên đã xử lý xong
    """

    corpus: Corpus = field(default_factory=dict)
    added: List[str] = field(default_factory=list)
    duplicates: List[str] = field(default_factory=list)
    skipped: List[SkippedFile] = field(default_factory=list)
    cancelled: bool = False
    files_found: int = 0
    files_processed: int = 0

    @property
    def total_files(self) -> int:
        """Tổng số file trong corpus (kể cả các file từ call trước)."""
        return count_files(self.corpus)
