"""
File Reader - Helpers dùng chung cho DirectoryWalker và ManualFileIngestor

- Relative path so với base folder (case-insensitive, đúng ranh giới path)
- Kiểm tra size ceiling
- Đọc file thành FileRecord
"""

import os
from pathlib import Path
from typing import FrozenSet, Iterable, Optional

from core.errors import IngestionIOError
from core.ingestion.types import FileRecord
from core.language_utils import normalize_extension


def normalize_extensions(extensions: Iterable[str]) -> FrozenSet[str]:
    """Chuẩn hoá allow-list extension về lowercase có dấu chấm."""
    return frozenset(normalize_extension(ext) for ext in extensions if ext.strip())


def get_extension(path: str) -> str:
    """Extension lowercase có dấu chấm của path, "" nếu không có."""
    return os.path.splitext(path)[1].lower()


def relative_path_for(abs_path: str, base_folder: Optional[str]) -> str:
    """
    Tính relative path của file so với base folder.

    Nếu abs_path bắt đầu bằng base_folder (case-insensitive, tại ranh giới
    path component) thì trả về phần còn lại, bỏ separator ở đầu.
    Ngược lại trả về abs_path nguyên vẹn.

    Examples:
        relative_path_for("/p/src/a.py", "/p")   -> "src/a.py"
        relative_path_for("/proj2/a.py", "/proj") -> "/proj2/a.py"
    """
    if not base_folder:
        return abs_path

    base = base_folder.rstrip("\\/")
    if not base:
        # base là root của filesystem ("/")
        return abs_path.lstrip("\\/") or abs_path

    if not abs_path.lower().startswith(base.lower()):
        return abs_path

    remainder = abs_path[len(base) :]
    if not remainder:
        return abs_path
    if remainder[0] not in ("/", "\\"):
        return abs_path  # "/proj2" không nằm trong "/proj"

    return remainder.lstrip("\\/")


def exceeds_size_limit(size_bytes: int, max_file_size_kb: int) -> bool:
    """True nếu file vượt ceiling (so sánh theo KB làm tròn xuống)."""
    return size_bytes // 1024 > max_file_size_kb


def read_file_record(abs_path: str, base_folder: Optional[str]) -> FileRecord:
    """
    Đọc file thành FileRecord.

    Raises:
        IngestionIOError: Nếu không đọc được file
    """
    try:
        content = Path(abs_path).read_text(encoding="utf-8-sig", errors="replace")
    except (OSError, ValueError) as e:
        raise IngestionIOError(abs_path, str(e)) from e

    return FileRecord(
        path=abs_path,
        relative_path=relative_path_for(abs_path, base_folder),
        extension=get_extension(abs_path),
        content=content,
    )
