"""
Constants Package - Cac hang so dung chung cho core.
"""

from core.constants.file_patterns import (
    DEFAULT_EXCLUDED_DIRS,
    DEFAULT_SOURCE_EXTENSIONS,
    DEFAULT_MAX_FILE_SIZE_KB,
    PROGRESS_THROTTLE_MS,
    DEFAULT_PARALLEL_DEPTH_LIMIT,
    MANUAL_MAX_CONCURRENCY,
)

__all__ = [
    "DEFAULT_EXCLUDED_DIRS",
    "DEFAULT_SOURCE_EXTENSIONS",
    "DEFAULT_MAX_FILE_SIZE_KB",
    "PROGRESS_THROTTLE_MS",
    "DEFAULT_PARALLEL_DEPTH_LIMIT",
    "MANUAL_MAX_CONCURRENCY",
]
