"""
AppSettings - Typed settings dataclass cho AI Code Analyzer.

Thay the Dict[str, Any] bang dataclass co type hints, validation va default values.
Tat ca settings duoc truy cap qua typed fields thay vi string keys.

Modules:
- AppSettings: Dataclass chua toan bo application settings
- from_dict(): Tao AppSettings tu dict (settings.json)
- to_dict(): Chuyen doi AppSettings thanh dict de luu xuong file

Su dung:
    settings = load_app_settings()
    walker.walk(root, settings.source_file_extensions, settings.max_file_size_kb)
"""

import typing
from dataclasses import dataclass, field, fields
from typing import Any

from core.constants import (
    DEFAULT_EXCLUDED_DIRS,
    DEFAULT_MAX_FILE_SIZE_KB,
    DEFAULT_PARALLEL_DEPTH_LIMIT,
    DEFAULT_SOURCE_EXTENSIONS,
    MANUAL_MAX_CONCURRENCY,
)

# === Default values cho settings ===
DEFAULT_PROMPT_TEMPLATE = (
    "Please analyze the following source code files from my project. "
    "I would like you to:\n"
    "1. Understand the overall structure and purpose of the codebase\n"
    "2. Identify any bugs, errors, or inconsistencies\n"
    "3. Highlight potential security vulnerabilities\n"
    "4. Suggest improvements for code quality and maintainability\n"
    "5. Provide specific recommendations for the most critical issues\n"
    "\n"
    "Here are all the files from my project:"
)


@dataclass
class AppSettings:
    """
    Typed settings cho AI Code Analyzer.

    Moi field tuong ung voi mot key trong settings.json.
    Default values duoc su dung khi settings.json chua co key tuong ung.
    """

    # --- Ingestion Settings ---
    # Allow-list extension cho folder scan (case-insensitive)
    source_file_extensions: list[str] = field(
        default_factory=lambda: list(DEFAULT_SOURCE_EXTENSIONS)
    )
    # Size ceiling cho moi file (KB)
    max_file_size_kb: int = DEFAULT_MAX_FILE_SIZE_KB
    # Ten folder bi prune khi scan (case-insensitive)
    excluded_dir_names: list[str] = field(
        default_factory=lambda: sorted(DEFAULT_EXCLUDED_DIRS)
    )
    # Gitignore-style patterns bo sung (separated by newline)
    excluded_patterns: str = ""
    # Depth toi da duoc enumerate song song, sau do walk tuan tu
    parallel_depth_limit: int = DEFAULT_PARALLEL_DEPTH_LIMIT
    # So file doc dong thoi khi user them file thu cong
    manual_max_concurrency: int = MANUAL_MAX_CONCURRENCY

    # --- Token Settings ---
    # Prompt template dat o dau prompt
    prompt_template: str = DEFAULT_PROMPT_TEMPLATE
    # Tiktoken encoding cho exact mode
    encoding_name: str = "cl100k_base"
    # Heuristic: tokens tren moi ky tu
    token_ratio: float = 0.25
    # Safety buffer tren tong token
    buffer_ratio: float = 0.05
    # Model dang chon (highlight trong bang compatibility)
    model_id: str = "default"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AppSettings":
        """
        Tao AppSettings tu dict, chi lay cac keys trung voi field names.

        Bao gom type validation: neu value co type khong khop voi
        field declaration, se bo qua va dung default thay the.

        Args:
            data: Dict settings (thuong tu settings.json)

        Returns:
            AppSettings instance voi values tu dict, fallback ve defaults
        """
        # Map field name -> expected type tu dataclass definition
        field_types: dict[str, Any] = {f.name: f.type for f in fields(cls)}

        filtered: dict[str, Any] = {}
        for key, value in data.items():
            if key not in field_types:
                continue

            expected_type = field_types[key]

            # Xu ly truong hop type annotation la string (forward ref)
            if isinstance(expected_type, str):
                type_map = {"str": str, "bool": bool, "int": int, "float": float}
                expected_type = type_map.get(expected_type, str)

            # Strict type check: reject bool khi expect int/float
            if expected_type in (int, float) and isinstance(value, bool):
                continue  # Use default instead

            # JSON khong phan biet 1 va 1.0
            if expected_type is float and isinstance(value, int):
                value = float(value)

            origin = typing.get_origin(expected_type)
            check_type = origin if origin is not None else expected_type

            if not isinstance(value, check_type):
                continue

            # list[str]: moi phan tu phai la string
            if check_type is list and not all(isinstance(v, str) for v in value):
                continue

            filtered[key] = value

        return cls(**filtered)

    def to_dict(self) -> dict[str, Any]:
        """
        Chuyen doi AppSettings thanh dict de luu xuong file.

        Returns:
            Dict voi toan bo settings
        """
        return {
            "source_file_extensions": list(self.source_file_extensions),
            "max_file_size_kb": self.max_file_size_kb,
            "excluded_dir_names": list(self.excluded_dir_names),
            "excluded_patterns": self.excluded_patterns,
            "parallel_depth_limit": self.parallel_depth_limit,
            "manual_max_concurrency": self.manual_max_concurrency,
            "prompt_template": self.prompt_template,
            "encoding_name": self.encoding_name,
            "token_ratio": self.token_ratio,
            "buffer_ratio": self.buffer_ratio,
            "model_id": self.model_id,
        }

    def get_excluded_patterns_list(self) -> list[str]:
        """
        Parse excluded_patterns string thanh list cac patterns.

        Loai bo dong trong va comments (bat dau bang #).

        Returns:
            List patterns da normalize
        """
        return [
            line.strip()
            for line in self.excluded_patterns.splitlines()
            if line.strip() and not line.strip().startswith("#")
        ]
