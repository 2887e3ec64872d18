"""
Settings Manager - Quan ly load/save settings cua ung dung.

File: ~/.ai-code-analyzer/settings.json

API:
    settings = load_app_settings()  # -> AppSettings
    save_app_settings(settings)
    update_app_setting(max_file_size_kb=2048)
"""

import json
import threading
from pathlib import Path
from typing import Any, Optional

from config.app_settings import AppSettings
from config.paths import SETTINGS_FILE
from core.logging_config import log_warning

# Thread-safe lock de tranh race condition khi save settings
_settings_lock = threading.Lock()


def _load_app_settings_unlocked(path: Path) -> AppSettings:
    """
    Load settings tu file KHONG co lock.

    Chi duoc goi tu ben trong code da acquire _settings_lock,
    hoac tu load_app_settings() (read-only, khong can lock).

    Returns:
        AppSettings instance voi values tu file + defaults
    """
    try:
        if path.exists():
            content = path.read_text(encoding="utf-8")
            saved = json.loads(content)
            if isinstance(saved, dict):
                return AppSettings.from_dict(saved)
            log_warning(f"[Settings] Ignoring malformed settings file: {path}")
    except (OSError, json.JSONDecodeError) as e:
        log_warning(f"[Settings] Cannot read {path}: {e}")
    return AppSettings()


def _save_app_settings_unlocked(settings: AppSettings, path: Path) -> bool:
    """
    Save AppSettings ra file KHONG co lock.

    Chi duoc goi tu ben trong code da acquire _settings_lock.
    Merge voi existing data de bao toan extra keys.

    Returns:
        True neu save thanh cong
    """
    try:
        existing_data: dict[str, Any] = {}
        try:
            if path.exists():
                loaded = json.loads(path.read_text(encoding="utf-8"))
                if isinstance(loaded, dict):
                    existing_data = loaded
        except (OSError, json.JSONDecodeError):
            pass

        updated = {**existing_data, **settings.to_dict()}
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(updated, indent=2), encoding="utf-8")
        return True
    except (OSError, IOError) as e:
        log_warning(f"[Settings] Cannot save {path}: {e}")
        return False


def load_app_settings(path: Optional[Path] = None) -> AppSettings:
    """
    Load settings tu file va tra ve AppSettings typed instance.

    Read-only operation, khong can lock vi chi doc file.
    Neu file khong ton tai hoac loi, tra ve defaults.

    Args:
        path: File settings (mac dinh SETTINGS_FILE)

    Returns:
        AppSettings instance voi values tu file + defaults
    """
    return _load_app_settings_unlocked(path or SETTINGS_FILE)


def save_app_settings(settings: AppSettings, path: Optional[Path] = None) -> bool:
    """
    Save AppSettings ra file (thread-safe).

    Args:
        settings: AppSettings instance can luu
        path: File settings (mac dinh SETTINGS_FILE)

    Returns:
        True neu save thanh cong
    """
    with _settings_lock:
        return _save_app_settings_unlocked(settings, path or SETTINGS_FILE)


def update_app_setting(path: Optional[Path] = None, **kwargs: Any) -> bool:
    """
    Update mot hoac nhieu settings fields cung luc (thread-safe, atomic).

    Toan bo read-modify-write duoc bao ve boi _settings_lock
    de tranh race condition khi 2 threads update dong thoi.

    Args:
        path: File settings (mac dinh SETTINGS_FILE)
        **kwargs: Field names va values can update (vd: max_file_size_kb=2048)

    Returns:
        True neu save thanh cong

    Raises:
        TypeError: Neu key khong phai la AppSettings field
    """
    # Validate fields truoc khi acquire lock de fail-fast
    valid_fields = set(AppSettings.__dataclass_fields__)
    for key in kwargs:
        if key not in valid_fields:
            raise TypeError(
                f"'{key}' is not a valid AppSettings field. "
                f"Valid fields: {sorted(valid_fields)}"
            )

    target = path or SETTINGS_FILE
    # Atomic read-modify-write duoi lock
    with _settings_lock:
        settings = _load_app_settings_unlocked(target)
        for key, value in kwargs.items():
            setattr(settings, key, value)
        return _save_app_settings_unlocked(settings, target)
