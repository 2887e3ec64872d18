"""
Model Configuration - Định nghĩa các LLM models và context limits

Lưu trữ thông tin các model phổ biến để phân loại corpus theo
context window (within limit / approaching / exceeds).

Bảng limit là cấu hình tĩnh, immutable, load một lần cho toàn process.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import List, Mapping, Optional


@dataclass(frozen=True)
class ModelConfig:
    """
    Cấu hình cho một LLM model.

    Attributes:
        id: ID duy nhất của model (VD: "gpt-4-turbo")
        name: Tên hiển thị (VD: "GPT-4 Turbo")
        context_length: Kích thước context window (số tokens tối đa)
    """

    id: str
    name: str
    context_length: int


# Danh sách các model với context limits
# "default" là mức bảo thủ khi chưa biết model đích
MODEL_CONFIGS: List[ModelConfig] = [
    # OpenAI
    ModelConfig(id="gpt-4", name="GPT-4", context_length=8192),
    ModelConfig(id="gpt-4-turbo", name="GPT-4 Turbo", context_length=128000),
    ModelConfig(id="gpt-3.5-turbo", name="GPT-3.5 Turbo", context_length=16385),
    # Anthropic
    ModelConfig(id="claude-3-opus", name="Claude 3 Opus", context_length=200000),
    ModelConfig(id="claude-3-sonnet", name="Claude 3 Sonnet", context_length=200000),
    # Google
    ModelConfig(id="gemini-pro", name="Gemini Pro", context_length=32768),
    # DeepSeek
    ModelConfig(id="deepseek-coder", name="DeepSeek Coder", context_length=32768),
    # Conservative default
    ModelConfig(id="default", name="Default", context_length=8000),
]

# Default model ID khi chưa chọn
DEFAULT_MODEL_ID = "default"

_model_limits: Optional[Mapping[str, int]] = None


def get_model_limits() -> Mapping[str, int]:
    """
    Lấy bảng model ID -> context limit (read-only).

    Build một lần rồi cache lại; caller không thể sửa bảng.

    Returns:
        MappingProxyType từ model ID sang context_length
    """
    global _model_limits
    if _model_limits is None:
        _model_limits = MappingProxyType(
            {m.id: m.context_length for m in MODEL_CONFIGS}
        )
    return _model_limits


def get_model_by_id(model_id: str) -> Optional[ModelConfig]:
    """
    Lấy model config theo ID.

    Args:
        model_id: ID của model cần tìm

    Returns:
        ModelConfig nếu tìm thấy, None nếu không
    """
    for model in MODEL_CONFIGS:
        if model.id == model_id:
            return model
    return None


def get_model_options() -> List[tuple]:
    """
    Lấy danh sách options cho dropdown.

    Returns:
        List of (display_text, model_id) tuples
    """
    return [
        (f"{m.name} ({format_context_length(m.context_length)})", m.id)
        for m in MODEL_CONFIGS
    ]


def format_context_length(length: int) -> str:
    """Format context length cho hiển thị (VD: 200k, 1M)"""
    if length >= 1000000:
        return f"{length // 1000000}M"
    elif length >= 1000:
        return f"{length // 1000}k"
    return str(length)
