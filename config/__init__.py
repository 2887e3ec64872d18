"""
Config Package - Chứa các constants và cấu hình của ứng dụng

Bao gồm:
- model_config: Định nghĩa các LLM models và context limits
- app_settings: Typed settings (extensions, size ceiling, prompt template)
- paths: Đường dẫn app data / logs / settings
"""

from config.model_config import (
    ModelConfig,
    MODEL_CONFIGS,
    DEFAULT_MODEL_ID,
    get_model_by_id,
    get_model_limits,
    get_model_options,
)

__all__ = [
    "ModelConfig",
    "MODEL_CONFIGS",
    "DEFAULT_MODEL_ID",
    "get_model_by_id",
    "get_model_limits",
    "get_model_options",
]
